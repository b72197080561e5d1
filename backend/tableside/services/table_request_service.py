"""Waiter calls and bill requests from a table."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from tableside.core.exceptions import BackendUnavailable
from tableside.models.restaurant import TableRequest
from tableside.services.notification_port import deliver
from tableside.services.order_store import OrderStore
from tableside.services.telegram_service import NotificationService

logger = logging.getLogger(__name__)

WAITER_CALLED = "Waiter has been called! Someone will be with you shortly."
WAITER_CALL_UNNOTIFIED = "Waiter call registered! (Note: notification may have failed)"
BILL_REQUESTED = "Bill requested! A waiter will bring it to your table."
BILL_REQUEST_UNNOTIFIED = "Bill request registered! (Note: notification may have failed)"


@dataclass
class RequestResult:
    kind: str
    notified: bool
    message: str


class TableRequestService:
    def __init__(self, store: OrderStore, notifications: NotificationService):
        self.store = store
        self.notifications = notifications

    def _record(self, table_number: str, kind: str) -> Optional[TableRequest]:
        try:
            with self.store.transaction(f"record {kind.replace('_', ' ')}"):
                return self.store.add_table_request(table_number, kind)
        except BackendUnavailable as e:
            # The alert still goes out; only the daily summary count is lost
            logger.error(f"{e.message} for table {table_number}")
            return None

    def _mark_notified(self, request: TableRequest) -> None:
        try:
            with self.store.transaction("update table request"):
                self.store.mark_table_request_notified(request)
        except BackendUnavailable as e:
            logger.error(f"{e.message} {request.id}")

    async def _dispatch(self, table_number: str, kind: str, send, event: str) -> bool:
        request = await asyncio.to_thread(self._record, table_number, kind)
        notified = await deliver(send(table_number), event)
        if notified and request is not None:
            await asyncio.to_thread(self._mark_notified, request)
        return notified

    async def call_waiter(self, table_number: str) -> RequestResult:
        notified = await self._dispatch(
            table_number, "waiter_call", self.notifications.send_waiter_call, "Waiter call",
        )
        return RequestResult(
            kind="waiter_call",
            notified=notified,
            message=WAITER_CALLED if notified else WAITER_CALL_UNNOTIFIED,
        )

    async def request_bill(self, table_number: str) -> RequestResult:
        notified = await self._dispatch(
            table_number, "bill_request", self.notifications.send_bill_request, "Bill request",
        )
        return RequestResult(
            kind="bill_request",
            notified=notified,
            message=BILL_REQUESTED if notified else BILL_REQUEST_UNNOTIFIED,
        )
