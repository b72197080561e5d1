"""Customer-side session for one table.

Holds what a diner's page keeps between requests: the menu it loaded, the
cart being built and the last table snapshot (open bill and pending orders).
Snapshots are pulled through a SnapshotSource, either on demand with
`refresh()` or periodically with `poll()`.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import AsyncIterator, List, Optional

from tableside.core.config import settings
from tableside.core.exceptions import BackendUnavailable, RecordNotFound, ValidationFailure
from tableside.db.base import utcnow
from tableside.schemas.feedback import FeedbackCreate, FeedbackRecord
from tableside.schemas.order import (
    PaymentMethod,
    PendingOrderResponse,
    TableBillResponse,
    TableSnapshotResponse,
)
from tableside.services.cart import Cart
from tableside.services.feedback_store import FeedbackStore
from tableside.services.menu_service import MenuService, categories_of, filter_by_category
from tableside.services.order_store import OrderStore
from tableside.services.order_workflow import OrderWorkflow, SubmissionResult
from tableside.services.payment_service import PaymentConfirmationFlow, Screenshot, SettlementResult
from tableside.services.table_request_service import RequestResult, TableRequestService

logger = logging.getLogger(__name__)


class SnapshotSource(ABC):
    @abstractmethod
    def fetch(self, table_number: str) -> TableSnapshotResponse:
        ...


class StoreSnapshotSource(SnapshotSource):
    """Reads the table's open bill and pending orders from the order store."""

    def __init__(self, store: OrderStore):
        self.store = store

    def fetch(self, table_number: str) -> TableSnapshotResponse:
        with self.store.reading("load table snapshot"):
            bill = self.store.get_open_bill(table_number)
            pending = self.store.list_pending_orders(table_number)
        return TableSnapshotResponse(
            table_number=table_number,
            bill=TableBillResponse.model_validate(bill) if bill is not None else None,
            pending_orders=[PendingOrderResponse.model_validate(order) for order in pending],
            fetched_at=utcnow(),
        )


class TableSession:
    def __init__(
        self,
        table_number: str,
        menu: list,
        workflow: OrderWorkflow,
        payments: PaymentConfirmationFlow,
        requests: TableRequestService,
        feedback: FeedbackStore,
        snapshots: SnapshotSource,
        menu_service: Optional[MenuService] = None,
    ):
        self.table_number = table_number
        self.menu = list(menu)
        self.cart = Cart()
        self.workflow = workflow
        self.payments = payments
        self.requests = requests
        self.feedback = feedback
        self.snapshots = snapshots
        self.menu_service = menu_service
        self.snapshot: Optional[TableSnapshotResponse] = None

    # Menu browsing

    @property
    def categories(self) -> List[str]:
        return categories_of(self.menu)

    def filter_items(self, category: Optional[str] = None) -> list:
        return filter_by_category(self.menu, category)

    def open_item(self, item):
        """Show an item's details, counting a view when a menu service is attached."""
        if self.menu_service is not None:
            try:
                self.menu_service.record_view(item.id)
            except (BackendUnavailable, RecordNotFound) as e:
                logger.warning(f"Could not record view for menu item {item.id}: {e.message}")
        return item

    def add_to_cart(self, item, quantity: int = 1) -> None:
        if not getattr(item, "available", True):
            raise ValidationFailure(f"{item.name} is currently unavailable")
        for _ in range(quantity):
            self.cart.add_item(item)

    # Ordering and payment

    async def place_order(self) -> Optional[SubmissionResult]:
        result = await self.workflow.submit_order(self.table_number, self.cart)
        if result is not None:
            self.refresh()
        return result

    async def pay_with_screenshot(
        self, screenshot: Screenshot, method: PaymentMethod
    ) -> Optional[SubmissionResult]:
        result = await self.payments.checkout(self.table_number, self.cart, screenshot, method)
        if result is not None:
            self.refresh()
        return result

    async def pay_bill(self, screenshot: Screenshot, method: PaymentMethod) -> SettlementResult:
        return await self.payments.settle_bill(self.table_number, screenshot, method)

    # Table requests and feedback

    async def call_waiter(self) -> RequestResult:
        return await self.requests.call_waiter(self.table_number)

    async def request_bill(self) -> RequestResult:
        return await self.requests.request_bill(self.table_number)

    def leave_feedback(self, rating: int, comment: Optional[str] = None, order_id: Optional[int] = None) -> FeedbackRecord:
        data = FeedbackCreate(rating=rating, comment=comment, order_id=order_id)
        record = FeedbackRecord(
            order_id=data.order_id,
            table_number=self.table_number,
            rating=data.rating,
            comment=data.comment,
            created_at=utcnow(),
        )
        self.feedback.store(record)
        return record

    # Bill refresh

    def refresh(self) -> Optional[TableSnapshotResponse]:
        """Pull the latest snapshot. On failure the previous snapshot is kept."""
        try:
            self.snapshot = self.snapshots.fetch(self.table_number)
        except BackendUnavailable as e:
            logger.error(f"Table {self.table_number} refresh failed, keeping last snapshot: {e.message}")
        return self.snapshot

    async def poll(self, interval: Optional[float] = None) -> AsyncIterator[Optional[TableSnapshotResponse]]:
        """Yield a fresh snapshot every `interval` seconds until the consumer stops iterating."""
        interval = interval if interval is not None else settings.bill_poll_interval_seconds
        while True:
            yield self.refresh()
            await asyncio.sleep(interval)
