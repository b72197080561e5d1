"""Telegram staff channel: Bot API gateway and message formatting."""

import html
import logging
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

import httpx

from tableside.core.config import settings
from tableside.core.exceptions import NotificationFailure
from tableside.db.base import utcnow
from tableside.services.billing import parse_items
from tableside.services.notification_port import NotificationPort

logger = logging.getLogger(__name__)

TOP_ITEMS_IN_SUMMARY = 5


class TelegramGateway(NotificationPort):
    """NotificationPort backed by the Telegram Bot HTTP API.

    Delivery succeeds when Telegram answers 2xx with `"ok": true`. Every
    failure is logged and reported as False; nothing is retried.
    """

    def __init__(
        self,
        bot_token: Optional[str] = None,
        chat_id: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.bot_token = bot_token if bot_token is not None else settings.telegram_bot_token
        self.chat_id = chat_id if chat_id is not None else settings.telegram_chat_id
        self.api_base = (api_base or settings.telegram_api_base).rstrip("/")
        self.timeout = timeout or settings.telegram_timeout_seconds
        self._http_client = client

        if not self.is_configured:
            logger.warning("Telegram bot token or chat id not configured - staff notifications disabled")

    @property
    def is_configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def _url(self, method: str) -> str:
        return f"{self.api_base}/bot{self.bot_token}/{method}"

    async def _call(self, method: str, **kwargs) -> dict:
        """POST to a Bot API method, raising NotificationFailure unless Telegram reports ok."""
        if not self.is_configured:
            raise NotificationFailure("Telegram is not configured")

        client = await self._get_client()
        try:
            response = await client.post(self._url(method), **kwargs)
        except httpx.HTTPError as e:
            raise NotificationFailure(f"Telegram {method} transport error: {e}")

        if not response.is_success:
            raise NotificationFailure(
                f"Telegram {method} error: {response.status_code} - {response.text[:200]}"
            )
        try:
            body = response.json()
        except ValueError:
            raise NotificationFailure(f"Telegram {method} returned a non-JSON body")
        if not body.get("ok"):
            raise NotificationFailure(
                f"Telegram {method} rejected: {body.get('description', 'unknown error')}"
            )
        return body

    async def send_message(self, text: str) -> bool:
        try:
            await self._call(
                "sendMessage",
                json={"chat_id": self.chat_id, "text": text, "parse_mode": "HTML"},
            )
            return True
        except NotificationFailure as e:
            logger.error(f"Error sending Telegram message: {e.message}")
            return False

    async def send_photo(
        self,
        photo: bytes,
        caption: str,
        filename: str = "payment.jpg",
        content_type: Optional[str] = None,
    ) -> bool:
        try:
            await self._call(
                "sendPhoto",
                data={"chat_id": self.chat_id, "caption": caption, "parse_mode": "HTML"},
                files={"photo": (filename, photo, content_type or "image/jpeg")},
            )
            return True
        except NotificationFailure as e:
            logger.error(f"Error sending Telegram photo: {e.message}")
            return False


class NotificationService:
    """Formats ordering events as HTML messages and hands them to a NotificationPort."""

    def __init__(self, port: NotificationPort, currency_symbol: Optional[str] = None):
        self.port = port
        self.currency = currency_symbol if currency_symbol is not None else settings.currency_symbol

    def _money(self, amount) -> str:
        return f"{self.currency}{Decimal(str(amount)):.2f}"

    def _item_lines(self, records: Iterable) -> str:
        return "\n".join(
            f"• {item.name} x{item.quantity} - {self._money(item.total)}"
            for item in parse_items(records)
        )

    @staticmethod
    def _time(value: Optional[datetime] = None) -> str:
        return (value or utcnow()).strftime("%Y-%m-%d %H:%M")

    @staticmethod
    def _table(table_number) -> str:
        return html.escape(str(table_number))

    async def send_order_notification(self, order) -> bool:
        message = (
            f"🍽️ <b>New Order - Table {self._table(order.table_number)}</b>\n\n"
            f"{self._item_lines(order.items)}\n\n"
            f"💰 <b>Total: {self._money(order.total_amount)}</b>\n"
            f"🕐 <b>Time:</b> {self._time(order.timestamp)}"
        )
        return await self.port.send_message(message)

    async def send_payment_confirmation(self, order, method, screenshot) -> bool:
        caption = (
            f"💳 <b>Payment Confirmation - Table {self._table(order.table_number)}</b>\n\n"
            f"{self._item_lines(order.items)}\n\n"
            f"💰 <b>Total: {self._money(order.total_amount)}</b>\n"
            f"💳 <b>Method:</b> {method.label}\n"
            f"🕐 <b>Time:</b> {self._time(order.timestamp)}\n\n"
            f"📸 <b>Payment Screenshot Attached</b>"
        )
        return await self.port.send_photo(
            screenshot.content, caption, screenshot.filename, screenshot.content_type,
        )

    async def send_bill_payment_confirmation(self, bill, method, screenshot) -> bool:
        caption = (
            f"🧾 <b>Bill Payment - Table {self._table(bill.table_number)}</b>\n\n"
            f"{self._item_lines(bill.items)}\n\n"
            f"Subtotal: {self._money(bill.subtotal)}\n"
            f"Tax: {self._money(bill.tax)}\n"
            f"💰 <b>Total: {self._money(bill.total)}</b>\n"
            f"💳 <b>Method:</b> {method.label}\n"
            f"🕐 <b>Time:</b> {self._time()}\n\n"
            f"📸 <b>Payment Screenshot Attached</b>"
        )
        return await self.port.send_photo(
            screenshot.content, caption, screenshot.filename, screenshot.content_type,
        )

    async def send_waiter_call(self, table_number: str) -> bool:
        message = f"📞 <b>Table {self._table(table_number)} is calling the waiter</b>\n🕐 {self._time()}"
        return await self.port.send_message(message)

    async def send_bill_request(self, table_number: str) -> bool:
        message = f"💸 <b>Table {self._table(table_number)} is requesting the bill</b>\n🕐 {self._time()}"
        return await self.port.send_message(message)

    async def send_daily_summary(self, summary) -> bool:
        top_items = "\n".join(
            f"{index}. {item.name} ({item.count} orders)"
            for index, item in enumerate(summary.most_ordered_items[:TOP_ITEMS_IN_SUMMARY], start=1)
        ) or "-"
        message = (
            f"📊 <b>Daily Summary Report</b>\n"
            f"📅 {summary.day.isoformat()}\n\n"
            f"📈 <b>Orders:</b> {summary.total_orders}\n"
            f"💰 <b>Revenue:</b> {self._money(summary.total_revenue)}\n"
            f"🏆 <b>Most Active Table:</b> {self._table(summary.most_active_table or '-')}\n\n"
            f"🍽️ <b>Top Ordered Items:</b>\n"
            f"{top_items}\n\n"
            f"📞 <b>Waiter Calls:</b> {summary.waiter_calls}\n"
            f"💸 <b>Bill Requests:</b> {summary.bill_requests}"
        )
        return await self.port.send_message(message)
