"""Payment screenshot confirmations.

Two paths exist. `checkout` pays for a cart: it creates a pending order that
records the payment method and sends the screenshot to staff. `settle_bill`
pays an existing open bill: it only sends the screenshot with the bill's
lines, and neither creates an order nor closes the bill.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from tableside.core.config import settings
from tableside.core.exceptions import ValidationFailure
from tableside.models.restaurant import TableBill
from tableside.schemas.order import PaymentInstructions, PaymentMethod
from tableside.services.cart import Cart
from tableside.services.notification_port import deliver
from tableside.services.order_store import OrderStore
from tableside.services.order_workflow import OrderWorkflow, SubmissionResult
from tableside.services.telegram_service import NotificationService

logger = logging.getLogger(__name__)

CHECKOUT_SENT = "Payment confirmation sent! Your order is pending approval."
BILL_PAYMENT_SENT = "Payment confirmation sent! Staff will confirm your bill payment."
PAYMENT_UNNOTIFIED = "Payment submitted! (Note: notification may have failed)"


@dataclass
class Screenshot:
    """An uploaded payment screenshot."""

    content: bytes
    filename: str = "payment.jpg"
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class SettlementResult:
    bill: TableBill
    notified: bool
    message: str


def validate_screenshot(screenshot: Optional[Screenshot], max_bytes: Optional[int] = None) -> Screenshot:
    """Require a non-empty image no larger than the configured upload limit."""
    if screenshot is None or not screenshot.content:
        raise ValidationFailure("Please select a payment screenshot")
    if not (screenshot.content_type or "").startswith("image/"):
        raise ValidationFailure("Payment screenshot must be an image file")
    limit = max_bytes if max_bytes is not None else settings.max_upload_size_bytes
    if screenshot.size > limit:
        raise ValidationFailure(f"Payment screenshot is larger than {limit} bytes")
    return screenshot


class PaymentConfirmationFlow:
    def __init__(self, store: OrderStore, workflow: OrderWorkflow, notifications: NotificationService):
        self.store = store
        self.workflow = workflow
        self.notifications = notifications

    async def checkout(
        self,
        table_number: str,
        cart: Cart,
        screenshot: Optional[Screenshot],
        method: PaymentMethod,
    ) -> Optional[SubmissionResult]:
        """Submit the cart with a payment screenshot. An empty cart is a no-op."""
        screenshot = validate_screenshot(screenshot)
        if cart.is_empty:
            return None

        order = await asyncio.to_thread(
            self.workflow.create_pending_order, table_number, cart, method.stored_value,
        )
        notified = await deliver(
            self.notifications.send_payment_confirmation(order, method, screenshot),
            "Payment confirmation",
        )
        cart.clear_cart()

        return SubmissionResult(
            order=order,
            notified=notified,
            message=CHECKOUT_SENT if notified else PAYMENT_UNNOTIFIED,
        )

    def _open_bill(self, table_number: str) -> Optional[TableBill]:
        with self.store.reading("load table bill"):
            return self.store.get_open_bill(table_number)

    async def settle_bill(
        self,
        table_number: str,
        screenshot: Optional[Screenshot],
        method: PaymentMethod,
    ) -> SettlementResult:
        """Send a payment screenshot for the table's open bill. The bill is not modified."""
        screenshot = validate_screenshot(screenshot)
        bill = await asyncio.to_thread(self._open_bill, table_number)
        if bill is None:
            raise ValidationFailure(f"Table {table_number} has no open bill to pay")

        notified = await deliver(
            self.notifications.send_bill_payment_confirmation(bill, method, screenshot),
            "Bill payment",
        )
        logger.info(f"Bill payment confirmation for table {table_number} via {method.value}")
        return SettlementResult(
            bill=bill,
            notified=notified,
            message=BILL_PAYMENT_SENT if notified else PAYMENT_UNNOTIFIED,
        )


def payment_instructions(method: PaymentMethod, table_number: str) -> PaymentInstructions:
    """Account details a diner pays into, with the table as the transfer reference."""
    reference = f"Table {table_number}"
    if method is PaymentMethod.BANK_TRANSFER:
        lines = [
            f"Bank: {settings.bank_name}",
            f"Account: {settings.bank_account}",
            f"Reference: {reference}",
        ]
    else:
        lines = [
            f"Number: {settings.mobile_money_number}",
            f"Service: {settings.mobile_money_service}",
            f"Reference: {reference}",
        ]
    return PaymentInstructions(method=method, lines=lines, reference=reference)
