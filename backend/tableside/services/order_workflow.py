"""Order approval workflow.

A cart becomes a pending order on submission. Staff then approve it, which
merges its lines into the table's open bill, or reject it, which leaves every
bill untouched.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from tableside.models.restaurant import PendingOrder, TableBill
from tableside.services.billing import apply_items, dump_items, merge_items, parse_items
from tableside.services.cart import Cart
from tableside.services.notification_port import deliver
from tableside.services.order_store import OrderStore
from tableside.services.telegram_service import NotificationService

logger = logging.getLogger(__name__)

ORDER_SUBMITTED = "Order submitted for approval! You will be notified once approved."
ORDER_SUBMITTED_UNNOTIFIED = "Order submitted! (Note: notification may have failed)"


@dataclass
class SubmissionResult:
    """What a diner sees after submitting. `notified` is False when the staff channel failed."""

    order: PendingOrder
    notified: bool
    message: str


class OrderWorkflow:
    def __init__(self, store: OrderStore, notifications: NotificationService):
        self.store = store
        self.notifications = notifications

    def create_pending_order(
        self, table_number: str, cart: Cart, payment_method: Optional[str] = None
    ) -> PendingOrder:
        """Persist the cart as a pending order. The cart itself is left untouched."""
        items = cart.items
        with self.store.transaction("submit order"):
            order = self.store.add_pending_order(
                table_number=table_number,
                items=dump_items(items),
                total_amount=cart.get_total_amount(),
                payment_method=payment_method,
            )
        logger.info(
            f"Pending order {order.id} created for table {table_number} "
            f"(tenant {self.store.tenant_id}, {cart.get_total_items()} items)"
        )
        return order

    async def submit_order(
        self, table_number: str, cart: Cart, payment_method: Optional[str] = None
    ) -> Optional[SubmissionResult]:
        """Submit the cart for approval. An empty cart is a no-op and returns None."""
        if cart.is_empty:
            return None

        order = await asyncio.to_thread(self.create_pending_order, table_number, cart, payment_method)
        notified = await deliver(self.notifications.send_order_notification(order), "Order")
        cart.clear_cart()

        return SubmissionResult(
            order=order,
            notified=notified,
            message=ORDER_SUBMITTED if notified else ORDER_SUBMITTED_UNNOTIFIED,
        )

    def approve(self, pending_order_id: int) -> TableBill:
        """Merge a pending order into its table's open bill and archive it.

        The bill update, history record, menu counters and pending-order
        removal commit together or not at all.
        """
        with self.store.transaction("approve order"):
            pending = self.store.get_pending_order(pending_order_id)
            ordered = parse_items(pending.items)

            bill = self.store.get_open_bill(pending.table_number)
            if bill is None:
                bill = self.store.new_bill(pending.table_number)
            apply_items(bill, merge_items(parse_items(bill.items), ordered))

            self.store.add_order_history(pending)

            menu = self.store.menu_items_by_id(item.id for item in ordered)
            for item in ordered:
                menu_item = menu.get(item.id)
                if menu_item is not None:
                    menu_item.orders = (menu_item.orders or 0) + item.quantity

            self.store.delete_pending_order(pending)

        logger.info(f"Approved pending order {pending_order_id} for table {bill.table_number}")
        return bill

    def reject(self, pending_order_id: int) -> None:
        with self.store.transaction("reject order"):
            pending = self.store.get_pending_order(pending_order_id)
            self.store.delete_pending_order(pending)
        logger.info(f"Rejected pending order {pending_order_id}")

    def list_pending(self, table_number: Optional[str] = None) -> List[PendingOrder]:
        with self.store.reading("load pending orders"):
            return self.store.list_pending_orders(table_number)
