"""Staff-side table bill management and the dashboard snapshot."""

import logging
from typing import List, Optional

from tableside.core.config import settings
from tableside.core.exceptions import RecordNotFound, ValidationFailure
from tableside.db.base import utcnow
from tableside.models.restaurant import TableBill
from tableside.schemas.dashboard import DashboardSnapshot
from tableside.schemas.menu import MenuItemResponse
from tableside.schemas.order import BillStatus, OrderItem, PendingOrderResponse, TableBillResponse
from tableside.services.billing import apply_items, merge_items, parse_items, remove_line
from tableside.services.menu_service import MenuService
from tableside.services.order_store import OrderStore
from tableside.services.order_workflow import OrderWorkflow
from tableside.services.stats_service import StatsService

logger = logging.getLogger(__name__)


def table_sort_key(table_number: str):
    """Numeric codes ascending, then any other codes alphabetically."""
    if table_number.isdigit():
        return (0, int(table_number), "")
    return (1, 0, table_number)


class TableBillService:
    def __init__(self, store: OrderStore, default_table_count: Optional[int] = None):
        self.store = store
        self.default_table_count = (
            default_table_count if default_table_count is not None else settings.default_table_count
        )

    def get_open_bill(self, table_number: str) -> Optional[TableBill]:
        with self.store.reading("load table bill"):
            return self.store.get_open_bill(table_number)

    def list_open_bills(self) -> List[TableBill]:
        with self.store.reading("load table bills"):
            bills = self.store.list_open_bills()
        return sorted(bills, key=lambda bill: table_sort_key(bill.table_number))

    def add_item_to_bill(self, table_number: str, menu_item_id: int) -> TableBill:
        """Add one unit of a menu item, opening a bill for the table if needed."""
        with self.store.transaction("add item to bill"):
            menu_item = self.store.get_menu_item(menu_item_id)
            bill = self.store.get_open_bill(table_number)
            if bill is None:
                bill = self.store.new_bill(table_number)
            line = OrderItem(id=menu_item.id, name=menu_item.name, price=menu_item.price, quantity=1)
            apply_items(bill, merge_items(parse_items(bill.items), [line]))
        logger.info(f"Added menu item {menu_item_id} to table {table_number} bill")
        return bill

    def remove_item_from_bill(self, table_number: str, item_id: int) -> TableBill:
        """Remove a whole line from the table's open bill."""
        with self.store.transaction("remove item from bill"):
            bill = self.store.get_open_bill(table_number)
            if bill is None:
                raise RecordNotFound(f"Table {table_number} has no open bill")
            apply_items(bill, remove_line(parse_items(bill.items), item_id))
        return bill

    def mark_bill_as_paid(self, table_number: str, confirmed: bool = False) -> TableBill:
        """Archive the open bill as paid. Requires explicit confirmation."""
        if not confirmed:
            raise ValidationFailure("Marking a bill as paid must be confirmed")
        with self.store.transaction("mark bill as paid"):
            bill = self.store.get_open_bill(table_number)
            if bill is None:
                raise RecordNotFound(f"Table {table_number} has no open bill")
            bill.status = BillStatus.PAID.value
            bill.paid_at = utcnow()
        logger.info(f"Table {table_number} bill {bill.id} marked as paid")
        return bill

    def list_table_numbers(self) -> List[str]:
        """Tables with an open bill plus the default 1..N range."""
        with self.store.reading("load table list"):
            open_tables = self.store.open_table_numbers()
        tables = {str(n) for n in range(1, self.default_table_count + 1)}
        tables.update(open_tables)
        return sorted(tables, key=table_sort_key)


class DashboardService:
    """Everything the staff dashboard shows, reloaded after each action."""

    def __init__(self, store: OrderStore, workflow: OrderWorkflow, bills: TableBillService):
        self.store = store
        self.workflow = workflow
        self.bills = bills
        self.stats = StatsService(store)
        self.menu = MenuService(store)

    def approve(self, pending_order_id: int) -> TableBill:
        return self.workflow.approve(pending_order_id)

    def reject(self, pending_order_id: int) -> None:
        self.workflow.reject(pending_order_id)

    def dashboard_snapshot(self) -> DashboardSnapshot:
        return DashboardSnapshot(
            stats=self.stats.menu_stats(),
            pending_orders=[
                PendingOrderResponse.model_validate(order) for order in self.workflow.list_pending()
            ],
            open_bills=[TableBillResponse.model_validate(bill) for bill in self.bills.list_open_bills()],
            menu_items=[MenuItemResponse.model_validate(item) for item in self.menu.list_items()],
            tables=self.bills.list_table_numbers(),
            generated_at=utcnow(),
        )
