"""Per-tenant repository for menu items, pending orders, table bills and history.

Every write goes through `transaction()`, which commits on success and rolls
back on any error. SQLAlchemy errors surface as BackendUnavailable so the
routes can answer 503 and the caller can retry.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tableside.core.exceptions import BackendUnavailable, RecordNotFound
from tableside.models.restaurant import MenuItem, Order, PendingOrder, TableBill, TableRequest
from tableside.schemas.order import BillStatus

logger = logging.getLogger(__name__)


class OrderStore:
    """Data access for one tenant. All queries are filtered by `tenant_id`."""

    def __init__(self, db: Session, tenant_id: int):
        self.db = db
        self.tenant_id = tenant_id

    @contextmanager
    def transaction(self, operation: str) -> Iterator[Session]:
        """Run a unit of work, committing at the end.

        `operation` is used for logging and the error message ("Failed to <operation>").
        """
        try:
            yield self.db
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Store error during {operation} (tenant {self.tenant_id}): {e}")
            raise BackendUnavailable(f"Failed to {operation}")
        except Exception:
            self.db.rollback()
            raise

    @contextmanager
    def reading(self, operation: str) -> Iterator[Session]:
        try:
            yield self.db
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Store error during {operation} (tenant {self.tenant_id}): {e}")
            raise BackendUnavailable(f"Failed to {operation}")

    # ------------------------------------------------------------------
    # Menu
    # ------------------------------------------------------------------

    def get_menu_item(self, item_id: int) -> MenuItem:
        item = self.db.query(MenuItem).filter(
            MenuItem.id == item_id,
            MenuItem.tenant_id == self.tenant_id,
        ).first()
        if not item:
            raise RecordNotFound(f"Menu item {item_id} not found")
        return item

    def list_menu_items(self, category: Optional[str] = None) -> List[MenuItem]:
        query = self.db.query(MenuItem).filter(MenuItem.tenant_id == self.tenant_id)
        if category:
            query = query.filter(MenuItem.category == category)
        return query.order_by(MenuItem.category, MenuItem.name).all()

    def menu_items_by_id(self, item_ids) -> dict:
        ids = list(set(item_ids))
        if not ids:
            return {}
        rows = self.db.query(MenuItem).filter(
            MenuItem.id.in_(ids),
            MenuItem.tenant_id == self.tenant_id,
        ).all()
        return {row.id: row for row in rows}

    # ------------------------------------------------------------------
    # Pending orders
    # ------------------------------------------------------------------

    def add_pending_order(
        self,
        table_number: str,
        items: list,
        total_amount,
        payment_method: Optional[str] = None,
    ) -> PendingOrder:
        order = PendingOrder(
            tenant_id=self.tenant_id,
            table_number=table_number,
            items=items,
            total_amount=total_amount,
            status="pending_approval",
            payment_status="pending",
            payment_method=payment_method,
        )
        self.db.add(order)
        self.db.flush()
        return order

    def get_pending_order(self, order_id: int) -> PendingOrder:
        order = self.db.query(PendingOrder).filter(
            PendingOrder.id == order_id,
            PendingOrder.tenant_id == self.tenant_id,
        ).first()
        if not order:
            raise RecordNotFound(f"Pending order {order_id} not found")
        return order

    def list_pending_orders(self, table_number: Optional[str] = None) -> List[PendingOrder]:
        """Pending orders, oldest first."""
        query = self.db.query(PendingOrder).filter(PendingOrder.tenant_id == self.tenant_id)
        if table_number is not None:
            query = query.filter(PendingOrder.table_number == table_number)
        return query.order_by(PendingOrder.timestamp.asc(), PendingOrder.id.asc()).all()

    def delete_pending_order(self, order: PendingOrder) -> None:
        self.db.delete(order)
        self.db.flush()

    # ------------------------------------------------------------------
    # Table bills
    # ------------------------------------------------------------------

    def get_open_bill(self, table_number: str) -> Optional[TableBill]:
        return self.db.query(TableBill).filter(
            TableBill.tenant_id == self.tenant_id,
            TableBill.table_number == table_number,
            TableBill.status == BillStatus.OPEN.value,
        ).first()

    def list_open_bills(self) -> List[TableBill]:
        return self.db.query(TableBill).filter(
            TableBill.tenant_id == self.tenant_id,
            TableBill.status == BillStatus.OPEN.value,
        ).all()

    def new_bill(self, table_number: str) -> TableBill:
        bill = TableBill(
            tenant_id=self.tenant_id,
            table_number=table_number,
            items=[],
            status=BillStatus.OPEN.value,
        )
        self.db.add(bill)
        return bill

    def open_table_numbers(self) -> List[str]:
        rows = self.db.query(TableBill.table_number).filter(
            TableBill.tenant_id == self.tenant_id,
            TableBill.status == BillStatus.OPEN.value,
        ).distinct().all()
        return [row[0] for row in rows]

    # ------------------------------------------------------------------
    # History and requests
    # ------------------------------------------------------------------

    def add_order_history(self, pending: PendingOrder) -> Order:
        record = Order(
            tenant_id=self.tenant_id,
            pending_order_id=pending.id,
            table_number=pending.table_number,
            items=list(pending.items),
            total_amount=pending.total_amount,
            payment_method=pending.payment_method,
            status="approved",
            timestamp=pending.timestamp,
        )
        self.db.add(record)
        return record

    def list_orders(self, since: Optional[datetime] = None, until: Optional[datetime] = None) -> List[Order]:
        query = self.db.query(Order).filter(Order.tenant_id == self.tenant_id)
        if since is not None:
            query = query.filter(Order.timestamp >= since)
        if until is not None:
            query = query.filter(Order.timestamp < until)
        return query.order_by(Order.timestamp.desc()).all()

    def add_table_request(self, table_number: str, kind: str) -> TableRequest:
        request = TableRequest(tenant_id=self.tenant_id, table_number=table_number, kind=kind)
        self.db.add(request)
        self.db.flush()
        return request

    def mark_table_request_notified(self, request: TableRequest) -> None:
        request.notified = True
        self.db.flush()

    def count_table_requests(self, kind: str, since: datetime, until: datetime) -> int:
        return self.db.query(TableRequest).filter(
            TableRequest.tenant_id == self.tenant_id,
            TableRequest.kind == kind,
            TableRequest.created_at >= since,
            TableRequest.created_at < until,
        ).count()
