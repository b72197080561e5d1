"""Restaurant ordering models - menu, pending orders, table bills, order history."""

from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, DateTime, Numeric, Boolean, ForeignKey, Text, JSON, Index, text,
)
from sqlalchemy.orm import validates

from tableside.db.base import Base, utcnow
from tableside.models.validators import non_negative, validate_list_of_dicts


class MenuItem(Base):
    """Menu item for ordering. Never deleted in-flow; staff toggle `available` instead."""
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True, default="")
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String(100), nullable=False)

    photo = Column(String(500), nullable=True)
    available = Column(Boolean, default=True)
    preparation_time = Column(Integer, default=0)  # minutes

    ingredients = Column(Text, nullable=True)
    allergens = Column(Text, nullable=True)

    popularity_score = Column(Integer, default=0)
    views = Column(Integer, default=0)
    orders = Column(Integer, default=0)

    created_at = Column(DateTime, default=utcnow)
    last_updated = Column(DateTime, default=utcnow, onupdate=utcnow)

    @validates('price', 'preparation_time', 'popularity_score', 'views', 'orders')
    def _validate_non_negative(self, key, value):
        return non_negative(key, value)


class PendingOrder(Base):
    """Order submitted by a table and awaiting staff approval."""
    __tablename__ = "pending_orders"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    table_number = Column(String(20), nullable=False, index=True)

    items = Column(JSON, nullable=False)  # List of OrderItem dicts
    total_amount = Column(Numeric(10, 2), nullable=False)

    status = Column(String(20), default="pending_approval")
    payment_status = Column(String(20), default="pending")
    payment_method = Column(String(20), nullable=True)  # bank_transfer, mobile

    timestamp = Column(DateTime, default=utcnow)

    @validates('total_amount')
    def _validate_amounts(self, key, value):
        return non_negative(key, value)

    @validates('items')
    def _validate_items(self, key, value):
        return validate_list_of_dicts(key, value)


class TableBill(Base):
    """Running bill for a table across approved orders and staff-added items."""
    __tablename__ = "table_bills"
    __table_args__ = (
        # At most one open bill per table
        Index(
            "uq_table_bills_open_table",
            "tenant_id", "table_number",
            unique=True,
            sqlite_where=text("status = 'open'"),
            postgresql_where=text("status = 'open'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    table_number = Column(String(20), nullable=False)

    items = Column(JSON, nullable=False, default=list)
    subtotal = Column(Numeric(10, 2), default=Decimal("0"))
    tax = Column(Numeric(10, 2), default=Decimal("0"))
    total = Column(Numeric(10, 2), default=Decimal("0"))

    status = Column(String(20), default="open")  # open, paid

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    paid_at = Column(DateTime, nullable=True)

    @validates('subtotal', 'tax', 'total')
    def _validate_amounts(self, key, value):
        return non_negative(key, value)

    @validates('items')
    def _validate_items(self, key, value):
        return validate_list_of_dicts(key, value)


class Order(Base):
    """Approved order history. Feeds dashboard statistics and daily summaries."""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    pending_order_id = Column(Integer, nullable=True)
    table_number = Column(String(20), nullable=False)

    items = Column(JSON, nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(String(20), nullable=True)
    status = Column(String(20), default="approved")

    timestamp = Column(DateTime, nullable=False)  # when the diner submitted it
    approved_at = Column(DateTime, default=utcnow)

    @validates('total_amount')
    def _validate_amounts(self, key, value):
        return non_negative(key, value)


class TableRequest(Base):
    """A waiter call or bill request made from a table."""
    __tablename__ = "table_requests"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    table_number = Column(String(20), nullable=False)
    kind = Column(String(20), nullable=False)  # waiter_call, bill_request
    notified = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)
