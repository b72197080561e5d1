"""SQLAlchemy models."""

from tableside.models.user import User
from tableside.models.restaurant import (
    MenuItem,
    PendingOrder,
    TableBill,
    Order,
    TableRequest,
)

__all__ = [
    "User",
    "MenuItem",
    "PendingOrder",
    "TableBill",
    "Order",
    "TableRequest",
]
