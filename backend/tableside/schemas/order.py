"""Order, cart and table bill schemas."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tableside.core.money import Money, to_money


class PaymentMethod(str, Enum):
    """Method a diner picks when uploading a payment screenshot."""

    BANK_TRANSFER = "bank_transfer"
    MOBILE_MONEY = "mobile_money"

    @property
    def label(self) -> str:
        return "Bank Transfer" if self is PaymentMethod.BANK_TRANSFER else "Mobile Money"

    @property
    def stored_value(self) -> str:
        """Value recorded on the pending order (bank_transfer or mobile)."""
        return "bank_transfer" if self is PaymentMethod.BANK_TRANSFER else "mobile"


class OrderStatus(str, Enum):
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"


class BillStatus(str, Enum):
    OPEN = "open"
    PAID = "paid"


class OrderItem(BaseModel):
    """One line of a cart, pending order or table bill. `total` is always price x quantity."""

    id: int
    name: str
    price: Money = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    total: Optional[Money] = None

    @model_validator(mode="after")
    def _compute_total(self):
        self.price = to_money(self.price)
        self.total = to_money(self.price * self.quantity)
        return self

    def to_record(self) -> dict:
        """JSON-column representation."""
        return {
            "id": self.id,
            "name": self.name,
            "price": float(self.price),
            "quantity": self.quantity,
            "total": float(self.total),
        }


class CartLine(BaseModel):
    """A line posted by the diner's client; price and name come from the menu."""

    menu_item_id: int = Field(..., gt=0)
    quantity: int = Field(..., ge=1, le=99)


class PlaceOrderRequest(BaseModel):
    items: List[CartLine] = Field(default_factory=list, max_length=50)


class PendingOrderResponse(BaseModel):
    id: int
    table_number: str
    items: List[OrderItem]
    total_amount: Money
    timestamp: datetime
    status: OrderStatus = OrderStatus.PENDING_APPROVAL
    payment_status: str = "pending"
    payment_method: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class TableBillResponse(BaseModel):
    id: int
    table_number: str
    items: List[OrderItem]
    subtotal: Money
    tax: Money
    total: Money
    status: BillStatus = BillStatus.OPEN
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SubmissionResponse(BaseModel):
    """Outcome of a customer submission. `notified` is False when the staff channel failed."""

    submitted: bool
    notified: bool
    message: str
    order: Optional[PendingOrderResponse] = None


class TableSnapshotResponse(BaseModel):
    table_number: str
    bill: Optional[TableBillResponse] = None
    pending_orders: List[PendingOrderResponse] = []
    fetched_at: datetime


class AddBillItemRequest(BaseModel):
    menu_item_id: int = Field(..., gt=0)


class MarkPaidRequest(BaseModel):
    confirm: bool = False


class PaymentInstructions(BaseModel):
    method: PaymentMethod
    lines: List[str]
    reference: str


class BillPaymentResponse(BaseModel):
    notified: bool
    message: str
    bill: TableBillResponse


class TableRequestResponse(BaseModel):
    kind: str
    notified: bool
    message: str
