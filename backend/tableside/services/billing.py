"""Table bill arithmetic.

Bills are always recomputed from their full item list: tax is 15% of the
current subtotal, never the sum of previously taxed amounts, so repeated
merges cannot compound rounding error.
"""

from decimal import Decimal
from typing import Iterable, List, NamedTuple

from pydantic import ValidationError

from tableside.core.exceptions import ValidationFailure
from tableside.core.money import to_money
from tableside.schemas.order import OrderItem

TAX_RATE = Decimal("0.15")


class BillTotals(NamedTuple):
    subtotal: Decimal
    tax: Decimal
    total: Decimal


def compute_totals(items: Iterable[OrderItem]) -> BillTotals:
    """Subtotal, 15% tax and total for a list of bill lines."""
    subtotal = to_money(sum((item.total for item in items), Decimal("0")))
    tax = to_money(subtotal * TAX_RATE)
    return BillTotals(subtotal=subtotal, tax=tax, total=to_money(subtotal + tax))


def merge_items(existing: Iterable[OrderItem], incoming: Iterable[OrderItem]) -> List[OrderItem]:
    """Append `incoming` to `existing`, combining quantities of lines with the same id.

    Order is preserved: existing lines keep their position, new ids are
    appended in the order they arrive. A merged line keeps the unit price it
    was first billed at.
    """
    merged: dict[int, OrderItem] = {}
    for item in list(existing) + list(incoming):
        current = merged.get(item.id)
        if current is None:
            merged[item.id] = item.model_copy()
        else:
            merged[item.id] = OrderItem(
                id=current.id,
                name=current.name,
                price=current.price,
                quantity=current.quantity + item.quantity,
            )
    return list(merged.values())


def remove_line(items: Iterable[OrderItem], item_id: int) -> List[OrderItem]:
    """Drop the whole line for `item_id` (not a single unit)."""
    return [item for item in items if item.id != item_id]


def parse_items(records) -> List[OrderItem]:
    """Validate stored JSON lines, raising ValidationFailure on malformed records."""
    if records is None:
        return []
    try:
        return [OrderItem.model_validate(record) for record in records]
    except (ValidationError, TypeError) as e:
        raise ValidationFailure(f"Malformed order item record: {e}")


def dump_items(items: Iterable[OrderItem]) -> list:
    return [item.to_record() for item in items]


def apply_items(bill, items: List[OrderItem]) -> BillTotals:
    """Replace a bill's lines and recompute its subtotal, tax and total."""
    totals = compute_totals(items)
    bill.items = dump_items(items)
    bill.subtotal = totals.subtotal
    bill.tax = totals.tax
    bill.total = totals.total
    return totals
