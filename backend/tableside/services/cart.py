"""In-memory cart held by a diner's session until an order is submitted."""

from collections import OrderedDict
from decimal import Decimal
from typing import List, Optional

from tableside.core.money import to_money
from tableside.schemas.order import OrderItem


class Cart:
    """Mapping of menu item id to a cart line.

    Totals are derived from the current lines on every call; nothing is cached.
    """

    def __init__(self):
        self._lines: "OrderedDict[int, OrderItem]" = OrderedDict()

    def add_item(self, item) -> OrderItem:
        """Add one unit of `item` (anything with id, name and price).

        A line with the same id has its quantity incremented instead.
        """
        line = self._lines.get(item.id)
        if line is None:
            line = OrderItem(id=item.id, name=item.name, price=to_money(item.price), quantity=1)
        else:
            line = OrderItem(id=line.id, name=line.name, price=line.price, quantity=line.quantity + 1)
        self._lines[item.id] = line
        return line

    def remove_item(self, item_id: int) -> None:
        self._lines.pop(item_id, None)

    def update_quantity(self, item_id: int, quantity: int) -> Optional[OrderItem]:
        """Set a line's quantity. Zero or less removes the line."""
        if quantity <= 0:
            self.remove_item(item_id)
            return None
        line = self._lines.get(item_id)
        if line is None:
            return None
        line = OrderItem(id=line.id, name=line.name, price=line.price, quantity=quantity)
        self._lines[item_id] = line
        return line

    def clear_cart(self) -> None:
        self._lines.clear()

    def get_total_amount(self) -> Decimal:
        return to_money(sum((line.price * line.quantity for line in self._lines.values()), Decimal("0")))

    def get_total_items(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    @property
    def items(self) -> List[OrderItem]:
        return [line.model_copy() for line in self._lines.values()]

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def __len__(self) -> int:
        return len(self._lines)
