"""Menu catalog: customer browsing and staff editing."""

import logging
from typing import List, Optional

from tableside.core.exceptions import RecordNotFound, ValidationFailure
from tableside.models.restaurant import MenuItem
from tableside.schemas.menu import MenuItemCreate, MenuItemUpdate
from tableside.services.cart import Cart
from tableside.services.order_store import OrderStore

logger = logging.getLogger(__name__)


def categories_of(items) -> List[str]:
    """Distinct categories in first-seen order."""
    seen: dict[str, None] = {}
    for item in items:
        seen.setdefault(item.category, None)
    return list(seen)


def filter_by_category(items, category: Optional[str]):
    if not category or category == "all":
        return list(items)
    return [item for item in items if item.category == category]


class MenuService:
    def __init__(self, store: OrderStore):
        self.store = store

    def list_items(self, category: Optional[str] = None) -> List[MenuItem]:
        """Every item for the tenant, unavailable ones included."""
        with self.store.reading("load menu"):
            return self.store.list_menu_items(category)

    def get_item(self, item_id: int) -> MenuItem:
        with self.store.reading("load menu item"):
            return self.store.get_menu_item(item_id)

    def record_view(self, item_id: int) -> MenuItem:
        with self.store.transaction("record menu view"):
            item = self.store.get_menu_item(item_id)
            item.views = (item.views or 0) + 1
        return item

    def create_item(self, data: MenuItemCreate) -> MenuItem:
        with self.store.transaction("create menu item"):
            item = MenuItem(tenant_id=self.store.tenant_id, **data.model_dump())
            self.store.db.add(item)
        logger.info(f"Menu item '{item.name}' created (tenant {self.store.tenant_id})")
        return item

    def update_item(self, item_id: int, data: MenuItemUpdate) -> MenuItem:
        with self.store.transaction("update menu item"):
            item = self.store.get_menu_item(item_id)
            for field, value in data.model_dump(exclude_unset=True).items():
                setattr(item, field, value)
        return item


def build_cart(store: OrderStore, lines) -> Cart:
    """Rebuild a cart from posted (menu_item_id, quantity) lines using menu prices.

    Every item must exist for the tenant and be available.
    """
    with store.reading("load menu items"):
        menu = store.menu_items_by_id(line.menu_item_id for line in lines)

    cart = Cart()
    for line in lines:
        item = menu.get(line.menu_item_id)
        if item is None:
            raise RecordNotFound(f"Menu item {line.menu_item_id} not found")
        if not item.available:
            raise ValidationFailure(f"{item.name} is currently unavailable")
        for _ in range(line.quantity):
            cart.add_item(item)
    return cart
