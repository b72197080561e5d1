"""Tests for the in-memory cart."""

from decimal import Decimal
from types import SimpleNamespace

from tableside.services.cart import Cart


def _item(item_id, price, name=None):
    return SimpleNamespace(id=item_id, name=name or f"Item {item_id}", price=Decimal(price))


class TestCartTotals:
    def test_example_cart_totals(self):
        cart = Cart()
        burger = _item(1, "12.99", "Burger")
        salad = _item(2, "8.99", "Salad")
        cart.add_item(burger)
        cart.add_item(salad)
        cart.add_item(salad)

        assert cart.get_total_amount() == Decimal("30.97")
        assert cart.get_total_items() == 3

    def test_add_same_item_increments_quantity(self):
        cart = Cart()
        soda = _item(3, "2.50")
        cart.add_item(soda)
        cart.add_item(soda)

        assert len(cart) == 1
        assert cart.items[0].quantity == 2
        assert cart.items[0].total == Decimal("5.00")

    def test_totals_follow_every_mutation(self):
        cart = Cart()
        a, b, c = _item(1, "12.99"), _item(2, "8.99"), _item(3, "0.10")
        for item in (a, b, b, c):
            cart.add_item(item)

        cart.update_quantity(2, 5)
        assert cart.get_total_amount() == Decimal("12.99") + Decimal("8.99") * 5 + Decimal("0.10")

        cart.remove_item(1)
        assert cart.get_total_amount() == Decimal("8.99") * 5 + Decimal("0.10")
        assert cart.get_total_items() == 6

    def test_items_keep_insertion_order(self):
        cart = Cart()
        for item_id in (5, 2, 9):
            cart.add_item(_item(item_id, "1.00"))
        cart.add_item(_item(2, "1.00"))

        assert [line.id for line in cart.items] == [5, 2, 9]


class TestCartEditing:
    def test_update_quantity_to_zero_removes_line(self):
        cart = Cart()
        cart.add_item(_item(1, "4.00"))
        assert cart.update_quantity(1, 0) is None
        assert cart.is_empty

    def test_update_quantity_negative_removes_line(self):
        cart = Cart()
        cart.add_item(_item(1, "4.00"))
        cart.update_quantity(1, -3)
        assert cart.is_empty

    def test_update_unknown_item_is_ignored(self):
        cart = Cart()
        assert cart.update_quantity(42, 2) is None
        assert cart.is_empty

    def test_remove_unknown_item_is_ignored(self):
        cart = Cart()
        cart.add_item(_item(1, "4.00"))
        cart.remove_item(99)
        assert cart.get_total_items() == 1

    def test_clear_cart(self):
        cart = Cart()
        cart.add_item(_item(1, "4.00"))
        cart.add_item(_item(2, "3.00"))
        cart.clear_cart()

        assert cart.is_empty
        assert cart.get_total_amount() == Decimal("0.00")
        assert cart.get_total_items() == 0

    def test_items_are_copies(self):
        cart = Cart()
        cart.add_item(_item(1, "4.00"))
        cart.items[0].quantity = 50
        assert cart.get_total_items() == 1
