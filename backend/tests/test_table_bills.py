"""Tests for staff bill management and the table list."""

import pytest
from decimal import Decimal

from tableside.core.exceptions import BackendUnavailable, RecordNotFound, ValidationFailure
from tableside.models.restaurant import TableBill
from tableside.services.cart import Cart
from tableside.services.table_bill_service import DashboardService, TableBillService, table_sort_key


@pytest.fixture
def bills(store) -> TableBillService:
    return TableBillService(store, default_table_count=10)


def _amounts(bill):
    return tuple(Decimal(str(v)) for v in (bill.subtotal, bill.tax, bill.total))


class TestAddAndRemove:
    def test_add_starts_a_bill(self, bills, menu):
        bill = bills.add_item_to_bill("3", menu["burger"].id)

        assert bill.status == "open"
        assert bill.items[0]["name"] == "Burger"
        assert bill.items[0]["quantity"] == 1
        # 12.99 * 0.15 = 1.9485
        assert _amounts(bill) == (Decimal("12.99"), Decimal("1.95"), Decimal("14.94"))

    def test_add_again_increments_line(self, bills, menu, db_session):
        bills.add_item_to_bill("3", menu["soda"].id)
        bill = bills.add_item_to_bill("3", menu["soda"].id)

        assert db_session.query(TableBill).count() == 1
        assert len(bill.items) == 1
        assert bill.items[0]["quantity"] == 2
        assert _amounts(bill) == (Decimal("5.00"), Decimal("0.75"), Decimal("5.75"))

    def test_add_unknown_menu_item(self, bills, menu, db_session):
        with pytest.raises(RecordNotFound):
            bills.add_item_to_bill("3", 9999)
        assert db_session.query(TableBill).count() == 0

    def test_add_other_tenants_item(self, db_session, store, other_merchant):
        from tableside.models.restaurant import MenuItem
        foreign = MenuItem(tenant_id=other_merchant.id, name="Tea", price=Decimal("1.00"), category="Drinks")
        db_session.add(foreign)
        db_session.commit()

        with pytest.raises(RecordNotFound):
            TableBillService(store).add_item_to_bill("1", foreign.id)

    def test_remove_deletes_whole_line(self, bills, menu):
        bills.add_item_to_bill("3", menu["soda"].id)
        bills.add_item_to_bill("3", menu["soda"].id)
        bills.add_item_to_bill("3", menu["salad"].id)

        bill = bills.remove_item_from_bill("3", menu["soda"].id)

        assert [item["id"] for item in bill.items] == [menu["salad"].id]
        # 8.99 * 0.15 = 1.3485
        assert _amounts(bill) == (Decimal("8.99"), Decimal("1.35"), Decimal("10.34"))

    def test_remove_without_bill(self, bills, menu):
        with pytest.raises(RecordNotFound):
            bills.remove_item_from_bill("3", menu["soda"].id)


class TestMarkPaid:
    def test_requires_confirmation(self, bills, menu):
        bills.add_item_to_bill("2", menu["burger"].id)

        with pytest.raises(ValidationFailure):
            bills.mark_bill_as_paid("2", confirmed=False)

        assert bills.get_open_bill("2") is not None

    def test_paid_bill_is_archived_and_next_add_starts_fresh(self, bills, menu, db_session):
        bills.add_item_to_bill("2", menu["burger"].id)
        bills.add_item_to_bill("2", menu["salad"].id)

        paid = bills.mark_bill_as_paid("2", confirmed=True)

        assert paid.status == "paid"
        assert paid.paid_at is not None
        assert bills.get_open_bill("2") is None

        fresh = bills.add_item_to_bill("2", menu["soda"].id)
        assert fresh.id != paid.id
        assert [item["id"] for item in fresh.items] == [menu["soda"].id]
        assert _amounts(fresh) == (Decimal("2.50"), Decimal("0.38"), Decimal("2.88"))
        assert db_session.query(TableBill).count() == 2

    def test_without_open_bill(self, bills, menu):
        with pytest.raises(RecordNotFound):
            bills.mark_bill_as_paid("2", confirmed=True)


class TestOpenBillConstraint:
    def test_two_open_bills_for_one_table_rejected(self, store, merchant):
        with pytest.raises(BackendUnavailable):
            with store.transaction("open bill"):
                store.new_bill("5")
                store.new_bill("5")

    def test_paid_bills_do_not_conflict(self, bills, menu, db_session):
        bills.add_item_to_bill("5", menu["soda"].id)
        bills.mark_bill_as_paid("5", confirmed=True)
        bills.add_item_to_bill("5", menu["soda"].id)
        bills.mark_bill_as_paid("5", confirmed=True)
        bills.add_item_to_bill("5", menu["soda"].id)

        assert db_session.query(TableBill).filter(TableBill.status == "paid").count() == 2


class TestTableNumbers:
    def test_default_range(self, bills, merchant):
        assert bills.list_table_numbers() == [str(n) for n in range(1, 11)]

    def test_open_bill_outside_range_is_included(self, bills, menu):
        bills.add_item_to_bill("12", menu["soda"].id)
        assert bills.list_table_numbers() == [str(n) for n in range(1, 11)] + ["12"]

    def test_non_numeric_codes_sort_last(self, bills, menu):
        bills.add_item_to_bill("T2", menu["soda"].id)
        bills.add_item_to_bill("Bar", menu["soda"].id)
        bills.add_item_to_bill("4", menu["soda"].id)

        tables = bills.list_table_numbers()
        assert tables[-2:] == ["Bar", "T2"]
        assert tables.count("4") == 1

    def test_paid_bills_not_listed(self, bills, menu):
        bills.add_item_to_bill("15", menu["soda"].id)
        bills.mark_bill_as_paid("15", confirmed=True)
        assert "15" not in bills.list_table_numbers()

    def test_sort_key(self):
        assert sorted(["10", "9", "A", "2"], key=table_sort_key) == ["2", "9", "10", "A"]


class TestDashboardSnapshot:
    @pytest.mark.asyncio
    async def test_snapshot_contents(self, store, workflow, bills, menu):
        cart = Cart()
        cart.add_item(menu["burger"])
        approved = await workflow.submit_order("1", cart)
        workflow.approve(approved.order.id)
        cart.add_item(menu["salad"])
        await workflow.submit_order("2", cart)

        snapshot = DashboardService(store, workflow, bills).dashboard_snapshot()

        assert [o.table_number for o in snapshot.pending_orders] == ["2"]
        assert [b.table_number for b in snapshot.open_bills] == ["1"]
        assert len(snapshot.menu_items) == 4
        assert snapshot.tables == [str(n) for n in range(1, 11)]
        assert snapshot.stats.total_orders == 1
