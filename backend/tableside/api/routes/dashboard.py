"""Staff dashboard: pending order approval, table bills, menu editing and statistics."""

import asyncio
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Query, Request, status
from pydantic import BaseModel

from tableside.api.deps import KeyValueStore, Notifications, StaffStore, TableNumber
from tableside.core.rate_limit import limiter
from tableside.core.rbac import RequireManager, RequireStaff
from tableside.schemas.dashboard import DashboardSnapshot
from tableside.schemas.feedback import FeedbackRecord
from tableside.schemas.menu import MenuItemCreate, MenuItemResponse, MenuItemUpdate
from tableside.schemas.order import (
    AddBillItemRequest,
    MarkPaidRequest,
    PendingOrderResponse,
    TableBillResponse,
)
from tableside.schemas.stats import DailySummary, MenuStats
from tableside.services.feedback_store import KeyValueFeedbackStore
from tableside.services.menu_service import MenuService
from tableside.services.notification_port import deliver
from tableside.services.order_workflow import OrderWorkflow
from tableside.services.stats_service import StatsService
from tableside.services.table_bill_service import DashboardService, TableBillService

logger = logging.getLogger(__name__)

router = APIRouter()


class RejectResponse(BaseModel):
    id: int
    status: str = "rejected"


class DailySummaryDispatch(BaseModel):
    summary: DailySummary
    sent: bool


def _dashboard(store, notifications) -> DashboardService:
    return DashboardService(store, OrderWorkflow(store, notifications), TableBillService(store))


@router.get("", response_model=DashboardSnapshot)
@limiter.limit("60/minute")
def get_dashboard(request: Request, current_user: RequireStaff, store: StaffStore, notifications: Notifications):
    """Stats, pending orders, open bills, menu and tables in one payload."""
    return _dashboard(store, notifications).dashboard_snapshot()


@router.get("/stats", response_model=MenuStats)
@limiter.limit("60/minute")
def get_stats(request: Request, current_user: RequireStaff, store: StaffStore):
    return StatsService(store).menu_stats()


# ----------------------------------------------------------------------
# Pending orders
# ----------------------------------------------------------------------

@router.get("/pending-orders", response_model=List[PendingOrderResponse])
@limiter.limit("60/minute")
def list_pending_orders(
    request: Request,
    current_user: RequireStaff,
    store: StaffStore,
    notifications: Notifications,
    table_number: Optional[str] = Query(None, max_length=20),
):
    """Pending orders, oldest first."""
    return OrderWorkflow(store, notifications).list_pending(table_number)


@router.post("/pending-orders/{order_id}/approve", response_model=TableBillResponse)
@limiter.limit("60/minute")
def approve_pending_order(
    request: Request, order_id: int, current_user: RequireStaff, store: StaffStore, notifications: Notifications,
):
    """Approve an order, merging it into the table's open bill."""
    bill = _dashboard(store, notifications).approve(order_id)
    logger.info(f"Order {order_id} approved by user {current_user.user_id}")
    return bill


@router.post("/pending-orders/{order_id}/reject", response_model=RejectResponse)
@limiter.limit("60/minute")
def reject_pending_order(
    request: Request, order_id: int, current_user: RequireStaff, store: StaffStore, notifications: Notifications,
):
    _dashboard(store, notifications).reject(order_id)
    logger.info(f"Order {order_id} rejected by user {current_user.user_id}")
    return RejectResponse(id=order_id)


# ----------------------------------------------------------------------
# Table bills
# ----------------------------------------------------------------------

@router.get("/tables", response_model=List[str])
@limiter.limit("60/minute")
def list_tables(request: Request, current_user: RequireStaff, store: StaffStore):
    return TableBillService(store).list_table_numbers()


@router.get("/tables/{table_number}/bill", response_model=Optional[TableBillResponse])
@limiter.limit("60/minute")
def get_bill(request: Request, table_number: TableNumber, current_user: RequireStaff, store: StaffStore):
    return TableBillService(store).get_open_bill(table_number)


@router.post("/tables/{table_number}/bill/items", response_model=TableBillResponse)
@limiter.limit("60/minute")
def add_bill_item(
    request: Request,
    table_number: TableNumber,
    body: AddBillItemRequest,
    current_user: RequireStaff,
    store: StaffStore,
):
    """Add one unit of a menu item to the table's bill."""
    return TableBillService(store).add_item_to_bill(table_number, body.menu_item_id)


@router.delete("/tables/{table_number}/bill/items/{item_id}", response_model=TableBillResponse)
@limiter.limit("60/minute")
def remove_bill_item(
    request: Request, table_number: TableNumber, item_id: int, current_user: RequireStaff, store: StaffStore,
):
    """Remove a whole line from the table's bill."""
    return TableBillService(store).remove_item_from_bill(table_number, item_id)


@router.post("/tables/{table_number}/bill/mark-paid", response_model=TableBillResponse)
@limiter.limit("30/minute")
def mark_bill_paid(
    request: Request,
    table_number: TableNumber,
    body: MarkPaidRequest,
    current_user: RequireStaff,
    store: StaffStore,
):
    """Close the table's bill. The body must carry `"confirm": true`."""
    bill = TableBillService(store).mark_bill_as_paid(table_number, confirmed=body.confirm)
    logger.info(f"Table {table_number} bill marked paid by user {current_user.user_id}")
    return bill


# ----------------------------------------------------------------------
# Daily summary and feedback
# ----------------------------------------------------------------------

@router.get("/daily-summary", response_model=DailySummary)
@limiter.limit("30/minute")
def preview_daily_summary(
    request: Request, current_user: RequireStaff, store: StaffStore, day: Optional[date] = None,
):
    return StatsService(store).daily_summary(day)


@router.post("/daily-summary", response_model=DailySummaryDispatch)
@limiter.limit("10/minute")
async def send_daily_summary(
    request: Request,
    current_user: RequireManager,
    store: StaffStore,
    notifications: Notifications,
    day: Optional[date] = None,
):
    """Send the daily summary to the staff channel."""
    summary = await asyncio.to_thread(StatsService(store).daily_summary, day)
    sent = await deliver(notifications.send_daily_summary(summary), "Daily summary")
    return DailySummaryDispatch(summary=summary, sent=sent)


@router.get("/feedback", response_model=List[FeedbackRecord])
@limiter.limit("30/minute")
def list_feedback(request: Request, current_user: RequireStaff, store: StaffStore, kv: KeyValueStore):
    return KeyValueFeedbackStore(kv, store.tenant_id).list()


# ----------------------------------------------------------------------
# Menu editing
# ----------------------------------------------------------------------

@router.get("/menu/items", response_model=List[MenuItemResponse])
@limiter.limit("60/minute")
def list_menu_items(
    request: Request, current_user: RequireStaff, store: StaffStore, category: Optional[str] = None,
):
    return MenuService(store).list_items(category)


@router.post("/menu/items", response_model=MenuItemResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_menu_item(request: Request, body: MenuItemCreate, current_user: RequireManager, store: StaffStore):
    return MenuService(store).create_item(body)


@router.put("/menu/items/{item_id}", response_model=MenuItemResponse)
@limiter.limit("30/minute")
def update_menu_item(
    request: Request, item_id: int, body: MenuItemUpdate, current_user: RequireManager, store: StaffStore,
):
    """Edit any field, including availability. Items are never deleted."""
    return MenuService(store).update_item(item_id, body)
