"""Dashboard statistics schemas."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel

from tableside.core.money import Money


class PopularItem(BaseModel):
    id: int
    name: str
    orders: int
    views: int
    popularity_score: int


class RecentOrder(BaseModel):
    id: int
    table_number: str
    total_amount: Money
    status: str
    timestamp: datetime


class MonthlyRevenue(BaseModel):
    month: str  # YYYY-MM
    revenue: Money


class MenuStats(BaseModel):
    total_revenue: Money
    total_orders: int
    total_views: int
    popular_items: List[PopularItem]
    recent_orders: List[RecentOrder]
    monthly_revenue: List[MonthlyRevenue]


class ItemCount(BaseModel):
    name: str
    count: int


class DailySummary(BaseModel):
    day: date
    total_orders: int
    total_revenue: Money
    most_ordered_items: List[ItemCount]
    most_active_table: Optional[str] = None
    waiter_calls: int
    bill_requests: int
