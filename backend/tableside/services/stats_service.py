"""Dashboard statistics and the daily summary, rebuilt from approved order history."""

import logging
from collections import Counter, defaultdict
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional

from tableside.core.money import to_money
from tableside.db.base import utcnow
from tableside.schemas.stats import (
    DailySummary,
    ItemCount,
    MenuStats,
    MonthlyRevenue,
    PopularItem,
    RecentOrder,
)
from tableside.services.billing import parse_items
from tableside.services.order_store import OrderStore

logger = logging.getLogger(__name__)

RECENT_ORDERS_LIMIT = 10
POPULAR_ITEMS_LIMIT = 10
MONTHS_OF_REVENUE = 12


class StatsService:
    def __init__(self, store: OrderStore):
        self.store = store

    def menu_stats(self) -> MenuStats:
        with self.store.reading("load dashboard statistics"):
            orders = self.store.list_orders()
            menu = self.store.list_menu_items()

        total_revenue = to_money(sum((Decimal(str(o.total_amount)) for o in orders), Decimal("0")))

        ranked = sorted(
            (item for item in menu if (item.orders or 0) > 0),
            key=lambda item: (-(item.orders or 0), item.name),
        )
        popular = [
            PopularItem(
                id=item.id,
                name=item.name,
                orders=item.orders or 0,
                views=item.views or 0,
                popularity_score=item.popularity_score or 0,
            )
            for item in ranked[:POPULAR_ITEMS_LIMIT]
        ]

        # list_orders is newest first
        recent = [
            RecentOrder(
                id=o.id,
                table_number=o.table_number,
                total_amount=to_money(o.total_amount),
                status=o.status,
                timestamp=o.timestamp,
            )
            for o in orders[:RECENT_ORDERS_LIMIT]
        ]

        by_month: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
        for o in orders:
            by_month[o.timestamp.strftime("%Y-%m")] += Decimal(str(o.total_amount))
        months = sorted(by_month)[-MONTHS_OF_REVENUE:]

        return MenuStats(
            total_revenue=total_revenue,
            total_orders=len(orders),
            total_views=sum(item.views or 0 for item in menu),
            popular_items=popular,
            recent_orders=recent,
            monthly_revenue=[MonthlyRevenue(month=m, revenue=to_money(by_month[m])) for m in months],
        )

    def daily_summary(self, day: Optional[date] = None) -> DailySummary:
        """Summary of one UTC calendar day (today by default)."""
        day = day or utcnow().date()
        start = datetime.combine(day, time.min)
        end = start + timedelta(days=1)

        with self.store.reading("build daily summary"):
            orders = self.store.list_orders(since=start, until=end)
            waiter_calls = self.store.count_table_requests("waiter_call", start, end)
            bill_requests = self.store.count_table_requests("bill_request", start, end)

        item_counts: Counter = Counter()
        table_counts: Counter = Counter()
        for o in orders:
            table_counts[o.table_number] += 1
            for item in parse_items(o.items):
                item_counts[item.name] += item.quantity

        most_ordered = sorted(item_counts.items(), key=lambda pair: (-pair[1], pair[0]))
        most_active = table_counts.most_common(1)[0][0] if table_counts else None

        return DailySummary(
            day=day,
            total_orders=len(orders),
            total_revenue=to_money(sum((Decimal(str(o.total_amount)) for o in orders), Decimal("0"))),
            most_ordered_items=[ItemCount(name=name, count=count) for name, count in most_ordered],
            most_active_table=most_active,
            waiter_calls=waiter_calls,
            bill_requests=bill_requests,
        )
