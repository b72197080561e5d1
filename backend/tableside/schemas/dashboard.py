"""Staff dashboard payload."""

from datetime import datetime
from typing import List

from pydantic import BaseModel

from tableside.schemas.menu import MenuItemResponse
from tableside.schemas.order import PendingOrderResponse, TableBillResponse
from tableside.schemas.stats import MenuStats


class DashboardSnapshot(BaseModel):
    stats: MenuStats
    pending_orders: List[PendingOrderResponse]
    open_bills: List[TableBillResponse]
    menu_items: List[MenuItemResponse]
    tables: List[str]
    generated_at: datetime
