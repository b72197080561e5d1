"""Public menu browsing for a venue."""

from typing import Optional

from fastapi import APIRouter, Query, Request

from tableside.api.deps import VenueStore
from tableside.core.rate_limit import limiter
from tableside.schemas.menu import MenuItemResponse, MenuResponse
from tableside.services.menu_service import MenuService, categories_of, filter_by_category

router = APIRouter()


@router.get("/venues/{tenant_id}/menu", response_model=MenuResponse)
@limiter.limit("60/minute")
def get_menu(
    request: Request,
    store: VenueStore,
    category: Optional[str] = Query(None, max_length=100),
):
    """Menu items (unavailable ones included, flagged) and the category list."""
    items = MenuService(store).list_items()
    return MenuResponse(
        categories=categories_of(items),
        items=[MenuItemResponse.model_validate(item) for item in filter_by_category(items, category)],
    )


@router.post("/venues/{tenant_id}/menu/{item_id}/view", response_model=MenuItemResponse)
@limiter.limit("120/minute")
def view_menu_item(request: Request, item_id: int, store: VenueStore):
    """Open an item's details, counting the view."""
    return MenuService(store).record_view(item_id)
