"""Shared route dependencies: venue resolution, store, notifier and key-value store."""

import logging
from typing import Annotated, Optional

from fastapi import Depends, Path

from tableside.core.config import settings
from tableside.core.exceptions import RecordNotFound
from tableside.core.kv_store import build_kv_store
from tableside.core.rbac import RequireStaff
from tableside.db.session import DbSession
from tableside.models.user import User
from tableside.services.notification_port import NotificationPort
from tableside.services.order_store import OrderStore
from tableside.services.telegram_service import NotificationService, TelegramGateway

logger = logging.getLogger(__name__)

# Table codes are embedded in staff messages, so keep them to a safe alphabet
TABLE_NUMBER_PATTERN = r"^[A-Za-z0-9-]{1,20}$"

TableNumber = Annotated[str, Path(pattern=TABLE_NUMBER_PATTERN, description="Table code, e.g. 7 or T12")]

_notifier: Optional[NotificationPort] = None
_kv_store = None


def get_notifier() -> NotificationPort:
    """Process-wide Telegram gateway, created on first use."""
    global _notifier
    if _notifier is None:
        _notifier = TelegramGateway()
    return _notifier


async def close_notifier() -> None:
    global _notifier
    if _notifier is not None:
        await _notifier.close()
        _notifier = None


def get_kv_store():
    global _kv_store
    if _kv_store is None:
        _kv_store = build_kv_store(settings.redis_url)
    return _kv_store


def get_notification_service(
    notifier: Annotated[NotificationPort, Depends(get_notifier)],
) -> NotificationService:
    return NotificationService(notifier)


def get_venue_store(
    db: DbSession,
    tenant_id: Annotated[int, Path(gt=0, description="Merchant (tenant) id")],
) -> OrderStore:
    """Store for a public venue URL. Unknown or inactive merchants are a 404."""
    merchant = db.query(User).filter(User.id == tenant_id, User.tenant_id == tenant_id).first()
    if merchant is None or not merchant.is_active:
        raise RecordNotFound("Venue not found")
    return OrderStore(db, tenant_id)


def get_staff_store(db: DbSession, current_user: RequireStaff) -> OrderStore:
    return OrderStore(db, current_user.tenant_id)


VenueStore = Annotated[OrderStore, Depends(get_venue_store)]
StaffStore = Annotated[OrderStore, Depends(get_staff_store)]
Notifications = Annotated[NotificationService, Depends(get_notification_service)]
KeyValueStore = Annotated[object, Depends(get_kv_store)]
