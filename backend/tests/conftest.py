"""Pytest configuration and fixtures."""

import os

# Settings are read at import time, so point them at test values first
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-the-test-suite-only-0123456789")
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "")
os.environ.setdefault("TELEGRAM_CHAT_ID", "")
os.environ.setdefault("REDIS_URL", "")

import pytest
from decimal import Decimal
from typing import Generator, List, Optional

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tableside.api.deps import get_kv_store, get_notifier
from tableside.core.kv_store import MemoryKeyValueStore
from tableside.core.rbac import UserRole
from tableside.core.security import get_password_hash, create_access_token
from tableside.db.base import Base
from tableside.db.session import get_db
from tableside.main import app
# Import all models to ensure they're registered with Base.metadata
from tableside.models import *
from tableside.models.user import User
from tableside.models.restaurant import MenuItem
from tableside.services.notification_port import NotificationPort
from tableside.services.order_store import OrderStore
from tableside.services.order_workflow import OrderWorkflow
from tableside.services.telegram_service import NotificationService

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


class FakeNotifier(NotificationPort):
    """Records outbound messages instead of calling Telegram."""

    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.messages: List[str] = []
        self.photos: List[dict] = []

    async def send_message(self, text: str) -> bool:
        self.messages.append(text)
        return self.succeed

    async def send_photo(
        self,
        photo: bytes,
        caption: str,
        filename: str = "payment.jpg",
        content_type: Optional[str] = None,
    ) -> bool:
        self.photos.append({
            "photo": photo,
            "caption": caption,
            "filename": filename,
            "content_type": content_type,
        })
        return self.succeed


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def kv_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture(scope="function")
def client(db_session: Session, notifier: FakeNotifier, kv_store) -> Generator[TestClient, None, None]:
    """Create a test client with database, notifier and key-value store overrides."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_kv_store] = lambda: kv_store
    # Disable rate limiters during tests to avoid flaky failures
    from tableside.core.rate_limit import limiter as global_limiter
    global_limiter.enabled = False
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    global_limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture
def merchant(db_session: Session) -> User:
    """Create a merchant owner account (its own tenant)."""
    user = User(
        email="owner@example.com",
        password_hash=get_password_hash("testpass123"),
        role=UserRole.OWNER,
        name="Test Owner",
        business_name="Test Bistro",
        is_active=True,
    )
    db_session.add(user)
    db_session.flush()
    user.tenant_id = user.id
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def other_merchant(db_session: Session) -> User:
    user = User(
        email="other@example.com",
        password_hash=get_password_hash("otherpass123"),
        role=UserRole.OWNER,
        business_name="Other Cafe",
        is_active=True,
    )
    db_session.add(user)
    db_session.flush()
    user.tenant_id = user.id
    db_session.commit()
    db_session.refresh(user)
    return user


def _token_for(user: User, role: UserRole = None) -> str:
    return create_access_token(
        data={
            "sub": str(user.id),
            "email": user.email,
            "role": (role or user.role).value,
            "tenant_id": user.tenant_id,
        }
    )


@pytest.fixture
def auth_token(merchant: User) -> str:
    """Get an authentication token for the merchant owner."""
    return _token_for(merchant)


@pytest.fixture
def auth_headers(auth_token: str) -> dict:
    """Get authentication headers."""
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def staff_headers(db_session: Session, merchant: User) -> dict:
    """Headers for a staff member of the merchant's venue."""
    staff = User(
        email="staff@example.com",
        password_hash=get_password_hash("staffpass123"),
        role=UserRole.STAFF,
        name="Floor Staff",
        tenant_id=merchant.id,
        is_active=True,
    )
    db_session.add(staff)
    db_session.commit()
    db_session.refresh(staff)
    return {"Authorization": f"Bearer {_token_for(staff)}"}


@pytest.fixture
def menu(db_session: Session, merchant: User) -> dict:
    """Seed a small menu: two mains, a drink and an unavailable dessert."""
    items = {
        "burger": MenuItem(
            tenant_id=merchant.id, name="Burger", price=Decimal("12.99"),
            category="Mains", preparation_time=15, available=True,
        ),
        "salad": MenuItem(
            tenant_id=merchant.id, name="Salad", price=Decimal("8.99"),
            category="Mains", preparation_time=5, available=True,
        ),
        "soda": MenuItem(
            tenant_id=merchant.id, name="Soda", price=Decimal("2.50"),
            category="Drinks", available=True,
        ),
        "cake": MenuItem(
            tenant_id=merchant.id, name="Cake", price=Decimal("6.00"),
            category="Desserts", available=False,
        ),
    }
    db_session.add_all(items.values())
    db_session.commit()
    for item in items.values():
        db_session.refresh(item)
    return items


@pytest.fixture
def store(db_session: Session, merchant: User) -> OrderStore:
    return OrderStore(db_session, merchant.id)


@pytest.fixture
def notifications(notifier: FakeNotifier) -> NotificationService:
    return NotificationService(notifier, currency_symbol="$")


@pytest.fixture
def workflow(store: OrderStore, notifications: NotificationService) -> OrderWorkflow:
    return OrderWorkflow(store, notifications)
