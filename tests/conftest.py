"""Test configuration and fixtures"""

import os

# Settings are read at import time; point the app at SQLite before importing it
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import datetime, time

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from tablebook.main import app
from tablebook.database import Base, get_db
from tablebook.models.restaurant import OperatingHours, Restaurant, RestaurantTable
from tablebook.models.user import User, UserRole
from tablebook.services.clock import get_clock
from tablebook.services.notifications import get_notifier
from tablebook.api.auth import create_access_token, hash_password


# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Monday morning; Monday 2025-06-02 is the first bookable day
NOW = datetime(2025, 6, 2, 9, 0)


class FixedClock:
    """Clock frozen at a given instant"""

    def __init__(self, now: datetime = NOW):
        self.current = now

    def now(self) -> datetime:
        return self.current


class RecordingNotifier:
    """Collects notifications instead of enqueueing Celery tasks"""

    def __init__(self):
        self.events = []
        self.approvals = []

    def reservation_event(self, reservation_id: int, event: str) -> None:
        self.events.append((reservation_id, event))

    def restaurant_approved(self, restaurant_id: int) -> None:
        self.approvals.append(restaurant_id)


def auth_header(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
async def test_db():
    """Create test database"""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


async def _create_user(db, email: str, role: UserRole, first_name: str) -> User:
    user = User(
        email=email,
        hashed_password=hash_password("testpass123"),
        first_name=first_name,
        last_name="Tester",
        phone="+15551234567",
        role=role,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def customer(test_db):
    return await _create_user(test_db, "customer@example.com", UserRole.CUSTOMER, "Casey")


@pytest.fixture
async def other_customer(test_db):
    return await _create_user(test_db, "other@example.com", UserRole.CUSTOMER, "Olive")


@pytest.fixture
async def manager(test_db):
    return await _create_user(test_db, "manager@example.com", UserRole.RESTAURANT_MANAGER, "Morgan")


@pytest.fixture
async def other_manager(test_db):
    return await _create_user(test_db, "rival@example.com", UserRole.RESTAURANT_MANAGER, "Riley")


@pytest.fixture
async def admin(test_db):
    return await _create_user(test_db, "admin@example.com", UserRole.ADMIN, "Ada")


@pytest.fixture
async def bistro(test_db, manager):
    """Approved restaurant with one 4-seat table, open Monday 09:00-22:00"""
    restaurant = Restaurant(
        manager_id=manager.id,
        name="Bistro",
        cuisine_type="French",
        city="Lyon",
        zip_code="69001",
        cost_rating=2,
        is_approved=True,
    )
    test_db.add(restaurant)
    await test_db.flush()

    test_db.add(
        OperatingHours(
            restaurant_id=restaurant.id,
            day_of_week="Monday",
            opening_time=time(9, 0),
            closing_time=time(22, 0),
        )
    )
    test_db.add(RestaurantTable(restaurant_id=restaurant.id, table_number="T1", capacity=4))
    await test_db.commit()

    return restaurant


@pytest.fixture
async def bistro_table(test_db, bistro):
    """The Bistro's only table"""
    return await test_db.scalar(
        select(RestaurantTable).where(RestaurantTable.restaurant_id == bistro.id)
    )


@pytest.fixture
async def client(test_db, clock, notifier):
    """Create test client with overridden database, clock and notifier"""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_notifier] = lambda: notifier

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def customer_headers(customer):
    return auth_header(customer)


@pytest.fixture
def other_customer_headers(other_customer):
    return auth_header(other_customer)


@pytest.fixture
def manager_headers(manager):
    return auth_header(manager)


@pytest.fixture
def other_manager_headers(other_manager):
    return auth_header(other_manager)


@pytest.fixture
def admin_headers(admin):
    return auth_header(admin)
