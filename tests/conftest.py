"""
Test Suite Configuration
"""
import fnmatch
from datetime import datetime
from typing import AsyncGenerator, Dict, List

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from scr_agro.config import Settings
from scr_agro.database.models import Base, OrderRow, ProductRow, ProfileRow, StockMovementRow
from scr_agro.serving.cache import CacheManager

NOW = datetime(2024, 2, 20, 12, 0, 0)


class FakeRedis:
    """In-memory stand-in for the async Redis client"""

    def __init__(self):
        self.store: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}

    async def get(self, key: str):
        return self.store.get(key)

    async def set(self, key: str, value: str):
        self.store[key] = value
        return True

    async def setex(self, key: str, ttl: int, value: str):
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if key in self.store:
                del self.store[key]
                self.ttls.pop(key, None)
                removed += 1
        return removed

    async def keys(self, pattern: str) -> List[str]:
        return [k for k in self.store if fnmatch.fnmatchcase(k, pattern)]

    async def ping(self) -> bool:
        return True


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
    )


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def cache(fake_redis) -> CacheManager:
    """Cache manager backed by the in-memory Redis double"""
    return CacheManager("admin", default_ttl=300, client=fake_redis)


@pytest.fixture
async def test_engine():
    """Create test database engine"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session"""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def seeded_db(session_factory):
    """Backend tables populated with a small known dataset"""
    async with session_factory() as session:
        session.add_all([
            ProductRow(id="p-urea", title="Urea 5 kg", stock_quantity=5, min_stock_level=10,
                       created_at=datetime(2024, 1, 1)),
            ProductRow(id="p-seeds", title="Paddy Seeds 1 kg", stock_quantity=50, min_stock_level=10,
                       created_at=datetime(2024, 1, 2)),
            ProductRow(id="p-honey", title="Raw Honey 500 g", stock_quantity=20, min_stock_level=None,
                       created_at=datetime(2024, 1, 3)),
            ProductRow(id="p-oil", title="Groundnut Oil 1 L", stock_quantity=3, min_stock_level=2,
                       created_at=datetime(2023, 12, 30)),
        ])
        await session.flush()
        session.add_all([
            StockMovementRow(id="m1", product_id="p-seeds", new_quantity=40, created_at=datetime(2024, 2, 1)),
            StockMovementRow(id="m2", product_id="p-seeds", new_quantity=0, created_at=datetime(2024, 2, 10)),
            StockMovementRow(id="m3", product_id="p-honey", new_quantity=8, created_at=datetime(2024, 2, 5)),
            OrderRow(id="o1", order_number="SCR-0001", status="completed", total=100.0,
                     created_at=datetime(2024, 1, 15, 10, 0)),
            OrderRow(id="o2", order_number="SCR-0002", status="pending", total=200.0,
                     created_at=datetime(2024, 2, 10, 11, 0)),
            OrderRow(id="o3", order_number="SCR-0003", status="cancelled", total=None,
                     created_at=datetime(2024, 2, 12, 9, 0), cancelled_at=datetime(2024, 2, 12, 10, 0)),
            OrderRow(id="o4", order_number="SCR-0004", status="paid", total=150.0,
                     created_at=datetime(2024, 2, 20, 9, 0)),
            OrderRow(id="o5", order_number="SCR-0005", status="processing", total=75.0,
                     created_at=datetime(2024, 2, 20, 8, 0)),
            ProfileRow(id="u1", name="Asha", email="asha@example.com", created_at=datetime(2024, 2, 18)),
            ProfileRow(id="u2", name="Ravi", email="ravi@example.com", created_at=datetime(2023, 12, 1)),
        ])
        await session.commit()
    return session_factory


@pytest.fixture
def sample_orders() -> List[dict]:
    """Order rows as delivered by the backend"""
    return [
        {"id": "o1", "total": 100, "createdAt": "2024-01-15", "status": "completed"},
        {"id": "o2", "total": 200, "createdAt": "2024-02-10", "status": "pending"},
        {"id": "o3", "total": None, "createdAt": "invalid", "status": "cancelled"},
    ]


@pytest.fixture
def sample_products() -> List[dict]:
    return [
        {"id": "p1", "title": "Urea 5 kg", "stock_quantity": 5, "min_stock_level": 10},
        {"id": "p2", "title": "Paddy Seeds 1 kg", "stock_quantity": 80, "min_stock_level": 10},
        {"id": "p3", "title": "Raw Honey 500 g", "stock_quantity": 12},
    ]


@pytest.fixture
def sample_movements() -> List[dict]:
    return [
        {"product_id": "p2", "new_quantity": 60, "created_at": "2024-02-01T09:00:00"},
        {"product_id": "p3", "new_quantity": 0, "created_at": "2024-02-02T09:00:00"},
        {"product_id": "p2", "new_quantity": 7, "created_at": "2024-02-03T09:00:00"},
    ]
