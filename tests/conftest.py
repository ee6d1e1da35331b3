# tests/conftest.py
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from storesync import models  # noqa: F401
from storesync.core.config import Settings
from storesync.database import Base
from storesync.models.tenant import Tenant

# In-memory SQLite shared across connections of one engine
TEST_DATABASE_URL = "sqlite+aiosqlite://"

WEBHOOK_SECRET = "test_webhook_secret"


@pytest.fixture
def settings():
    """Provide test settings"""
    return Settings(
        DATABASE_URL=TEST_DATABASE_URL,
        SHOPIFY_API_VERSION="2024-01",
        SHOPIFY_PAGE_SIZE=250,
        ALLOW_UNVERIFIED_WEBHOOKS=False,
    )


@pytest.fixture(scope="function")
async def test_engine():
    """Create and configure the test database engine (function-scoped)."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    """Provide a database session for tests"""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def tenant(db_session):
    tenant = Tenant(
        name="Acme Guitars",
        shop_domain="acme-guitars.myshopify.com",
        access_token="shpat_acme",
        webhook_secret=WEBHOOK_SECRET,
    )
    db_session.add(tenant)
    await db_session.commit()
    return tenant


@pytest.fixture
async def other_tenant(db_session):
    tenant = Tenant(
        name="Other Store",
        shop_domain="other-store.myshopify.com",
        access_token="shpat_other",
        webhook_secret="other_secret",
    )
    db_session.add(tenant)
    await db_session.commit()
    return tenant


@pytest.fixture
def sample_customer_data():
    return {
        "id": 7001,
        "email": "jane@example.com",
        "first_name": "Jane",
        "last_name": "Doe",
        "phone": "+441234567890",
        "tags": "vip",
        "total_spent": "100.00",
        "orders_count": 1,
        "created_at": "2024-01-05T10:00:00-05:00",
        "updated_at": "2024-02-01T09:30:00Z",
    }


@pytest.fixture
def sample_product_data():
    return {
        "id": 8001,
        "title": "Fender Stratocaster",
        "handle": "fender-stratocaster",
        "body_html": "<p>Sunburst</p>",
        "vendor": "Fender",
        "product_type": "Electric Guitar",
        "status": "active",
        "tags": "guitar, electric",
        "variants": [{"id": 1, "price": "1299.00", "compare_at_price": "1499.00"}],
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-01-02T00:00:00Z",
    }


def make_line_item(line_id, product_id, title="Item", price="10.00", quantity=1):
    return {
        "id": line_id,
        "product_id": product_id,
        "title": title,
        "quantity": quantity,
        "price": price,
        "total_discount": "0.00",
        "vendor": "Fender",
    }


def make_order(order_id, customer_id=7001, total="50.00", status="paid", line_items=None):
    return {
        "id": order_id,
        "order_number": 1001,
        "name": "#1001",
        "total_price": total,
        "subtotal_price": total,
        "total_tax": "0.00",
        "total_discounts": "0.00",
        "currency": "GBP",
        "financial_status": status,
        "fulfillment_status": None,
        "tags": "",
        "created_at": "2024-03-01T12:00:00+00:00",
        "processed_at": "2024-03-01T12:00:00+00:00",
        "updated_at": "2024-03-01T12:05:00+00:00",
        "customer": {"id": customer_id, "email": "jane@example.com"} if customer_id else None,
        "line_items": line_items if line_items is not None else [make_line_item(9001, 8001)],
    }


@pytest.fixture
def line_item_factory():
    return make_line_item


@pytest.fixture
def order_factory():
    return make_order
