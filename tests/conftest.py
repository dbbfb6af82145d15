import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cod_form.application.quota_tracker import QuotaTracker
from cod_form.domain import models  # noqa: F401  (registers tables)
from cod_form.infrastructure.database import Base
from cod_form.infrastructure.repositories.order_repository import PostgresOrderRepository
from cod_form.infrastructure.repositories.store_repository import PostgresStoreRepository
from cod_form.infrastructure.settings_cache import SettingsCache
from cod_form.main import build_services, create_app
from fakes import (
    NOW,
    SHOP,
    FakeShopify,
    FrozenClock,
    InMemoryOrderRepository,
    InMemoryStoreRepository,
    set_store_fields,
)


@pytest.fixture
def clock():
    return FrozenClock(NOW)


# --- in-memory ports ---


@pytest.fixture
def memory_stores():
    return InMemoryStoreRepository()


@pytest.fixture
def memory_orders(memory_stores):
    return InMemoryOrderRepository(memory_stores)


@pytest.fixture
def shopify():
    return FakeShopify()


# --- SQLite-backed repositories ---


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def store_repo(session_factory):
    return PostgresStoreRepository(session_factory)


@pytest.fixture
def order_repo(session_factory):
    return PostgresOrderRepository(session_factory)


@pytest.fixture
def services(store_repo, order_repo, shopify, clock):
    return build_services(
        store_repo=store_repo,
        order_repo=order_repo,
        upstream=shopify,
        settings_cache=SettingsCache(redis_url=None, ttl=60),
        quota_tracker=QuotaTracker(store_repo, clock=clock),
    )


@pytest.fixture
def client(services):
    return TestClient(create_app(services))


@pytest.fixture
def shop(store_repo):
    """A store that has installed the app and holds a Shopify token."""
    store_repo.get_or_create(SHOP)
    set_store_fields(store_repo, SHOP, access_token="shpat_test", month_reset_date=NOW.replace(tzinfo=None))
    return SHOP

