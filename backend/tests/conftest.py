"""Shared test fixtures for backend tests."""

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from pharmreturns.api import deps
from pharmreturns.api.deps import get_catalog
from pharmreturns.config import settings
from pharmreturns.database import Base
from pharmreturns.main import app
from pharmreturns.seed.catalog_data import NDC_PRODUCTS
from pharmreturns.seed.catalog_seed import seed_products
from pharmreturns.services.catalog import EligibilityPolicy, InMemoryCatalog, ProductRecord

TODAY = date(2026, 1, 15)


def make_product(
    ndc: str = "12345-6789-01",
    wac: str = "10.00",
    credit_percentage: int = 80,
    return_window: int = 180,
    dea_schedule: str | None = None,
    requires_dea_form: bool = False,
    destruction_required: bool = False,
    proprietary_name: str | None = "Testol",
) -> ProductRecord:
    return ProductRecord(
        ndc=ndc,
        proprietary_name=proprietary_name,
        non_proprietary_name="testolamine",
        manufacturer_name="Acme Pharma",
        strength="10 mg",
        dosage_form="TABLET",
        wac=Decimal(wac),
        dea_schedule=dea_schedule,
        return_eligibility=EligibilityPolicy(
            eligible=True,
            return_window=return_window,
            credit_percentage=credit_percentage,
            requires_dea_form=requires_dea_form,
            destruction_required=destruction_required,
        ),
    )


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def seed_catalog() -> InMemoryCatalog:
    return InMemoryCatalog.from_seed()


@pytest.fixture
def test_catalog() -> InMemoryCatalog:
    """Small catalog with round numbers for exact credit arithmetic."""
    return InMemoryCatalog([
        make_product(),
        make_product(ndc="11111-2222-33", wac="10.00", credit_percentage=100, return_window=365),
        make_product(
            ndc="99999-0001-01",
            wac="2.50",
            credit_percentage=0,
            dea_schedule="CII",
            requires_dea_form=True,
            destruction_required=True,
            proprietary_name=None,
        ),
    ])


def _override_catalog(catalog):
    """Create a dependency override for get_catalog."""
    async def _get_catalog():
        yield catalog
    return _get_catalog


@pytest_asyncio.fixture
async def client(seed_catalog: InMemoryCatalog) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with the bundled catalog."""
    app.dependency_overrides[get_catalog] = _override_catalog(seed_catalog)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with the schema created; one shared connection."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def db_session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(db_session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with db_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def db_client(db_session_factory, monkeypatch) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with the database catalog backend, seeded."""
    async with db_session_factory() as session:
        await seed_products(session, NDC_PRODUCTS)
        await session.commit()

    monkeypatch.setattr(settings, "catalog_backend", "database")
    monkeypatch.setattr(deps, "async_session", db_session_factory)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
