from datetime import datetime
from decimal import Decimal
from typing import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.api.deps import get_clock
from app.api.routes import health, investments, portfolio, products
from app.config import settings
from app.domain.models import Product, ProductType, RiskLevel
from app.infrastructure.db.database import Base, get_db
from app.infrastructure.db.repositories.product_repository import ProductRepository
from app.utils.time import FixedClock

START = datetime(2026, 1, 15, 10, 0, 0)


@pytest.fixture(autouse=True)
def no_llm(monkeypatch):
    # Tests never reach a real text generation provider
    monkeypatch.setattr(settings, "LLM_PROVIDER", "none")
    monkeypatch.setattr(settings, "PORTFOLIO_INCLUDE_CANCELLED", True)


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(START)


@pytest.fixture()
async def db_engine(tmp_path):
    db_path = tmp_path / "test.db"
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{db_path}",
        echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    session_maker = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session


@pytest.fixture()
async def app(db_session, clock) -> FastAPI:
    app = FastAPI()
    app.include_router(health.router, tags=["Health"])
    app.include_router(products.router, prefix="/api/v1/products", tags=["Products"])
    app.include_router(investments.router, prefix="/api/v1/investments", tags=["Investments"])
    app.include_router(portfolio.router, prefix="/api/v1/portfolio", tags=["Portfolio"])

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    return app


@pytest.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def make_product(**overrides) -> Product:
    terms = dict(
        id="prod-1",
        name="Secure Bond",
        product_type=ProductType.BOND,
        tenure_months=12,
        annual_yield=Decimal("12.00"),
        risk_level=RiskLevel.LOW,
        min_investment=Decimal("1000.00"),
        max_investment=Decimal("100000.00"),
        description="Test bond",
        is_active=True,
        created_at=START,
        updated_at=START,
    )
    terms.update(overrides)
    return Product(**terms)


@pytest.fixture()
async def seed_product(db_session):
    async def _seed(**overrides) -> Product:
        product = await ProductRepository(db_session).create_product(make_product(**overrides))
        await db_session.commit()
        return product

    return _seed
