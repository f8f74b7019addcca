# File: tests/conftest.py
"""Pytest configuration and fixtures."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from quizpot.core.config import Settings
from quizpot.core.db import Base, get_db
from quizpot.escrow.notifications import Notification
from quizpot.escrow.service import TriviaEscrow
from quizpot.ledger.memory import InMemoryTokenLedger
from quizpot.main import create_app

# Import all models
from quizpot.models.escrow_event_log import EscrowEventLog  # noqa: F401
from quizpot.models.trivia_session_snapshot import TriviaSessionSnapshot  # noqa: F401
from tests.factories import ADMIN, ENTRY_FEE, ESCROW, FrozenClock

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
def ledger() -> InMemoryTokenLedger:
    return InMemoryTokenLedger(ESCROW)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def escrow(ledger: InMemoryTokenLedger, clock: FrozenClock) -> TriviaEscrow:
    return TriviaEscrow(ledger=ledger, administrator=ADMIN, entry_fee=ENTRY_FEE, clock=clock)


@pytest.fixture
def notifications(escrow: TriviaEscrow) -> list[Notification]:
    """Every notification the escrow emits during the test, in order."""
    captured: list[Notification] = []
    escrow.bus.subscribe(captured.append)
    return captured


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        environment="test",
        database_url=TEST_DATABASE_URL,
        administrator=ADMIN,
        escrow_account=ESCROW,
        entry_fee=ENTRY_FEE,
        json_logs=False,
        log_level="WARNING",
    )


@pytest_asyncio.fixture(scope="function")
async def db_session():
    """Create fresh in-memory DB session for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_maker() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession, escrow: TriviaEscrow, test_settings: Settings):
    """Create async test client bound to the test escrow and DB session."""
    app = create_app(escrow=escrow, settings=test_settings)

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        ac.escrow = escrow
        ac.db_session = db_session
        yield ac
