"""FastAPI application factory for the trivia escrow service."""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI

from quizpot.core.config import Settings, get_settings
from quizpot.core.logging import configure_logging, get_logger
from quizpot.escrow.notifications import log_notification
from quizpot.escrow.service import TriviaEscrow
from quizpot.ledger.memory import InMemoryTokenLedger

logger = get_logger(__name__)


def build_escrow(settings: Settings) -> TriviaEscrow:
    """Wire the engine to the in-process ledger configured by the environment."""
    ledger = InMemoryTokenLedger(settings.escrow_account)
    return TriviaEscrow(
        ledger=ledger,
        administrator=settings.administrator,
        entry_fee=settings.entry_fee,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager for startup and shutdown events."""
    start_time = datetime.now()
    logger.info("app.startup", message="Quizpot starting up", timestamp=start_time.isoformat())

    from quizpot.api.health import set_app_start_time

    set_app_start_time(start_time)

    from quizpot.core.db import AsyncSessionLocal, Base, engine
    from quizpot.core.session_store import load_sessions

    settings: Settings = app.state.settings
    if settings.database_url.startswith("sqlite"):
        # Local development without migrations
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        sessions, revision = await load_sessions(db)
    app.state.escrow.restore_sessions(sessions, revision)

    yield

    logger.info(
        "app.shutdown",
        message="Quizpot shutting down gracefully",
        sessions=app.state.escrow.session_count(),
    )


def _setup_middleware(app: FastAPI) -> None:
    """Configure all middleware in correct order."""
    # Last added runs first: request IDs are set before Sentry reads them
    from quizpot.middleware.logging import RequestIDMiddleware
    from quizpot.middleware.sentry import SentryContextMiddleware

    app.add_middleware(SentryContextMiddleware)
    app.add_middleware(RequestIDMiddleware)


def _register_routers(app: FastAPI) -> None:
    from quizpot.api.admin import router as admin_router
    from quizpot.api.events import router as events_router
    from quizpot.api.health import router as health_router
    from quizpot.api.sessions import router as sessions_router

    app.include_router(health_router)
    app.include_router(sessions_router)
    app.include_router(events_router)
    app.include_router(admin_router)


def create_app(escrow: TriviaEscrow | None = None, settings: Settings | None = None) -> FastAPI:
    """Application factory.

    Pass `escrow` to serve an already wired engine (tests, embedding);
    otherwise one is built from the environment.
    """
    settings = settings or get_settings()
    configure_logging(json_logs=settings.json_logs, level=settings.log_level)

    from quizpot.core.sentry import init_sentry

    init_sentry()

    app = FastAPI(
        title="Quizpot API",
        description="Entry-fee trivia sessions with escrowed prize pools",
        version="0.1.0",
        lifespan=lifespan,
    )

    escrow = escrow or build_escrow(settings)
    escrow.bus.subscribe(log_notification)

    app.state.settings = settings
    app.state.escrow = escrow

    from quizpot.core.exception_handlers import register_exception_handlers

    register_exception_handlers(app)
    _setup_middleware(app)
    _register_routers(app)

    logger.info(
        "app.configured",
        message="FastAPI application created successfully",
        administrator=escrow.administrator,
        entry_fee=str(escrow.entry_fee),
    )

    return app


def run() -> None:
    """Development server entrypoint."""
    uvicorn.run(
        "quizpot.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
