"""Environment-driven settings for the escrow service."""

import os
from dataclasses import dataclass
from functools import lru_cache

DEFAULT_ENTRY_FEE = 10 * 10**18


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, read once from the environment."""

    environment: str
    database_url: str
    administrator: str
    escrow_account: str
    entry_fee: int
    json_logs: bool
    log_level: str

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def _database_url() -> str:
    url = os.getenv("DATABASE_URL", "")

    # Hosted Postgres hands out postgres:// or postgresql:// but asyncpg needs postgresql+asyncpg://
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if not url:
        return "sqlite+aiosqlite:///./quizpot.db"
    return url


def _entry_fee() -> int:
    raw = os.getenv("QUIZPOT_ENTRY_FEE")
    if not raw:
        return DEFAULT_ENTRY_FEE
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"QUIZPOT_ENTRY_FEE must be an integer, got {raw!r}") from e


def load_settings() -> Settings:
    """Build settings from the current environment (uncached)."""
    environment = os.getenv("ENVIRONMENT", "development")
    return Settings(
        environment=environment,
        database_url=_database_url(),
        administrator=os.getenv("QUIZPOT_ADMINISTRATOR", ""),
        escrow_account=os.getenv("QUIZPOT_ESCROW_ACCOUNT", ""),
        entry_fee=_entry_fee(),
        json_logs=os.getenv("LOG_FORMAT", "json" if environment == "production" else "console")
        == "json",
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


@lru_cache()
def get_settings() -> Settings:
    return load_settings()
