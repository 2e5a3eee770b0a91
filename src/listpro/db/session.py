"""Database session management."""

from functools import lru_cache
from typing import Any

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import Session, sessionmaker

from listpro.config import settings
from listpro.logging import get_logger

logger = get_logger(__name__)


@lru_cache
def get_engine() -> Engine:
    """Create the engine on first use."""
    options: dict[str, Any] = {"pool_pre_ping": True}
    # SQLite pools reject sizing arguments
    if not settings.database_url.startswith("sqlite"):
        options.update(pool_size=5, max_overflow=10)
    return create_engine(settings.database_url, **options)


@lru_cache
def get_session_factory() -> sessionmaker[Session]:
    """Session factory bound to the application engine."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=get_engine(),
    )


def ping_database() -> bool:
    """Run a trivial query against the listing database."""
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("database_ping_failed", error=str(e))
        return False
    return True
