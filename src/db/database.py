from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from config import get_settings
from src.db.models.base import Base

settings = get_settings()

# Sync engine/session
engine = create_engine(settings.database_url, echo=settings.log_level == "DEBUG", pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def get_engine() -> Engine:
    """Get the database engine."""
    return engine


def init_db(bind: Engine | None = None) -> None:
    """Initialize database tables."""
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables initialized")


@contextmanager
def session_scope(session_factory: sessionmaker | None = None) -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    session = (session_factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:  # Intentionally broad - rollback on any error before re-raising
        session.rollback()
        raise
    finally:
        session.close()
