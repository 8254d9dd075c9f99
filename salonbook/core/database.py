"""
Database configuration and session management
"""

from contextlib import contextmanager
from typing import Iterator

from sqlmodel import SQLModel, Session, create_engine
import structlog

from salonbook.core.config import get_settings

logger = structlog.get_logger(__name__)
settings = get_settings()

engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG and settings.ENVIRONMENT == "development",
    pool_pre_ping=True,
)


def init_db():
    """Initialize database tables"""
    import salonbook.models  # noqa: F401  registers every table on the metadata

    SQLModel.metadata.create_all(engine)
    logger.info("Database tables created")


def get_session():
    """Dependency to get database session"""
    with Session(engine) as session:
        yield session


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """
    Run a unit of work atomically.

    Commits when the block exits cleanly and rolls back on any exception,
    which is re-raised to the caller.
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
