"""
Database session management. SQLAlchemy 2.x style.
"""

from collections.abc import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from shiftgate.config import get_settings


def _engine_kwargs(database_url: str, connect_timeout: int) -> dict:
    """Pool and connect args per backend.

    SQLite (used by the test suite) gets a single shared in-process connection;
    Postgres gets a pre-pinged pool with a connect timeout and UTC session timezone.
    """
    if database_url.startswith("sqlite"):
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
        "connect_args": {
            "connect_timeout": connect_timeout,
            "options": "-c timezone=UTC",
        },
    }


settings = get_settings()
engine = create_engine(
    settings.database_url,
    echo=settings.debug,
    **_engine_kwargs(settings.database_url, settings.db_connect_timeout),
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Declarative base for SQLAlchemy models."""


def check_db_connection() -> None:
    """
    Verify database connectivity. Raises if unreachable.
    Call during application startup.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
