"""
Pytest configuration and fixtures.
"""

from __future__ import annotations

import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

# Force an in-memory SQLite DB when pytest runs; don't inherit from .env
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.setdefault("DEBUG", "false")


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    """Reset cached Settings so env overrides in one test don't leak into the next."""
    from shiftgate.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def db() -> Session:
    """Database session on a freshly created schema; tables are dropped afterwards."""
    import shiftgate.models  # noqa: F401  (register tables on Base.metadata)
    from shiftgate.db.session import Base, engine

    Base.metadata.create_all(engine)
    session = Session(bind=engine, expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client."""
    from shiftgate.main import app

    return TestClient(app)


@pytest.fixture
def client_with_db(db: Session) -> TestClient:
    """TestClient with get_db overridden to use the test db session."""
    from shiftgate.db.session import get_db
    from shiftgate.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    c = TestClient(app)
    yield c
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def client_with_sources():
    """Factory: TestClient whose readiness sources are the given fakes."""
    from shiftgate.api.deps import get_readiness_sources
    from shiftgate.main import app

    def _make(sources) -> TestClient:
        app.dependency_overrides[get_readiness_sources] = lambda: sources
        return TestClient(app)

    yield _make
    app.dependency_overrides.pop(get_readiness_sources, None)
