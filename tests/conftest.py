"""
Pytest configuration and shared fixtures.

Every test gets a fresh in-memory SQLite database; the API client runs
against the same session and a mocked Redis.
"""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clinic_backend.app.database import enable_sqlite_fk, get_db
from clinic_backend.app.models import Base
from clinic_backend.app.services.booking import get_default_employee


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", enable_sqlite_fk)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def employee(db):
    return get_default_employee(db)


@pytest.fixture
def redis_mock():
    """Mock Redis used by the event emitter and the health check."""
    mock_redis = MagicMock()
    mock_redis.ping.return_value = True
    with patch("clinic_backend.app.services.events.redis_client", mock_redis), \
            patch("clinic_backend.app.main.redis_client", mock_redis):
        yield mock_redis


@pytest.fixture
def client(db, redis_mock):
    """Create test client bound to the test session."""
    from clinic_backend.app.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
