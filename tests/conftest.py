"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of questline.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from questline.config import QuestlineConfig  # noqa: E402
from questline.database.models import Base  # noqa: E402


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all Questline tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in ``run_db``).
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


@pytest.fixture
def test_config() -> QuestlineConfig:
    return QuestlineConfig(
        app_name="Questline Test",
        assistant_url="http://assistant.test/api/assistant/chat",
        gateway_url="http://gateway.test/v1/chat/completions",
        assistant_model="test-model",
        history_limit=20,
        timezone="UTC",
        default_xp_reward=25,
        request_timeout=5.0,
    )


def make_user_token(sub: str = "user-1") -> str:
    """Create a user JWT.  Usable from any test module."""
    import jwt

    from questline.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode({"sub": sub}, JWT_SECRET, algorithm=JWT_ALGORITHM)


@pytest.fixture
def user_token() -> str:
    return make_user_token()


@pytest.fixture
def api_app(db_engine, test_config):
    """The FastAPI app wired to the in-memory engine and test config."""
    from questline.api.deps import get_config, get_engine
    from questline.api.main import app

    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_config] = lambda: test_config
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(api_app):
    """Create a FastAPI TestClient with raise_server_exceptions=False."""
    from fastapi.testclient import TestClient

    return TestClient(api_app, raise_server_exceptions=False)
