"""Pytest configuration: set test env before any clipsync imports so DB and JWT use test values."""

import asyncio
import os
import tempfile

import pytest

# Set before clipsync.db.session or clipsync.config are used so engine and settings use test paths
_tmp = tempfile.mkdtemp(prefix="clipsync_test_")
_db_path = os.path.join(_tmp, "test.db")
os.environ.setdefault("CLIPSYNC_DB_PATH", _db_path)
os.environ.setdefault("CLIPSYNC_JWT_SECRET", "test-jwt-secret-at-least-32-characters-long")


@pytest.fixture(scope="session")
def init_test_db():
    """Create tables once per test session."""
    from clipsync.db.session import init_db

    asyncio.run(init_db())


@pytest.fixture
def session_factory(init_test_db):
    """Yield get_session so tests can use async with session_factory() as session."""
    from clipsync.db.session import get_session
    return get_session


@pytest.fixture
def settings():
    """Process settings (test env applied)."""
    from clipsync.config import get_settings
    return get_settings()


@pytest.fixture
def user_id():
    """Fresh user id per test; tests share one database file."""
    import uuid
    return f"user-{uuid.uuid4()}"
