from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from litestate.core.config import get_config


@pytest.fixture(autouse=True)
def fresh_config():
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture
def session_factory():
    """Build an in-memory SQLite session for a declarative base."""
    sessions = []

    def _build(base):
        engine = create_engine("sqlite:///:memory:")
        TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        base.metadata.create_all(bind=engine)
        session = TestingSessionLocal()
        sessions.append(session)
        return session

    yield _build

    for session in sessions:
        session.close()
