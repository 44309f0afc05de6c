"""
Shared test fixtures.

Every test gets a fresh in-memory SQLite schema. SQLite honours
the partial unique index behind the one-open-ledger rule, so the
storage-level guard is exercised as well as the service check.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ledger_core.main import app
from ledger_core.models import Base
from ledger_core.models.base import get_db
from ledger_core.services.currency import rate_cache


# StaticPool keeps a single connection, so the in-memory database
# survives across sessions and the TestClient's worker thread.
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    rate_cache.clear()
    yield
    rate_cache.clear()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """A session for calling services directly."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db_session):
    """
    API client sharing db_session with the test.

    Rows written through the API are visible to assertions made
    through the session, and the other way round.
    """
    app.dependency_overrides[get_db] = lambda: db_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
