import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

# App startup still runs init_db(); keep it off the working directory
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from rrdoubles.database import get_session  # noqa: E402
from rrdoubles.main import app  # noqa: E402
from rrdoubles.services.tournament_context import ContextRegistry, get_registry  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. Use sqlite:///:memory: with StaticPool so ALL sessions share same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. Tables are created before and dropped after every test, so roster
#    snapshots never leak between tests
# 4. App dependencies overridden to use test_engine and a fresh registry
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session"""
    from rrdoubles.models.competitor_snapshot import CompetitorSnapshot  # noqa: F401

    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="registry")
def registry_fixture():
    """Fresh tournament registry per test"""
    return ContextRegistry()


@pytest.fixture(name="client")
def client_fixture(session: Session, registry: ContextRegistry):
    """Provide a test client with overridden database session and registry

    Overrides MUST be set BEFORE TestClient() and stay in place for the
    entire duration, so the app never uses its own engine or registry.
    """
    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_registry] = lambda: registry

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
