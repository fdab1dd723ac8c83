"""
Shared fixtures: isolated in-memory database, FastAPI client with get_db
overridden, credential seeding and fake Google clients (no network).
"""
import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="marketing_hub_logs_"))
os.environ.setdefault("ENABLE_SCHEDULER", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from marketing_hub.models.base import Base, get_db
from marketing_hub.services import marketing_store

from fakes import FakeDriveConnector, FakeSheetsConnector


# ────────────────────────────────────────────
# DATABASE
# ────────────────────────────────────────────


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database per test."""
    import marketing_hub.models  # noqa: F401  registers tables

    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seed_credential(db):
    """Insert/replace an api_credentials row."""
    def _seed(service_name="dataslayer", api_key="secret-key", is_active=True):
        return marketing_store.upsert_credential(db, service_name, api_key, is_active=is_active)
    return _seed


# ────────────────────────────────────────────
# FAKE GOOGLE CLIENTS
# ────────────────────────────────────────────

@pytest.fixture
def fake_drive():
    return FakeDriveConnector()


@pytest.fixture
def fake_sheets():
    return FakeSheetsConnector()


# ────────────────────────────────────────────
# HTTP CLIENT
# ────────────────────────────────────────────


@pytest.fixture
def client(session_factory, fake_drive, fake_sheets):
    """TestClient bound to the per-test database and fake Google clients."""
    from marketing_hub.main import app
    from marketing_hub.api.drive_import import get_drive_connector_factory
    from marketing_hub.api.sync import get_sheets_connector_factory

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_drive_connector_factory] = lambda: fake_drive
    app.dependency_overrides[get_sheets_connector_factory] = lambda: fake_sheets

    # Not used as a context manager: skips lifespan (init_db, scheduler)
    yield TestClient(app)

    app.dependency_overrides.clear()
