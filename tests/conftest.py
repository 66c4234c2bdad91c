"""
Shared fixtures: in-memory database, blob stores, API clients.
"""
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from critwalk.database import Base, get_db
from critwalk.errors import StorageIOError
from critwalk.main import app
from critwalk.models import Actor, Role
from critwalk.services import equipment as equipment_service
from critwalk.services.auth import COOKIE_NAME, create_access_token
from critwalk.services.storage import LocalBlobStore, get_blob_store


T0 = datetime(2026, 3, 1, 6, 0, 0)


# ── Database ──────────────────────────────────────────────────────────────────

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# ── Actors ────────────────────────────────────────────────────────────────────

@pytest.fixture
def manager():
    return Actor(name="Dana", role=Role.MANAGER)


@pytest.fixture
def technician():
    return Actor(name="Sam", role=Role.TECHNICIAN)


@pytest.fixture
def equipment(db, manager):
    return equipment_service.create_equipment(
        db, manager, name="Chiller 3", location="Roof", category="HVAC"
    )


# ── Blob stores ───────────────────────────────────────────────────────────────

class FailingBlobStore(LocalBlobStore):
    """Local store that refuses photos whose index is in ``fail_indexes``."""

    def __init__(self, root, base_url, fail_indexes=(), fail_deletes=False):
        super().__init__(root, base_url)
        self.fail_indexes = set(fail_indexes)
        self.fail_deletes = fail_deletes

    def put(self, path, data):
        index = int(path.rsplit("_", 1)[-1].split(".")[0])
        if index in self.fail_indexes:
            raise StorageIOError(f"quota exceeded for {path}")
        return super().put(path, data)

    def delete(self, path):
        if self.fail_deletes:
            raise StorageIOError(f"permission denied for {path}")
        super().delete(path)


@pytest.fixture
def blob_store(tmp_path):
    return LocalBlobStore(str(tmp_path / "photos"), "http://testserver/photos")


@pytest.fixture
def make_failing_store(tmp_path):
    def factory(fail_indexes=(), fail_deletes=False):
        return FailingBlobStore(
            str(tmp_path / "photos"),
            "http://testserver/photos",
            fail_indexes=fail_indexes,
            fail_deletes=fail_deletes,
        )
    return factory


# ── API clients ───────────────────────────────────────────────────────────────

@pytest.fixture
def api(session_factory, blob_store):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    yield app
    app.dependency_overrides.clear()


def _client_for(actor):
    client = TestClient(app)
    client.cookies.set(COOKIE_NAME, create_access_token(actor))
    return client


@pytest.fixture
def manager_client(api, manager):
    return _client_for(manager)


@pytest.fixture
def technician_client(api, technician):
    return _client_for(technician)


@pytest.fixture
def anonymous_client(api):
    return TestClient(app)
