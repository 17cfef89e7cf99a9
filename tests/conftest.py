"""
Shared fixtures: in-memory local store and a fake shared-data endpoint.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cinco_billing.core.database import init_db
from cinco_billing.core.exceptions import SyncError
from cinco_billing.models.billing import SharedData
from cinco_billing.services.sync.local_store import LocalStore
from cinco_billing.services.sync.shared_storage import SharedStorage


class FakeSharedDataClient:
    """Stands in for SharedDataClient; keeps the last pushed snapshot."""

    url = "http://shared.test/api/shared-data"

    def __init__(self, remote=None, fail=False):
        self.remote = remote if remote is not None else SharedData()
        self.fail = fail
        self.pushed = []
        self.fetch_calls = 0
        self.closed = False

    def fetch(self):
        self.fetch_calls += 1
        if self.fail:
            raise SyncError("endpoint unreachable")
        return self.remote

    def push(self, data):
        if self.fail:
            raise SyncError("endpoint unreachable")
        self.pushed.append(data)
        self.remote = data

    def close(self):
        self.closed = True


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return LocalStore(session_factory)


@pytest.fixture
def fake_client():
    return FakeSharedDataClient()


@pytest.fixture
def storage(store, fake_client):
    service = SharedStorage(store=store, client=fake_client, interval_seconds=60)
    yield service
    service.stop()
