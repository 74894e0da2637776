"""
Pytest fixtures for the QR slot tests.

Provides an in-memory document store, a QR service with a fixed clock and
predictable scan ids, and an HTTP test client wired to the same store.
"""

import asyncio
import itertools
import os
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DOCUMENT_STORE", "memory")

from app.api.deps import get_document_store, get_qr_service
from app.db.document_store import MemoryDocumentStore
from app.main import app
from app.services.qr_id_service import new_qr_code
from app.services.qr_repository import QrRepository
from app.services.qr_service import QrService

API_PASSWORD = "test-password"
QR_ID = "11111-22222-33333-44444"
EPOCH = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class StepClock:
    """Returns a later instant each time it is called."""

    def __init__(self, start: datetime = EPOCH):
        self._ticks = itertools.count()
        self._start = start

    def __call__(self) -> datetime:
        return self._start + timedelta(seconds=next(self._ticks))


def scan_ids():
    counter = itertools.count(1)
    return lambda: f"scan-{next(counter)}"


def seed(store, *qr_ids: str) -> None:
    repository = QrRepository(store)
    asyncio.run(repository.create_many([new_qr_code(qr_id, EPOCH) for qr_id in qr_ids]))


def make_service(store, **overrides) -> QrService:
    options = {
        "api_password": API_PASSWORD,
        "retry_backoff": 0,
        "clock": StepClock(),
        "scan_id_factory": scan_ids(),
    }
    options.update(overrides)
    return QrService(QrRepository(store), **options)


@pytest.fixture
def store():
    return MemoryDocumentStore()


@pytest.fixture
def seeded_store(store):
    seed(store, QR_ID)
    return store


@pytest.fixture
def service(seeded_store):
    return make_service(seeded_store)


@pytest.fixture
def client(seeded_store):
    app.dependency_overrides[get_document_store] = lambda: seeded_store
    service = make_service(seeded_store)
    app.dependency_overrides[get_qr_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
