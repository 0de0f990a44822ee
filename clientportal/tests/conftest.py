from __future__ import annotations

from typing import AsyncIterator

from httpx import ASGITransport, AsyncClient
import pytest

from clientportal.apps.api.main import create_app
from clientportal.core.config import get_settings
from clientportal.persistence.storage import MemoryStorage
from clientportal.tests.utils.blobs import InMemoryBlobStore


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    # Keep every test on the in-memory backend with a fixed signing secret.
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("SESSION_SECRET", "test-session-secret")
    monkeypatch.delenv("PROJECT_PROGRESS_FROM_TASKS", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
async def client(storage: MemoryStorage, blob_store: InMemoryBlobStore) -> AsyncIterator[AsyncClient]:
    app = create_app(storage=storage, blob_store=blob_store)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
