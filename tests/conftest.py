# tests/conftest.py

from __future__ import annotations

import httpx
import pytest

from taskpro.client.context import ClientContext
from taskpro.client.coordinator import SyncCoordinator
from taskpro.client.local_cache import LocalCache
from taskpro.client.pending_queue import PendingQueue
from taskpro.client.remote import RemoteTaskApi
from taskpro.client.storage import MemoryStorage
from taskpro.core.config import Settings
from taskpro.main import app
from taskpro.store import TaskStore, get_store

from .fakes import FakeRemoteApi, SwitchableTransport


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        api_url="http://testserver",
        storage_backend="memory",
        storage_dir=str(tmp_path / "storage"),
        storage_namespace="test_",
    )


@pytest.fixture()
def storage() -> MemoryStorage:
    return MemoryStorage(namespace="test_")


@pytest.fixture()
def cache(storage: MemoryStorage) -> LocalCache:
    return LocalCache(storage)


@pytest.fixture()
def queue(storage: MemoryStorage) -> PendingQueue:
    return PendingQueue(storage)


@pytest.fixture()
def remote() -> FakeRemoteApi:
    return FakeRemoteApi()


@pytest.fixture()
def coordinator(remote, cache, queue) -> SyncCoordinator:
    return SyncCoordinator(remote, cache, queue)


@pytest.fixture()
def store():
    """Fresh server-side store, swapped into the FastAPI app."""
    fresh = TaskStore()
    app.dependency_overrides[get_store] = lambda: fresh
    yield fresh
    app.dependency_overrides.pop(get_store, None)


@pytest.fixture()
def transport(store) -> SwitchableTransport:
    return SwitchableTransport(httpx.ASGITransport(app=app))


@pytest.fixture()
def context(transport, storage, settings) -> ClientContext:
    """ClientContext talking to the real app in-process."""
    client = httpx.AsyncClient(transport=transport, base_url="http://testserver")
    return ClientContext(storage, RemoteTaskApi(client), settings)
