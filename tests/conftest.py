# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from todo_sync.client.sync_layer import TaskSyncLayer
from todo_sync.core.state import AppState
from todo_sync.server.app import create_app
from todo_sync.tasks.task_store import TaskStore

from .fakes import FakeBackend


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the app factory, bootstrap and commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="todo-sync-test",
        log_level="INFO",
        api_base_url="http://testserver",
        use_local_storage=False,
        http_timeout_seconds=5.0,
        data_dir=tmp_path,
        local_storage_path=tmp_path / "local_storage.json",
        storage_key="todos",
        host="127.0.0.1",
        port=5000,
        cors_origins=["*"],
        delete_grace_seconds=0.05,
        delete_supersede_policy="drop",
    )


@pytest.fixture()
def store() -> TaskStore:
    return TaskStore()


@pytest.fixture()
def api(store: TaskStore, settings: SimpleNamespace) -> TestClient:
    """REST client over a fresh app + store per test."""
    return TestClient(create_app(store, settings=settings))


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def sync(backend: FakeBackend, settings: SimpleNamespace) -> TaskSyncLayer:
    return TaskSyncLayer(backend, grace_seconds=settings.delete_grace_seconds)


@pytest.fixture()
def state(settings: SimpleNamespace, backend: FakeBackend, sync: TaskSyncLayer) -> AppState:
    """AppState wired with the fake backend (the sync layer itself is real)."""
    return AppState(settings=settings, backend=backend, sync=sync)
