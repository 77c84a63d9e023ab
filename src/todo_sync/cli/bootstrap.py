# src/todo_sync/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the client "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- picks the backend (HTTP by default, local storage when the flag is set),
- wires the sync layer over it into AppState.
"""

from __future__ import annotations

import logging

from ..client.http_backend import HttpTaskBackend
from ..client.local_backend import JsonSlotStorage, LocalTaskBackend
from ..client.sync_layer import TaskSyncLayer
from ..config import get_settings
from ..core.ports import TaskBackend
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.local_storage_path.parent.mkdir(parents=True, exist_ok=True)


def create_backend(settings) -> TaskBackend:
    if settings.use_local_storage:
        logger.info("Using local storage backend: %s", settings.local_storage_path)
        return LocalTaskBackend(JsonSlotStorage(settings.local_storage_path), key=settings.storage_key)

    logger.info("Using HTTP backend: %s", settings.api_base_url)
    return HttpTaskBackend(settings.api_base_url, timeout_seconds=settings.http_timeout_seconds)


def create_initial_state(*, settings=None, backend: TaskBackend | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings and backend injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    if backend is None:
        if settings.use_local_storage:
            _ensure_local_dirs(settings)
        backend = create_backend(settings)

    sync = TaskSyncLayer(
        backend,
        grace_seconds=settings.delete_grace_seconds,
        supersede_policy=getattr(settings, "delete_supersede_policy", "drop"),
    )
    return AppState(settings=settings, backend=backend, sync=sync)
