# src/todo_sync/client/local_backend.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ..tasks.errors import TransportError
from ..tasks.task_models import Task
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "todos"


class JsonSlotStorage:
    """
    Durable key/value slots in one JSON file (a local-storage equivalent).

    Each slot holds a serialized string, exactly like browser localStorage.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError):
            logger.warning("Local storage unreadable, treating as empty: %s", self._path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def get_item(self, key: str) -> str | None:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        slots = self._load()
        slots[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(slots, ensure_ascii=False), "utf-8")
        os.replace(tmp, self._path)
        with contextlib.suppress(OSError):
            os.chmod(self._path, 0o600)


class LocalTaskBackend:
    """
    TaskBackend persisted as a serialized array under one storage slot.

    Every call reads the slot, runs the operation on a TaskStore built from it
    (so validation, identity and not-found behaviour match the server exactly),
    then writes the slot back. A corrupt slot reads as an empty list.
    """

    def __init__(self, storage: JsonSlotStorage, *, key: str = DEFAULT_STORAGE_KEY) -> None:
        self._storage = storage
        self._key = key
        logger.info("LocalTaskBackend ready path=%s key=%s", storage.path, key)

    # ---- low-level helpers ----

    def _read(self) -> list[Task]:
        raw = self._storage.get_item(self._key)
        if not raw:
            return []
        try:
            items = json.loads(raw)
            if not isinstance(items, list):
                return []
            return [Task.from_json(item) for item in items]
        except ValueError:
            logger.warning("Local slot %r is corrupt; starting empty", self._key)
            return []

    def _write(self, tasks: list[Task]) -> None:
        raw = json.dumps([t.to_json() for t in tasks], ensure_ascii=False)
        try:
            self._storage.set_item(self._key, raw)
        except OSError as e:
            logger.exception("Failed to write local slot %r", self._key)
            raise TransportError("Failed to save todos") from e

    def _store(self) -> TaskStore:
        return TaskStore(self._read())

    # ---- TaskBackend ----

    async def list_tasks(self) -> list[Task]:
        return self._read()

    async def create_task(self, title: str, description: str | None = None) -> Task:
        store = self._store()
        task = store.create_task(title, description)
        self._write(store.list_tasks())
        return task

    async def update_task(self, task_id: str, fields: Mapping[str, Any]) -> Task:
        store = self._store()
        task = store.update_task(task_id, fields)
        self._write(store.list_tasks())
        return task

    async def delete_task(self, task_id: str) -> None:
        store = self._store()
        store.delete_task(task_id)
        self._write(store.list_tasks())

    async def aclose(self) -> None:
        return
