# src/todo_sync/tasks/task_store.py

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any

from .errors import NotFoundError, ValidationError
from .task_models import UPDATABLE_FIELDS, Task, new_task_id, utcnow

logger = logging.getLogger(__name__)

TITLE_REQUIRED = "Title is required"
TODO_NOT_FOUND = "Todo not found"


class TaskStore:
    """
    In-memory authoritative task store.

    Ordering:
    - list_tasks() returns insertion order; updates replace a task in place

    Atomicity:
    - every operation validates first and mutates last, so a failing call
      leaves the collection untouched

    One instance is created at startup and injected where it is needed;
    there is no module-level collection.
    """

    def __init__(
        self,
        tasks: Iterable[Task] | None = None,
        *,
        id_factory: Callable[[], str] = new_task_id,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._tasks: list[Task] = list(tasks or [])
        self._id_factory = id_factory
        self._clock = clock
        logger.debug("TaskStore ready total=%s", len(self._tasks))

    # ---- low-level helpers ----

    def _index_of(self, task_id: str) -> int:
        for i, task in enumerate(self._tasks):
            if task.id == task_id:
                return i
        raise NotFoundError(TODO_NOT_FOUND)

    def _fresh_id(self) -> str:
        existing = {t.id for t in self._tasks}
        task_id = self._id_factory()
        while task_id in existing:
            task_id = self._id_factory()
        return task_id

    @staticmethod
    def _clean_title(title: Any) -> str:
        if not isinstance(title, str) or not title.strip():
            raise ValidationError(TITLE_REQUIRED)
        return title.strip()

    @classmethod
    def _clean_fields(cls, fields: Mapping[str, Any]) -> dict[str, Any]:
        changes: dict[str, Any] = {}
        for key in UPDATABLE_FIELDS:
            if key not in fields:
                continue
            value = fields[key]
            if key == "title":
                value = cls._clean_title(value)
            elif key == "completed" and not isinstance(value, bool):
                raise ValidationError("completed must be a boolean")
            elif key == "description" and value is not None and not isinstance(value, str):
                raise ValidationError("description must be a string")
            changes[key] = value
        return changes

    # ---- public API ----

    def count_tasks(self) -> int:
        return len(self._tasks)

    def list_tasks(self) -> list[Task]:
        return list(self._tasks)

    def get_task(self, task_id: str) -> Task:
        return self._tasks[self._index_of(task_id)]

    def create_task(self, title: Any, description: str | None = None) -> Task:
        clean_title = self._clean_title(title)
        if description is not None and not isinstance(description, str):
            raise ValidationError("description must be a string")

        task = Task(
            id=self._fresh_id(),
            title=clean_title,
            description=description,
            completed=False,
            created_at=self._clock(),
        )
        self._tasks.append(task)
        logger.debug("Task created id=%s total=%s", task.id, len(self._tasks))
        return task

    def update_task(self, task_id: str, fields: Mapping[str, Any]) -> Task:
        """
        Overwrite only the supplied fields (title/description/completed).

        Unknown keys are ignored. A supplied title must still be non-blank.
        """
        idx = self._index_of(task_id)
        changes = self._clean_fields(fields)
        updated = self._tasks[idx].patched(changes)
        self._tasks[idx] = updated
        logger.debug("Task updated id=%s fields=%s", task_id, sorted(changes))
        return updated

    def delete_task(self, task_id: str) -> None:
        idx = self._index_of(task_id)
        del self._tasks[idx]
        logger.debug("Task deleted id=%s total=%s", task_id, len(self._tasks))

    def clear(self) -> None:
        self._tasks.clear()
