# src/todo_sync/tasks/task_models.py

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, TypedDict

UPDATABLE_FIELDS = ("title", "description", "completed")


class TaskFields(TypedDict, total=False):
    """Partial update payload: any subset of the mutable task fields."""

    title: str
    description: str | None
    completed: bool


class TaskFilter(StrEnum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, raw: str | None) -> TaskFilter:
        if not raw:
            return cls.ALL
        try:
            return cls(raw.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown filter: {raw!r} (use all, active or completed)") from None

    def matches(self, task: Task) -> bool:
        if self is TaskFilter.ACTIVE:
            return not task.completed
        if self is TaskFilter.COMPLETED:
            return task.completed
        return True


@dataclass(slots=True, frozen=True)
class Task:
    id: str
    title: str
    created_at: datetime
    description: str | None = None
    completed: bool = False

    def patched(self, fields: Mapping[str, Any]) -> Task:
        """Return a copy with the supplied mutable fields overwritten."""
        changes = {k: fields[k] for k in UPDATABLE_FIELDS if k in fields}
        return replace(self, **changes) if changes else self

    def snapshot(self, keys: Iterable[str]) -> dict[str, Any]:
        """Current values of the given fields (used to build inverse patches)."""
        return {k: getattr(self, k) for k in keys if k in UPDATABLE_FIELDS}

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "createdAt": format_timestamp(self.created_at),
        }
        if self.description is not None:
            data["description"] = self.description
        return data

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> Task:
        """Build a Task from its wire shape. Raises ValueError on malformed input."""
        try:
            task_id = data["id"]
            title = data["title"]
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed task payload: {data!r}") from e
        raw_ts = data.get("createdAt")
        return cls(
            id=str(task_id),
            title=str(title),
            description=data.get("description"),
            completed=bool(data.get("completed", False)),
            created_at=parse_timestamp(raw_ts) if raw_ts else utcnow(),
        )


def utcnow() -> datetime:
    return datetime.now(UTC)


def new_task_id() -> str:
    return str(uuid.uuid4())


def format_timestamp(ts: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a Z suffix."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(raw: str) -> datetime:
    ts = datetime.fromisoformat(str(raw).strip().replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts
