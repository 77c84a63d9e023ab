# src/todo_sync/core/ports.py

"""
Ports (interfaces) used by the client core.

The sync layer depends on a Protocol instead of a concrete backend.
This keeps the HTTP and local-storage backends swappable and makes testing easier.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from ..tasks.task_models import Task


class TaskBackend(Protocol):
    """
    Async CRUD contract shared by every backend.

    Failures are reported as TaskError subclasses:
    - ValidationError: rejected input (blank title)
    - NotFoundError: unknown id
    - TransportError: backend unreachable / unexpected response
    """

    async def list_tasks(self) -> list[Task]: ...

    async def create_task(self, title: str, description: str | None = None) -> Task: ...

    async def update_task(self, task_id: str, fields: Mapping[str, Any]) -> Task: ...

    async def delete_task(self, task_id: str) -> None: ...

    async def aclose(self) -> None: ...
