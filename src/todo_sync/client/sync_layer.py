# src/todo_sync/client/sync_layer.py

"""
Optimistic client sync layer.

Each user operation follows the same shape:
- apply the local change synchronously (so the view reflects intent at once),
- await the backend call,
- reconcile on success or apply the inverse correction on failure.

Deletes are not sent right away: they sit in a grace window (DeferredCommit)
during which undo() puts the task back and the backend never hears about it.

The layer never retries. Every failure ends as a generic error string on the
state; the local cache is corrected where an optimistic change was applied.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from ..core.ports import TaskBackend
from ..tasks.errors import TaskError
from ..tasks.task_models import UPDATABLE_FIELDS, Task, TaskFilter, new_task_id, utcnow
from ..tasks.task_store import TITLE_REQUIRED, TODO_NOT_FOUND
from .deferred import DeferredCommit
from .sync_state import (
    AddConfirmed,
    AddFailed,
    AddOptimistic,
    DeleteFailed,
    DeleteOptimistic,
    DeleteUndone,
    ErrorCleared,
    ErrorRaised,
    FilterChanged,
    LoadFailed,
    LoadStarted,
    LoadSucceeded,
    NoticeCleared,
    SyncState,
    UpdateFailed,
    UpdateOptimistic,
    reduce,
)

logger = logging.getLogger(__name__)

TEMP_ID_PREFIX = "tmp-"

StateListener = Callable[[SyncState], None]


class SupersedePolicy(StrEnum):
    """What happens to a pending delete when another delete starts."""

    DROP = "drop"  # cancel the timer, do not restore
    COMMIT = "commit"  # send the superseded delete immediately


@dataclass(slots=True)
class PendingDelete:
    task: Task
    commit: DeferredCommit


def is_placeholder(task_id: str) -> bool:
    return task_id.startswith(TEMP_ID_PREFIX)


class TaskSyncLayer:
    """Local cache of the task list kept in step with a TaskBackend."""

    def __init__(
        self,
        backend: TaskBackend,
        *,
        grace_seconds: float = 4.0,
        supersede_policy: SupersedePolicy | str = SupersedePolicy.DROP,
    ) -> None:
        self._backend = backend
        self._grace_seconds = max(0.0, float(grace_seconds))
        self._policy = SupersedePolicy(supersede_policy)
        self._state = SyncState()
        self._pending: PendingDelete | None = None
        self._commits: set[DeferredCommit] = set()
        self._listeners: list[StateListener] = []

    # ---- state ----

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def supersede_policy(self) -> SupersedePolicy:
        return self._policy

    @property
    def can_undo(self) -> bool:
        return self._pending is not None and not self._pending.commit.settled

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call `listener` after every state change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _dispatch(self, event: object) -> SyncState:
        new_state = reduce(self._state, event)
        if new_state is self._state:
            return new_state
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("Sync state listener failed")
        return self._state

    # ---- view ----

    def visible_tasks(self) -> list[Task]:
        return self._state.visible_tasks()

    def set_filter(self, value: TaskFilter | str) -> TaskFilter:
        f = value if isinstance(value, TaskFilter) else TaskFilter.parse(value)
        self._dispatch(FilterChanged(f))
        return f

    def counts(self) -> dict[str, int]:
        s = self._state
        return {"active": s.active_count, "completed": s.completed_count, "total": len(s.tasks)}

    # ---- operations ----

    async def load(self) -> bool:
        """Replace the cache with the backend list. Keeps the old list on failure."""
        self._dispatch(ErrorCleared())
        self._dispatch(LoadStarted())
        try:
            tasks = await self._backend.list_tasks()
        except TaskError as e:
            logger.warning("Loading todos failed: %s", e.message)
            self._dispatch(LoadFailed())
            return False
        self._dispatch(LoadSucceeded(tuple(tasks)))
        logger.debug("Loaded %s todos", len(tasks))
        return True

    async def add(self, title: str, description: str | None = None) -> Task | None:
        self._dispatch(ErrorCleared())
        clean_title = (title or "").strip()
        clean_description = (description or "").strip() or None
        if not clean_title:
            self._dispatch(ErrorRaised(TITLE_REQUIRED))
            return None

        placeholder = Task(
            id=f"{TEMP_ID_PREFIX}{new_task_id()}",
            title=clean_title,
            description=clean_description,
            completed=False,
            created_at=utcnow(),
        )
        self._dispatch(AddOptimistic(placeholder))

        try:
            created = await self._backend.create_task(clean_title, clean_description)
        except TaskError as e:
            logger.warning("Add failed, dropping placeholder %s: %s", placeholder.id, e.message)
            self._dispatch(AddFailed(placeholder.id))
            return None

        self._dispatch(AddConfirmed(placeholder.id, created))
        logger.debug("Add confirmed %s -> %s", placeholder.id, created.id)
        return created

    async def update(self, task_id: str, fields: Mapping[str, Any]) -> Task | None:
        """Apply `fields` locally, then on the backend; restore the old values on failure."""
        self._dispatch(ErrorCleared())
        current = self._state.find(task_id)
        if current is None:
            self._dispatch(ErrorRaised(TODO_NOT_FOUND))
            return None

        changes: dict[str, Any] = {k: fields[k] for k in UPDATABLE_FIELDS if k in fields}
        if "title" in changes:
            changes["title"] = str(changes["title"] or "").strip()
            if not changes["title"]:
                self._dispatch(ErrorRaised(TITLE_REQUIRED))
                return None
        if isinstance(changes.get("description"), str):
            changes["description"] = changes["description"].strip() or None
        if not changes:
            return current

        inverse = current.snapshot(changes)
        self._dispatch(UpdateOptimistic(task_id, changes))

        try:
            confirmed = await self._backend.update_task(task_id, changes)
        except TaskError as e:
            logger.warning("Update failed for %s, rolling back %s: %s", task_id, sorted(inverse), e.message)
            self._dispatch(UpdateFailed(task_id, inverse))
            return None
        return confirmed

    async def toggle(self, task_id: str) -> Task | None:
        current = self._state.find(task_id)
        if current is None:
            self._dispatch(ErrorCleared())
            self._dispatch(ErrorRaised(TODO_NOT_FOUND))
            return None
        return await self.update(task_id, {"completed": not current.completed})

    async def delete(self, task_id: str) -> bool:
        """
        Remove locally and open the undo window.

        The backend delete is only issued when the window elapses. Returns False
        if the task is not in the local cache.
        """
        self._dispatch(ErrorCleared())
        task = self._state.find(task_id)
        if task is None:
            return False

        previous = self._pending
        self._dispatch(DeleteOptimistic(task.id))
        if previous is not None:
            self._pending = None
            self._supersede(previous)

        def _run() -> Awaitable[None]:
            return self._commit_delete(pending)

        pending = PendingDelete(task=task, commit=DeferredCommit(task.id, self._grace_seconds, _run))
        self._pending = pending
        self._commits.add(pending.commit)
        logger.debug("Delete pending id=%s grace=%.2fs", task.id, self._grace_seconds)
        return True

    def undo(self) -> bool:
        """Cancel the pending delete and put the task back at the front."""
        pending = self._pending
        if pending is None or not pending.commit.cancel():
            return False
        self._pending = None
        self._commits.discard(pending.commit)
        self._dispatch(DeleteUndone(pending.task))
        logger.info("Delete undone id=%s", pending.task.id)
        return True

    async def flush_pending_delete(self) -> None:
        """Send the pending delete now instead of waiting for the timer."""
        pending = self._pending
        if pending is not None:
            pending.commit.fire_now()
        await self.wait_idle()

    async def wait_idle(self) -> None:
        """Wait for delete commits that already fired. Timers still pending are not awaited."""
        fired = [c for c in self._commits if c.fired]
        if fired:
            await asyncio.gather(*(c.wait() for c in fired))

    async def aclose(self) -> None:
        """Drop any pending delete (its timer is cancelled) and wait for in-flight commits."""
        pending = self._pending
        if pending is not None and pending.commit.cancel():
            self._pending = None
            self._commits.discard(pending.commit)
            logger.info("Pending delete id=%s discarded on close", pending.task.id)
        await self.wait_idle()

    # ---- internals ----

    def _supersede(self, previous: PendingDelete) -> None:
        if self._policy is SupersedePolicy.COMMIT:
            previous.commit.fire_now()
            return
        if previous.commit.cancel():
            self._commits.discard(previous.commit)
            logger.info("Pending delete id=%s superseded; it stays on the backend", previous.task.id)

    async def _commit_delete(self, pending: PendingDelete) -> None:
        if self._pending is pending:
            self._pending = None
        task = pending.task
        try:
            await self._backend.delete_task(task.id)
            logger.info("Delete committed id=%s", task.id)
        except TaskError as e:
            logger.warning("Delete failed for %s, restoring: %s", task.id, e.message)
            self._dispatch(DeleteFailed(task))
        finally:
            self._commits.discard(pending.commit)
            if self._pending is None:
                self._dispatch(NoticeCleared())
