# src/todo_sync/client/sync_state.py

"""
Client-side state container.

SyncState is immutable; every change goes through reduce(state, event), which
is a pure function. The async sync layer decides *when* an event happens (user
action, network completion, timer); this module only decides *what* it does to
the cache.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from ..tasks.task_models import Task, TaskFilter

LOAD_FAILED = "Failed to load todos"
ADD_FAILED = "Failed to add todo"
UPDATE_FAILED = "Failed to update todo"
DELETE_FAILED = "Failed to delete todo"
DELETED_NOTICE = "Todo deleted"


@dataclass(slots=True, frozen=True)
class SyncState:
    tasks: tuple[Task, ...] = ()
    loading: bool = True
    error: str = ""
    filter: TaskFilter = TaskFilter.ALL
    notice: str | None = None
    pending_delete_id: str | None = None

    def find(self, task_id: str) -> Task | None:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None

    def visible_tasks(self) -> list[Task]:
        return [t for t in self.tasks if self.filter.matches(t)]

    @property
    def active_count(self) -> int:
        return sum(1 for t in self.tasks if not t.completed)

    @property
    def completed_count(self) -> int:
        return len(self.tasks) - self.active_count


# ---- events ----


@dataclass(slots=True, frozen=True)
class LoadStarted:
    pass


@dataclass(slots=True, frozen=True)
class LoadSucceeded:
    tasks: tuple[Task, ...]


@dataclass(slots=True, frozen=True)
class LoadFailed:
    message: str = LOAD_FAILED


@dataclass(slots=True, frozen=True)
class AddOptimistic:
    placeholder: Task


@dataclass(slots=True, frozen=True)
class AddConfirmed:
    placeholder_id: str
    task: Task


@dataclass(slots=True, frozen=True)
class AddFailed:
    placeholder_id: str
    message: str = ADD_FAILED


@dataclass(slots=True, frozen=True)
class UpdateOptimistic:
    task_id: str
    fields: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class UpdateFailed:
    task_id: str
    inverse: Mapping[str, Any] = field(default_factory=dict)
    message: str = UPDATE_FAILED


@dataclass(slots=True, frozen=True)
class DeleteOptimistic:
    task_id: str
    notice: str = DELETED_NOTICE


@dataclass(slots=True, frozen=True)
class DeleteUndone:
    task: Task


@dataclass(slots=True, frozen=True)
class DeleteFailed:
    task: Task
    message: str = DELETE_FAILED


@dataclass(slots=True, frozen=True)
class NoticeCleared:
    pass


@dataclass(slots=True, frozen=True)
class FilterChanged:
    filter: TaskFilter


@dataclass(slots=True, frozen=True)
class ErrorRaised:
    message: str


@dataclass(slots=True, frozen=True)
class ErrorCleared:
    pass


# ---- transitions ----


def _map_task(tasks: tuple[Task, ...], task_id: str, fn: Callable[[Task], Task]) -> tuple[Task, ...]:
    return tuple(fn(t) if t.id == task_id else t for t in tasks)


def _without(tasks: tuple[Task, ...], task_id: str) -> tuple[Task, ...]:
    return tuple(t for t in tasks if t.id != task_id)


def _load_started(state: SyncState, event: LoadStarted) -> SyncState:
    return replace(state, loading=True)


def _load_succeeded(state: SyncState, event: LoadSucceeded) -> SyncState:
    return replace(state, tasks=tuple(event.tasks), loading=False, error="")


def _load_failed(state: SyncState, event: LoadFailed) -> SyncState:
    # Previous list is kept.
    return replace(state, loading=False, error=event.message)


def _add_optimistic(state: SyncState, event: AddOptimistic) -> SyncState:
    return replace(state, tasks=(event.placeholder, *state.tasks))


def _add_confirmed(state: SyncState, event: AddConfirmed) -> SyncState:
    # Replace in place; if the placeholder is gone (deleted meanwhile) nothing is re-added.
    return replace(state, tasks=_map_task(state.tasks, event.placeholder_id, lambda _t: event.task))


def _add_failed(state: SyncState, event: AddFailed) -> SyncState:
    return replace(state, tasks=_without(state.tasks, event.placeholder_id), error=event.message)


def _update_optimistic(state: SyncState, event: UpdateOptimistic) -> SyncState:
    return replace(state, tasks=_map_task(state.tasks, event.task_id, lambda t: t.patched(event.fields)))


def _update_failed(state: SyncState, event: UpdateFailed) -> SyncState:
    return replace(
        state,
        tasks=_map_task(state.tasks, event.task_id, lambda t: t.patched(event.inverse)),
        error=event.message,
    )


def _delete_optimistic(state: SyncState, event: DeleteOptimistic) -> SyncState:
    return replace(
        state,
        tasks=_without(state.tasks, event.task_id),
        notice=event.notice,
        pending_delete_id=event.task_id,
    )


def _restore_front(tasks: tuple[Task, ...], task: Task) -> tuple[Task, ...]:
    return (task, *_without(tasks, task.id))


def _delete_undone(state: SyncState, event: DeleteUndone) -> SyncState:
    return replace(
        state,
        tasks=_restore_front(state.tasks, event.task),
        notice=None,
        pending_delete_id=None,
    )


def _delete_failed(state: SyncState, event: DeleteFailed) -> SyncState:
    return replace(state, tasks=_restore_front(state.tasks, event.task), error=event.message)


def _notice_cleared(state: SyncState, event: NoticeCleared) -> SyncState:
    return replace(state, notice=None, pending_delete_id=None)


def _filter_changed(state: SyncState, event: FilterChanged) -> SyncState:
    return replace(state, filter=event.filter)


def _error_raised(state: SyncState, event: ErrorRaised) -> SyncState:
    return replace(state, error=event.message)


def _error_cleared(state: SyncState, event: ErrorCleared) -> SyncState:
    return replace(state, error="") if state.error else state


_HANDLERS: dict[type, Callable[[SyncState, Any], SyncState]] = {
    LoadStarted: _load_started,
    LoadSucceeded: _load_succeeded,
    LoadFailed: _load_failed,
    AddOptimistic: _add_optimistic,
    AddConfirmed: _add_confirmed,
    AddFailed: _add_failed,
    UpdateOptimistic: _update_optimistic,
    UpdateFailed: _update_failed,
    DeleteOptimistic: _delete_optimistic,
    DeleteUndone: _delete_undone,
    DeleteFailed: _delete_failed,
    NoticeCleared: _notice_cleared,
    FilterChanged: _filter_changed,
    ErrorRaised: _error_raised,
    ErrorCleared: _error_cleared,
}


def reduce(state: SyncState, event: object) -> SyncState:
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise TypeError(f"Unknown sync event: {event!r}")
    return handler(state, event)
