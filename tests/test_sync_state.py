# tests/test_sync_state.py

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from todo_sync.client.sync_state import (
    AddConfirmed,
    AddFailed,
    AddOptimistic,
    DeleteFailed,
    DeleteOptimistic,
    DeleteUndone,
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
from todo_sync.tasks.task_models import Task, TaskFilter

TS = datetime(2026, 1, 1, tzinfo=UTC)


def _task(task_id: str, title: str | None = None, completed: bool = False) -> Task:
    return Task(id=task_id, title=title or task_id.upper(), created_at=TS, completed=completed)


def _loaded(*tasks: Task) -> SyncState:
    return reduce(SyncState(), LoadSucceeded(tuple(tasks)))


def test_initial_state_is_loading_and_load_replaces_cache() -> None:
    s = SyncState()
    assert s.loading is True

    s = reduce(s, LoadSucceeded((_task("a"),)))
    assert s.loading is False
    assert [t.id for t in s.tasks] == ["a"]

    s = reduce(s, LoadStarted())
    s = reduce(s, LoadSucceeded((_task("b"), _task("c"))))
    assert [t.id for t in s.tasks] == ["b", "c"]


def test_load_failure_keeps_previous_list() -> None:
    s = reduce(_loaded(_task("a")), LoadStarted())

    s = reduce(s, LoadFailed())

    assert s.loading is False
    assert s.error == "Failed to load todos"
    assert [t.id for t in s.tasks] == ["a"]


def test_add_goes_to_front_and_confirmation_replaces_in_place() -> None:
    s = _loaded(_task("a"), _task("b"))

    s = reduce(s, AddOptimistic(_task("tmp-1", "New")))
    assert [t.id for t in s.tasks] == ["tmp-1", "a", "b"]

    s = reduce(s, AddOptimistic(_task("tmp-2", "Newer")))
    s = reduce(s, AddConfirmed("tmp-1", _task("srv-1", "New")))
    assert [t.id for t in s.tasks] == ["tmp-2", "srv-1", "a", "b"]


def test_confirmation_of_vanished_placeholder_adds_nothing() -> None:
    s = _loaded(_task("a"))

    s = reduce(s, AddConfirmed("tmp-gone", _task("srv-1")))

    assert [t.id for t in s.tasks] == ["a"]


def test_add_failure_removes_placeholder_and_flags_error() -> None:
    s = reduce(_loaded(_task("a")), AddOptimistic(_task("tmp-1")))

    s = reduce(s, AddFailed("tmp-1"))

    assert [t.id for t in s.tasks] == ["a"]
    assert s.error == "Failed to add todo"


def test_update_failure_applies_inverse_patch() -> None:
    s = _loaded(Task(id="a", title="Old", description="d", created_at=TS))

    s = reduce(s, UpdateOptimistic("a", {"title": "New", "completed": True}))
    assert (s.tasks[0].title, s.tasks[0].completed) == ("New", True)

    s = reduce(s, UpdateFailed("a", {"title": "Old", "completed": False}))
    assert (s.tasks[0].title, s.tasks[0].description, s.tasks[0].completed) == ("Old", "d", False)
    assert s.error == "Failed to update todo"


def test_delete_undo_restores_at_front() -> None:
    a, b, c = _task("a"), _task("b"), _task("c")
    s = _loaded(a, b, c)

    s = reduce(s, DeleteOptimistic("b"))
    assert [t.id for t in s.tasks] == ["a", "c"]
    assert s.notice == "Todo deleted"
    assert s.pending_delete_id == "b"

    s = reduce(s, DeleteUndone(b))
    assert [t.id for t in s.tasks] == ["b", "a", "c"]
    assert s.notice is None
    assert s.pending_delete_id is None


def test_delete_failure_reinserts_without_duplicates() -> None:
    a, b = _task("a"), _task("b")
    s = reduce(_loaded(a, b), DeleteOptimistic("b"))

    s = reduce(s, DeleteFailed(b))
    s = reduce(s, NoticeCleared())

    assert [t.id for t in s.tasks] == ["b", "a"]
    assert s.error == "Failed to delete todo"
    assert s.notice is None


def test_filter_is_a_pure_view() -> None:
    s = _loaded(_task("a"), _task("b", completed=True), _task("c"))
    before = s.tasks

    active = reduce(s, FilterChanged(TaskFilter.ACTIVE))
    done = reduce(s, FilterChanged(TaskFilter.COMPLETED))

    assert [t.id for t in active.visible_tasks()] == ["a", "c"]
    assert [t.id for t in done.visible_tasks()] == ["b"]
    assert [t.id for t in s.visible_tasks()] == ["a", "b", "c"]
    assert active.tasks is before
    assert (s.active_count, s.completed_count) == (2, 1)


def test_filter_parse() -> None:
    assert TaskFilter.parse("Active") is TaskFilter.ACTIVE
    assert TaskFilter.parse(None) is TaskFilter.ALL
    with pytest.raises(ValueError):
        TaskFilter.parse("archived")


def test_unknown_event_is_rejected() -> None:
    with pytest.raises(TypeError):
        reduce(SyncState(), object())


def test_successful_load_clears_error() -> None:
    s = reduce(reduce(SyncState(), LoadFailed()), LoadStarted())

    s = reduce(s, LoadSucceeded((_task("a"),)))

    assert s.error == ""
    assert [t.id for t in s.tasks] == ["a"]
