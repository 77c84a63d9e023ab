# tests/test_sync_layer.py

from __future__ import annotations

import asyncio

import pytest

from todo_sync.client.deferred import DeferredCommit
from todo_sync.client.sync_layer import SupersedePolicy, TaskSyncLayer, is_placeholder

from .fakes import FakeBackend


async def _seeded(backend: FakeBackend, sync: TaskSyncLayer, *titles: str) -> None:
    for title in titles:
        backend.store.create_task(title)
    assert await sync.load() is True


@pytest.mark.asyncio
async def test_load_populates_cache(backend: FakeBackend, sync: TaskSyncLayer) -> None:
    assert sync.state.loading is True

    await _seeded(backend, sync, "a", "b")

    assert sync.state.loading is False
    assert [t.title for t in sync.state.tasks] == ["a", "b"]
    assert sync.state.error == ""


@pytest.mark.asyncio
async def test_load_failure_keeps_list(backend: FakeBackend, sync: TaskSyncLayer) -> None:
    await _seeded(backend, sync, "a")
    backend.fail.add("list")

    assert await sync.load() is False

    assert sync.state.error == "Failed to load todos"
    assert [t.title for t in sync.state.tasks] == ["a"]
    assert sync.state.loading is False


@pytest.mark.asyncio
async def test_add_is_visible_before_backend_answers(backend: FakeBackend, sync: TaskSyncLayer) -> None:
    await _seeded(backend, sync, "old")
    gate = backend.gates["create"] = asyncio.Event()

    pending = asyncio.create_task(sync.add("  Buy milk ", "  2 liters "))
    await asyncio.sleep(0)

    first = sync.state.tasks[0]
    assert is_placeholder(first.id)
    assert (first.title, first.description, first.completed) == ("Buy milk", "2 liters", False)
    assert [t.title for t in sync.state.tasks] == ["Buy milk", "old"]

    gate.set()
    created = await pending

    assert created is not None
    assert sync.state.tasks[0].id == created.id
    assert not is_placeholder(created.id)
    assert [t.title for t in sync.state.tasks] == ["Buy milk", "old"]
    assert backend.calls[-1] == ("create", ("Buy milk", "2 liters"))


@pytest.mark.asyncio
async def test_add_rejection_removes_placeholder(backend: FakeBackend, sync: TaskSyncLayer) -> None:
    await _seeded(backend, sync, "old")
    backend.fail.add("create")

    assert await sync.add("New") is None

    assert [t.title for t in sync.state.tasks] == ["old"]
    assert sync.state.error == "Failed to add todo"


@pytest.mark.asyncio
async def test_blank_title_never_reaches_backend(backend: FakeBackend, sync: TaskSyncLayer) -> None:
    await _seeded(backend, sync)

    assert await sync.add("   ") is None

    assert sync.state.error == "Title is required"
    assert "create" not in backend.ops()
    assert sync.state.tasks == ()


@pytest.mark.asyncio
async def test_next_operation_clears_previous_error(backend: FakeBackend, sync: TaskSyncLayer) -> None:
    await _seeded(backend, sync)
    await sync.add("")
    assert sync.state.error

    await sync.add("ok")

    assert sync.state.error == ""


@pytest.mark.asyncio
async def test_toggle_confirms(backend: FakeBackend, sync: TaskSyncLayer) -> None:
    await _seeded(backend, sync, "a")
    task_id = sync.state.tasks[0].id

    updated = await sync.toggle(task_id)

    assert updated is not None and updated.completed is True
    assert sync.state.tasks[0].completed is True
    assert backend.store.get_task(task_id).completed is True


@pytest.mark.asyncio
async def test_failed_update_rolls_back_only_changed_fields(backend: FakeBackend, sync: TaskSyncLayer) -> None:
    backend.store.create_task("Title", "desc")
    await sync.load()
    task_id = sync.state.tasks[0].id
    gate = backend.gates["update"] = asyncio.Event()
    backend.fail.add("update")

    pending = asyncio.create_task(sync.update(task_id, {"title": "Changed", "completed": True}))
    await asyncio.sleep(0)
    assert (sync.state.tasks[0].title, sync.state.tasks[0].completed) == ("Changed", True)

    gate.set()
    assert await pending is None

    task = sync.state.tasks[0]
    assert (task.title, task.description, task.completed) == ("Title", "desc", False)
    assert sync.state.error == "Failed to update todo"


@pytest.mark.asyncio
async def test_update_unknown_id(backend: FakeBackend, sync: TaskSyncLayer) -> None:
    await _seeded(backend, sync)

    assert await sync.update("missing", {"completed": True}) is None
    assert await sync.toggle("missing") is None

    assert sync.state.error == "Todo not found"
    assert "update" not in backend.ops()


@pytest.mark.asyncio
async def test_update_blank_title_is_rejected_locally(backend: FakeBackend, sync: TaskSyncLayer) -> None:
    await _seeded(backend, sync, "a")
    task_id = sync.state.tasks[0].id

    assert await sync.update(task_id, {"title": "  "}) is None

    assert sync.state.error == "Title is required"
    assert sync.state.tasks[0].title == "a"
    assert "update" not in backend.ops()


@pytest.mark.asyncio
async def test_delete_then_undo_never_calls_backend(backend: FakeBackend) -> None:
    sync = TaskSyncLayer(backend, grace_seconds=5.0)
    await _seeded(backend, sync, "a", "b", "c")
    b = sync.state.tasks[1]

    assert await sync.delete(b.id) is True
    assert [t.title for t in sync.state.tasks] == ["a", "c"]
    assert sync.state.notice == "Todo deleted"
    assert sync.can_undo is True

    assert sync.undo() is True

    assert [t.title for t in sync.state.tasks] == ["b", "a", "c"]
    assert sync.state.notice is None
    assert sync.can_undo is False
    assert sync.undo() is False
    assert "delete" not in backend.ops()
    await sync.aclose()


@pytest.mark.asyncio
async def test_delete_commits_after_grace_window(backend: FakeBackend, sync: TaskSyncLayer) -> None:
    await _seeded(backend, sync, "a", "b")
    a = sync.state.tasks[0]

    await sync.delete(a.id)
    assert "delete" not in backend.ops()

    await asyncio.sleep(0.15)
    await sync.wait_idle()

    assert backend.ops().count("delete") == 1
    assert backend.store.count_tasks() == 1
    assert sync.state.notice is None
    assert sync.undo() is False
    assert [t.title for t in sync.state.tasks] == ["b"]


@pytest.mark.asyncio
async def test_failed_delete_restores_task(backend: FakeBackend, sync: TaskSyncLayer) -> None:
    await _seeded(backend, sync, "a", "b")
    b = sync.state.tasks[1]
    backend.fail.add("delete")

    await sync.delete(b.id)
    await sync.flush_pending_delete()

    assert [t.title for t in sync.state.tasks] == ["b", "a"]
    assert sync.state.error == "Failed to delete todo"
    assert sync.state.notice is None
    assert backend.store.count_tasks() == 2


@pytest.mark.asyncio
async def test_second_delete_drops_the_first_by_default(backend: FakeBackend) -> None:
    sync = TaskSyncLayer(backend, grace_seconds=5.0)
    await _seeded(backend, sync, "a", "b")
    a, b = sync.state.tasks

    await sync.delete(a.id)
    await sync.delete(b.id)

    assert sync.state.tasks == ()
    assert sync.state.pending_delete_id == b.id
    assert "delete" not in backend.ops()

    assert sync.undo() is True
    assert [t.title for t in sync.state.tasks] == ["b"]
    # The superseded delete was never sent, so it is still on the backend.
    assert backend.store.count_tasks() == 2
    await sync.aclose()


@pytest.mark.asyncio
async def test_second_delete_commits_the_first_with_commit_policy(backend: FakeBackend) -> None:
    sync = TaskSyncLayer(backend, grace_seconds=5.0, supersede_policy=SupersedePolicy.COMMIT)
    await _seeded(backend, sync, "a", "b")
    a, b = sync.state.tasks

    await sync.delete(a.id)
    await sync.delete(b.id)
    await sync.wait_idle()

    assert backend.calls[-1] == ("delete", (a.id,))
    assert sync.state.notice == "Todo deleted"
    assert sync.undo() is True
    assert [t.title for t in sync.state.tasks] == ["b"]
    assert [t.title for t in backend.store.list_tasks()] == ["b"]
    await sync.aclose()


@pytest.mark.asyncio
async def test_delete_unknown_id(backend: FakeBackend, sync: TaskSyncLayer) -> None:
    await _seeded(backend, sync, "a")

    assert await sync.delete("missing") is False
    assert sync.can_undo is False


@pytest.mark.asyncio
async def test_aclose_discards_pending_delete(backend: FakeBackend) -> None:
    sync = TaskSyncLayer(backend, grace_seconds=0.05)
    await _seeded(backend, sync, "a")

    await sync.delete(sync.state.tasks[0].id)
    await sync.aclose()
    await asyncio.sleep(0.1)

    assert "delete" not in backend.ops()
    assert backend.store.count_tasks() == 1


@pytest.mark.asyncio
async def test_filter_and_counts(backend: FakeBackend, sync: TaskSyncLayer) -> None:
    await _seeded(backend, sync, "a", "b", "c")
    await sync.toggle(sync.state.tasks[1].id)

    assert sync.counts() == {"active": 2, "completed": 1, "total": 3}
    sync.set_filter("completed")
    assert [t.title for t in sync.visible_tasks()] == ["b"]
    sync.set_filter("active")
    assert [t.title for t in sync.visible_tasks()] == ["a", "c"]
    with pytest.raises(ValueError):
        sync.set_filter("nope")
    assert len(sync.state.tasks) == 3


@pytest.mark.asyncio
async def test_listeners_see_every_change(backend: FakeBackend, sync: TaskSyncLayer) -> None:
    seen: list[bool] = []

    def broken(_state) -> None:
        raise RuntimeError("listener bug")

    sync.subscribe(broken)
    unsubscribe = sync.subscribe(lambda s: seen.append(s.loading))

    await sync.load()
    assert seen == [True, False]

    unsubscribe()
    await sync.load()
    assert seen == [True, False]


@pytest.mark.asyncio
async def test_deferred_commit_cancel_and_fire_are_exclusive() -> None:
    ran: list[str] = []

    async def _callback() -> None:
        ran.append("x")

    cancelled = DeferredCommit("a", 0.01, _callback)
    assert cancelled.cancel() is True
    assert cancelled.fire_now() is False
    assert cancelled.cancelled and not cancelled.fired

    fired = DeferredCommit("b", 5.0, _callback)
    assert fired.fire_now() is True
    assert fired.cancel() is False
    await fired.wait()

    await asyncio.sleep(0.03)
    assert ran == ["x"]


@pytest.mark.asyncio
async def test_successful_reload_clears_previous_load_error(backend: FakeBackend, sync: TaskSyncLayer) -> None:
    await _seeded(backend, sync, "a")
    backend.fail.add("list")
    assert await sync.load() is False
    assert sync.state.error == "Failed to load todos"

    backend.fail.clear()
    backend.store.create_task("b")

    assert await sync.load() is True
    assert sync.state.error == ""
    assert [t.title for t in sync.state.tasks] == ["a", "b"]
