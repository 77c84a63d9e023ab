# src/todo_sync/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from ..client.sync_layer import is_placeholder
from ..client.sync_state import SyncState
from ..core.state import AppState
from ..tasks.task_models import Task

CommandHandler = Callable[[AppState, list[str]], Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return await handler(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("  (plain text adds a todo)")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- rendering ----


def _split_title(args: list[str]) -> tuple[str, str | None]:
    """'title words | description words' -> (title, description)."""
    text = " ".join(args)
    title, sep, description = text.partition("|")
    return title.strip(), (description.strip() or None) if sep else None


def format_task(task: Task, position: int) -> str:
    mark = "x" if task.completed else " "
    short_id = "pending" if is_placeholder(task.id) else task.id[:8]
    line = f"{position:>3}. [{mark}] {task.title}  ({short_id})"
    if task.description:
        line += f"\n       {task.description}"
    return line


def format_task_list(sync_state: SyncState) -> str:
    active = sync_state.active_count
    done = sync_state.completed_count
    header = f"{active} active · {done} completed · filter: {sync_state.filter.value} · total: {len(sync_state.tasks)}"

    if sync_state.loading:
        body = "Loading..."
    else:
        visible = sync_state.visible_tasks()
        if not visible:
            body = "No todos yet. Add your first task."
        else:
            body = "\n".join(format_task(t, i) for i, t in enumerate(visible, start=1))

    lines = [header, body]
    if sync_state.error:
        lines.append(f"[error] {sync_state.error}")
    if sync_state.notice:
        lines.append(f"[notice] {sync_state.notice}")
    return "\n".join(lines)


def resolve_task(state: AppState, ref: str) -> Task | None:
    """A 1-based position in the visible list, or a unique id prefix."""
    visible = state.sync.visible_tasks()
    if ref.isdigit():
        idx = int(ref)
        if 1 <= idx <= len(visible):
            return visible[idx - 1]
        return None
    matches = [t for t in state.sync.state.tasks if t.id.startswith(ref)]
    return matches[0] if len(matches) == 1 else None


def _outcome(state: AppState, ok_text: str) -> str:
    err = state.sync.state.error
    return f"[error] {err}" if err else ok_text


# ---- handlers ----


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_list(state: AppState, args: list[str]) -> str:
    return format_task_list(state.sync.state)


async def cmd_add(state: AppState, args: list[str]) -> str:
    title, description = _split_title(args)
    created = await state.sync.add(title, description)
    return _outcome(state, f"Added: {created.title}" if created else "")


async def cmd_toggle(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /toggle N"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No todo matches {args[0]!r}."
    updated = await state.sync.toggle(task.id)
    status = "completed" if updated and updated.completed else "active"
    return _outcome(state, f"{task.title}: {status}")


async def cmd_edit(state: AppState, args: list[str]) -> str:
    """
    /edit N new title             -> change the title
    /edit N new title | new desc  -> change title and description
    """
    if len(args) < 2:
        return "Usage: /edit N title | description"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No todo matches {args[0]!r}."
    title, description = _split_title(args[1:])
    fields: dict[str, object] = {"title": title}
    if "|" in " ".join(args[1:]):
        fields["description"] = description
    await state.sync.update(task.id, fields)
    return _outcome(state, f"Updated: {title}")


async def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /delete N"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No todo matches {args[0]!r}."
    await state.sync.delete(task.id)
    grace = float(getattr(state.settings, "delete_grace_seconds", 4.0))
    return f"Todo deleted: {task.title}. Use /undo within {grace:g}s to restore it."


async def cmd_undo(state: AppState, args: list[str]) -> str:
    if state.sync.undo():
        return "Delete undone."
    return "Nothing to undo."


async def cmd_filter(state: AppState, args: list[str]) -> str:
    if not args:
        return f"Current filter: {state.sync.state.filter.value}. Use /filter all|active|completed."
    try:
        f = state.sync.set_filter(args[0])
    except ValueError as e:
        return str(e)
    logger.debug("Filter set to %s", f.value)
    return format_task_list(state.sync.state)


async def cmd_reload(state: AppState, args: list[str]) -> str:
    await state.sync.load()
    return format_task_list(state.sync.state)


async def cmd_status(state: AppState, args: list[str]) -> str:
    settings = state.settings
    if getattr(settings, "use_local_storage", False):
        backend = f"local storage ({getattr(settings, 'local_storage_path', '?')})"
    else:
        backend = f"HTTP ({getattr(settings, 'api_base_url', '?')})"
    counts = state.sync.counts()
    return (
        "Status:\n"
        f"  Backend: {backend}\n"
        f"  Undo window: {float(getattr(settings, 'delete_grace_seconds', 4.0)):g}s"
        f"{' (undo available)' if state.sync.can_undo else ''}\n"
        f"  Todos: {counts['total']} ({counts['active']} active, {counts['completed']} completed)"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Show todos for the current filter.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a todo: /add title | optional description.")
registry.register("toggle", cmd_toggle, help_text="Toggle completion: /toggle N.", aliases=["done", "t"])
registry.register("edit", cmd_edit, help_text="Edit a todo: /edit N title | description.")
registry.register("delete", cmd_delete, help_text="Delete a todo (undoable for a few seconds).", aliases=["del", "rm"])
registry.register("undo", cmd_undo, help_text="Undo the last delete while its window is open.")
registry.register("filter", cmd_filter, help_text="Filter the list: /filter all | active | completed.")
registry.register("reload", cmd_reload, help_text="Reload the list from the backend.")
registry.register("status", cmd_status, help_text="Show backend and counters.")
