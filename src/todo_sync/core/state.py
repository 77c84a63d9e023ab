# src/todo_sync/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..client.sync_layer import TaskSyncLayer
from .ports import TaskBackend


@dataclass
class AppState:
    """Everything a client connector needs: settings, the backend, and the sync layer over it."""

    # Settings are kept on the state so commands can report them (/status).
    settings: object

    backend: TaskBackend
    sync: TaskSyncLayer
