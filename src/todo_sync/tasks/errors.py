# src/todo_sync/tasks/errors.py

from __future__ import annotations


class TaskError(Exception):
    """Base class for every failure a task operation can report."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(TaskError):
    """Bad input (e.g. missing or blank title). Never retried."""

    status_code = 400


class NotFoundError(TaskError):
    """The operation targets an unknown task id."""

    status_code = 404


class TransportError(TaskError):
    """Backend unreachable or answered with a non-success response."""

    status_code = 502
