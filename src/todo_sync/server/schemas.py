# src/todo_sync/server/schemas.py

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, StrictBool, StrictStr


class CreateTaskRequest(BaseModel):
    # Title stays optional here so a missing title reaches the store and gets the 400 message.
    title: StrictStr | None = None
    description: StrictStr | None = None


class UpdateTaskRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: StrictStr | None = None
    description: StrictStr | None = None
    completed: StrictBool | None = None

    def supplied_fields(self) -> dict[str, Any]:
        """Only the keys the client actually sent (absent keys stay untouched)."""
        return self.model_dump(exclude_unset=True)


class ErrorResponse(BaseModel):
    error: str
