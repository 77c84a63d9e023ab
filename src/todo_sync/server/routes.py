# src/todo_sync/server/routes.py

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, Response

from ..tasks.task_store import TaskStore
from .schemas import CreateTaskRequest, ErrorResponse, UpdateTaskRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def get_store(request: Request) -> TaskStore:
    """The single store instance wired into the app at startup."""
    return request.app.state.task_store


@router.get("")
async def list_todos(store: TaskStore = Depends(get_store)) -> list[dict[str, Any]]:
    return [t.to_json() for t in store.list_tasks()]


@router.post("", status_code=201, responses={400: {"model": ErrorResponse}})
async def create_todo(req: CreateTaskRequest, store: TaskStore = Depends(get_store)) -> dict[str, Any]:
    task = store.create_task(req.title, req.description)
    logger.info("Created todo id=%s", task.id)
    return task.to_json()


@router.put("/{task_id}", responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})
async def update_todo(
    task_id: str, req: UpdateTaskRequest, store: TaskStore = Depends(get_store)
) -> dict[str, Any]:
    task = store.update_task(task_id, req.supplied_fields())
    logger.info("Updated todo id=%s", task_id)
    return task.to_json()


@router.delete("/{task_id}", status_code=204, responses={404: {"model": ErrorResponse}})
async def delete_todo(task_id: str, store: TaskStore = Depends(get_store)) -> Response:
    store.delete_task(task_id)
    logger.info("Deleted todo id=%s", task_id)
    return Response(status_code=204)
