# src/todo_sync/client/http_backend.py

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from ..tasks.errors import NotFoundError, TransportError, ValidationError
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)

DEFAULT_RESOURCE_PATH = "/api/todos"


def _make_timeout_obj(timeout_s: float) -> httpx.Timeout:
    return httpx.Timeout(timeout_s, connect=min(timeout_s, 5.0))


def _error_message(resp: httpx.Response, fallback: str) -> str:
    try:
        body = resp.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return fallback


class HttpTaskBackend:
    """
    TaskBackend over the REST API.

    Status mapping:
    - 400 -> ValidationError
    - 404 -> NotFoundError
    - anything else that is not 2xx, and every httpx transport failure -> TransportError
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 10.0,
        resource_path: str = DEFAULT_RESOURCE_PATH,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._path = "/" + resource_path.strip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=_make_timeout_obj(timeout_seconds),
            headers={"Accept": "application/json"},
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ---- low-level helpers ----

    async def _request(self, method: str, url: str, action: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, url, e.__class__.__name__)
            raise TransportError(f"Failed to {action}") from e

        if resp.is_success:
            return resp

        if resp.status_code == 400:
            raise ValidationError(_error_message(resp, f"Failed to {action}"))
        if resp.status_code == 404:
            raise NotFoundError(_error_message(resp, "Todo not found"))

        logger.warning("%s %s -> HTTP %s", method, url, resp.status_code)
        raise TransportError(f"Failed to {action} (HTTP {resp.status_code})")

    @staticmethod
    def _parse_task(resp: httpx.Response, action: str) -> Task:
        try:
            return Task.from_json(resp.json())
        except ValueError as e:
            raise TransportError(f"Failed to {action}: malformed response") from e

    # ---- TaskBackend ----

    async def list_tasks(self) -> list[Task]:
        resp = await self._request("GET", self._path, "fetch todos")
        try:
            data = resp.json()
            if not isinstance(data, list):
                raise ValueError("expected a JSON array")
            return [Task.from_json(item) for item in data]
        except ValueError as e:
            raise TransportError("Failed to fetch todos: malformed response") from e

    async def create_task(self, title: str, description: str | None = None) -> Task:
        payload: dict[str, Any] = {"title": title}
        if description is not None:
            payload["description"] = description
        resp = await self._request("POST", self._path, "add todo", json=payload)
        return self._parse_task(resp, "add todo")

    async def update_task(self, task_id: str, fields: Mapping[str, Any]) -> Task:
        resp = await self._request("PUT", f"{self._path}/{task_id}", "update todo", json=dict(fields))
        return self._parse_task(resp, "update todo")

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", f"{self._path}/{task_id}", "delete todo")
