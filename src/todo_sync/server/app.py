# src/todo_sync/server/app.py

"""
Todo API server: FastAPI application exposing the TaskStore over REST.

Launch:
    todo-sync serve                 # via CLI
    python -m todo_sync.server.app  # direct

Endpoints:
    GET    /api/todos         → all tasks (insertion order)
    POST   /api/todos         → create a task (400 if title missing/blank)
    PUT    /api/todos/{id}    → partial update (404 if id unknown)
    DELETE /api/todos/{id}    → delete (204; 404 if id unknown)
    GET    /healthz           → heartbeat
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings, get_settings
from ..tasks.errors import TaskError
from ..tasks.task_store import TaskStore
from .routes import router

logger = logging.getLogger(__name__)

API_PREFIX = "/api/todos"


# ─────────────────────────────────────────────────────────────
#  Error mapping
# ─────────────────────────────────────────────────────────────

async def _task_error_handler(request: Request, exc: TaskError) -> JSONResponse:
    logger.info("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def _bad_body_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.info("%s %s -> 400 invalid body", request.method, request.url.path)
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


# ─────────────────────────────────────────────────────────────
#  App factory
# ─────────────────────────────────────────────────────────────

def create_app(store: TaskStore | None = None, *, settings: Settings | None = None) -> FastAPI:
    """
    Build the API around one store instance.

    The store lives on app.state for the lifetime of the process; tests pass
    their own instance to stay isolated.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(title=settings.app_name, version=__version__)
    app.state.task_store = store if store is not None else TaskStore()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(TaskError, _task_error_handler)
    app.add_exception_handler(RequestValidationError, _bad_body_handler)
    app.include_router(router, prefix=API_PREFIX)

    @app.get("/healthz", summary="Health check")
    async def healthcheck() -> dict[str, str]:
        """Return a simple heartbeat response."""
        return {"status": "ok"}

    return app


def run_server(*, host: str | None = None, port: int | None = None, settings: Settings | None = None) -> None:
    """Launch the API with uvicorn (blocking)."""
    import uvicorn

    if settings is None:
        settings = get_settings()

    host = host or settings.host
    port = port or settings.port
    app = create_app(settings=settings)

    logger.info("Serving %s on http://%s:%s%s", settings.app_name, host, port, API_PREFIX)
    uvicorn.run(app, host=host, port=port, log_level=str(settings.log_level).lower(), log_config=None)


if __name__ == "__main__":
    run_server()
