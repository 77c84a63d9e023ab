# src/todo_sync/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app, resolved once at startup.
- The networked backend is the default; TODO_USE_LOCAL_STORAGE switches to the JSON-file backend.
- VITE_* names are accepted as fallbacks so an existing frontend .env keeps working.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

from dotenv import load_dotenv

ENV_PREFIX = "TODO"

DEFAULT_API_URL = "http://localhost:5000"
DEFAULT_DELETE_GRACE_SECONDS = 4.0


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _parse_bool(raw: str | None, default: bool) -> bool:
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    parts = [p.strip() for p in raw.replace(",", " ").split() if p.strip()]
    return parts


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Client backend selection ----
    api_base_url: str
    use_local_storage: bool
    http_timeout_seconds: float

    # ---- Local storage backend (ignored by git) ----
    data_dir: Path
    local_storage_path: Path
    storage_key: str

    # ---- Server ----
    host: str
    port: int
    cors_origins: List[str]

    # ---- Sync layer ----
    delete_grace_seconds: float
    delete_supersede_policy: str

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "todo-sync").strip() or "todo-sync"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        api_base_url = (
            _first_env(_k("API_URL"), "VITE_API_URL", default=DEFAULT_API_URL) or DEFAULT_API_URL
        ).strip().rstrip("/")
        use_local_storage = _parse_bool(
            _first_env(_k("USE_LOCAL_STORAGE"), "VITE_USE_LOCAL_STORAGE"), False
        )
        http_timeout_seconds = max(0.1, _env_float(_k("HTTP_TIMEOUT_SECONDS"), 10.0))

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/todo"))
        local_storage_path = _env_path(_k("LOCAL_STORAGE_PATH"), data_dir / "local_storage.json")
        storage_key = _env(_k("STORAGE_KEY"), "todos").strip() or "todos"

        host = _env(_k("HOST"), "127.0.0.1").strip() or "127.0.0.1"
        port = _env_int(_k("PORT"), 5000)
        cors_origins = _env_list(_k("CORS_ORIGINS"), ["*"])

        delete_grace_seconds = max(
            0.0, _env_float(_k("DELETE_GRACE_SECONDS"), DEFAULT_DELETE_GRACE_SECONDS)
        )

        delete_supersede_policy = _env(_k("DELETE_SUPERSEDE"), "drop").strip().lower()
        if delete_supersede_policy not in {"drop", "commit"}:
            delete_supersede_policy = "drop"

        return Settings(
            app_name=app_name,
            log_level=log_level,
            api_base_url=api_base_url,
            use_local_storage=use_local_storage,
            http_timeout_seconds=http_timeout_seconds,
            data_dir=data_dir,
            local_storage_path=local_storage_path,
            storage_key=storage_key,
            host=host,
            port=port,
            cors_origins=cors_origins,
            delete_grace_seconds=delete_grace_seconds,
            delete_supersede_policy=delete_supersede_policy,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
