"""Runtime settings read from environment variables.

`load_settings()` is called once in the application lifespan; `.env` files are
loaded by `main.py` through python-dotenv before this runs.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, TypeVar

T = TypeVar("T")

DEFAULT_DATABASE_FILE = "records.db"
DEFAULT_MAX_CONNECTIONS = 10
DEFAULT_ACQUIRE_TIMEOUT = 5.0
DEFAULT_LIST_LIMIT = 100
DEFAULT_MAX_LIST_LIMIT = 1000
DEFAULT_MAX_IMAGE_BYTES = 15 * 1024 * 1024


@dataclass(frozen=True)
class Settings:
    """Service configuration.

    Attributes:
        database_dir: Directory that holds the SQLite file (DATABASE_DIR).
        database_file: File name of the SQLite database inside `database_dir`.
        max_connections: Upper bound on concurrently open connections.
        acquire_timeout: Seconds to wait for a free connection slot.
        list_limit: Default number of records returned by list queries.
        max_list_limit: Largest `limit` a caller may request.
        max_image_bytes: Image payload size above which a warning is logged.
        log_level: Root log level name.
    """

    database_dir: Path
    database_file: str = DEFAULT_DATABASE_FILE
    max_connections: int = DEFAULT_MAX_CONNECTIONS
    acquire_timeout: float = DEFAULT_ACQUIRE_TIMEOUT
    list_limit: int = DEFAULT_LIST_LIMIT
    max_list_limit: int = DEFAULT_MAX_LIST_LIMIT
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES
    log_level: str = "INFO"

    @property
    def db_path(self) -> Path:
        return self.database_dir / self.database_file


def _env(name: str, default: T, cast: Callable[[str], T]) -> T:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise RuntimeError(f"Invalid value for {name}: {raw!r}") from exc


def load_settings() -> Settings:
    """Build `Settings` from the process environment.

    Raises:
        RuntimeError: If DATABASE_DIR is missing or a numeric variable is malformed.
    """
    env_dir = os.getenv("DATABASE_DIR")
    if env_dir is None or not env_dir.strip():
        raise RuntimeError(
            "DATABASE_DIR environment variable must be set to a writable "
            "directory path where the SQLite database file will be stored."
        )

    settings = Settings(
        database_dir=Path(env_dir).expanduser(),
        database_file=_env("DATABASE_FILE", DEFAULT_DATABASE_FILE, str),
        max_connections=_env("DB_MAX_CONNECTIONS", DEFAULT_MAX_CONNECTIONS, int),
        acquire_timeout=_env("DB_ACQUIRE_TIMEOUT", DEFAULT_ACQUIRE_TIMEOUT, float),
        list_limit=_env("RECORD_LIST_LIMIT", DEFAULT_LIST_LIMIT, int),
        max_list_limit=_env("MAX_LIST_LIMIT", DEFAULT_MAX_LIST_LIMIT, int),
        max_image_bytes=_env("MAX_IMAGE_BYTES", DEFAULT_MAX_IMAGE_BYTES, int),
        log_level=_env("LOG_LEVEL", "INFO", str).upper(),
    )

    if settings.max_connections < 1:
        raise RuntimeError("DB_MAX_CONNECTIONS must be at least 1")
    if not 1 <= settings.list_limit <= settings.max_list_limit:
        raise RuntimeError("RECORD_LIST_LIMIT must be between 1 and MAX_LIST_LIMIT")
    return settings
