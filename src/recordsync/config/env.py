"""Environment variables read by recordsync."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Final

from .errors import MissingConfigurationError

DATABASE_URI_ENV: Final[str] = "DATABASE_URI"
DATABASE_ECHO_ENV: Final[str] = "RECORDSYNC_DATABASE_ECHO"
DATA_DIR_ENV: Final[str] = "RECORDSYNC_DATA_DIR"
KINDS_FILE_ENV: Final[str] = "RECORDSYNC_KINDS_FILE"

_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})


def optional_env(name: str) -> str | None:
    """Return the variable's value, treating blank values as unset."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def require_env(name: str) -> str:
    value = optional_env(name)
    if value is None:
        raise MissingConfigurationError([name])
    return value


def env_path(name: str) -> Path | None:
    value = optional_env(name)
    return Path(value).expanduser() if value is not None else None


def env_flag(name: str) -> bool:
    value = optional_env(name)
    return value is not None and value.lower() in _TRUTHY
