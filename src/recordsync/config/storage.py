"""Where recordsync keeps its data and how it reaches the database."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import DATA_DIR_ENV, DATABASE_ECHO_ENV, DATABASE_URI_ENV, env_flag, env_path, optional_env

APP_DIR_NAME: Final[str] = "recordsync"
DEFAULT_DB_FILENAME: Final[str] = "recordsync.db"


def default_data_dir() -> Path:
    """Platform data directory (``%LOCALAPPDATA%`` or ``$XDG_DATA_HOME``)."""

    if os.name == "nt":
        base = optional_env("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = optional_env("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return base_path / APP_DIR_NAME


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    @classmethod
    def from_env(cls) -> StorageConfig:
        data_dir = env_path(DATA_DIR_ENV) or default_data_dir()
        return cls(data_dir=data_dir.expanduser().resolve())

    def database_path(self, *, create_dir: bool = True) -> Path:
        if create_dir:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        return self.data_dir / self.database_filename

    def sqlite_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    echo: bool = False

    @property
    def is_sqlite(self) -> bool:
        return self.uri.startswith("sqlite")


def get_storage_config() -> StorageConfig:
    return StorageConfig.from_env()


def get_database_config(
    *,
    uri: str | None = None,
    storage: StorageConfig | None = None,
) -> DatabaseConfig:
    """Resolve the database URI: explicit value, then ``$DATABASE_URI``, then the data dir.

    Only the data-dir fallback creates a directory.
    """

    echo = env_flag(DATABASE_ECHO_ENV)
    resolved = uri or optional_env(DATABASE_URI_ENV)
    if resolved is None:
        resolved = (storage or get_storage_config()).sqlite_uri()
    return DatabaseConfig(uri=resolved, echo=echo)
