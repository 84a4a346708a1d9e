"""SQLAlchemy adapter package for recordsync."""

from __future__ import annotations

from .mappings import metadata, record_table
from .state import StartupError, configured_engine, is_started, shutdown, startup
from .store import SqlAlchemyRecordStore

__all__ = [
    "SqlAlchemyRecordStore",
    "StartupError",
    "configured_engine",
    "is_started",
    "metadata",
    "record_table",
    "shutdown",
    "startup",
]
