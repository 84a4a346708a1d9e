"""Process-wide engine for the SQLAlchemy record store.

``startup`` binds an engine (creating one from configuration when none is
given) and migrates it to the latest schema; stores created afterwards share
its session factory until ``shutdown``.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from recordsync.adapters.sqlalchemy.migrations import current_revision, upgrade_head
from recordsync.config import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the SQLAlchemy adapter is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    engine: Engine | None = None
    sessions: sessionmaker[Session] | None = None

    def bind(self, engine: Engine | None) -> None:
        self.engine = engine
        self.sessions = (
            sessionmaker(bind=engine, expire_on_commit=False) if engine is not None else None
        )

    def require_sessions(self) -> sessionmaker[Session]:
        if self.sessions is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call recordsync.adapters.sqlalchemy."
                "startup() before creating a store."
            )
        return self.sessions


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind ``engine`` (or one built from configuration) and migrate it to head."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    if engine is None:
        database = get_database_config(uri=database_uri)
        engine = create_engine(database.uri, echo=database.echo, future=True)
    upgrade_head(engine=engine)
    log.info(
        "Using database %s at schema revision %s",
        engine.url.render_as_string(hide_password=True),
        current_revision(engine),
    )
    if _STATE.engine is not None and _STATE.engine is not engine:
        _STATE.engine.dispose()
    _STATE.bind(engine)


def configured_engine() -> Engine | None:
    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def session_factory() -> sessionmaker[Session]:
    return _STATE.require_sessions()


def shutdown() -> None:
    """Dispose the bound engine and forget it (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.bind(None)
