from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import sessionmaker

from recordsync.adapters.memory import InMemoryRecordStore
from recordsync.adapters.sqlalchemy import SqlAlchemyRecordStore, shutdown, startup
from recordsync.adapters.sqlalchemy.migrations import upgrade_head
from recordsync.domain.kinds import KindRegistry  # noqa: TC001
from tests.support.kinds import SCHEMA, crm_registry, id_factory
from tests.support.stores import SpyStore

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def kinds() -> KindRegistry:
    return crm_registry()


@pytest.fixture
def memory_store() -> InMemoryRecordStore:
    return InMemoryRecordStore(schema=SCHEMA, id_factory=id_factory())


@pytest.fixture
def spy_store(memory_store: InMemoryRecordStore) -> SpyStore:
    return SpyStore(memory_store)


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sql_store(sqlite_engine: Engine) -> SqlAlchemyRecordStore:
    session_factory = sessionmaker(bind=sqlite_engine, expire_on_commit=False)
    return SqlAlchemyRecordStore(session_factory, schema=SCHEMA)


@pytest.fixture
def started_adapter(sqlite_engine: Engine) -> Iterator[Engine]:
    startup(engine=sqlite_engine, force=True)
    try:
        yield sqlite_engine
    finally:
        shutdown()
