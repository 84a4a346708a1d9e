from __future__ import annotations

from typing import TYPE_CHECKING

from recordsync.app import SyncMode, build_engine, sync_records
from recordsync.config import KindsConfig
from recordsync.domain.model import DomainRecord
from tests.support.kinds import SCHEMA, crm_registry

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from recordsync.adapters.memory import InMemoryRecordStore


def test_sync_records_dispatches_by_mode(memory_store: InMemoryRecordStore) -> None:
    engine = build_engine(
        kinds=KindsConfig(registry=crm_registry(), schema=SCHEMA),
        store=memory_store,
    )
    acme = DomainRecord(kind="Account", attributes={"Name": "Acme"})

    created = sync_records("Account", [acme], engine=engine)
    duplicated = sync_records("Account", [acme], mode=SyncMode.INSERT, engine=engine)
    assert memory_store.count("Account") == 2

    record_id = created.ids[0]
    assert record_id is not None
    deleted = sync_records(
        "Account",
        [DomainRecord(kind="Account", id=record_id)],
        mode=SyncMode.DELETE,
        engine=engine,
    )

    assert created.created == 1
    assert duplicated.created == 1
    assert deleted.ok
    assert memory_store.count("Account") == 1


def test_build_engine_uses_started_sql_adapter(started_adapter: Engine) -> None:
    engine = build_engine(kinds=KindsConfig(registry=crm_registry(), schema=SCHEMA))

    report = sync_records(
        "Account",
        [DomainRecord(kind="Account", attributes={"Name": "Acme"})],
        engine=engine,
    )

    assert report.ok
    assert engine.store.find("Account")[0].id == report.ids[0]
