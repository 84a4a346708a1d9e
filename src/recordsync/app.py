"""Application orchestration entry points."""

from __future__ import annotations

from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from recordsync.adapters.sqlalchemy import SqlAlchemyRecordStore, is_started, startup
from recordsync.config import get_kinds_config
from recordsync.domain.reconciliation import ReconciliationEngine

if TYPE_CHECKING:
    from collections.abc import Sequence

    from recordsync.config import KindsConfig
    from recordsync.domain.model import DomainRecord
    from recordsync.domain.ports.persistence import RecordStore
    from recordsync.domain.reconciliation import CancelSignal, ReconciliationReport


log = getLogger(__name__)


class SyncMode(StrEnum):
    UPSERT = "upsert"
    INSERT = "insert"
    DELETE = "delete"


def build_engine(
    *,
    kinds: KindsConfig | None = None,
    store: RecordStore | None = None,
    database_uri: str | None = None,
) -> ReconciliationEngine:
    """Wire a reconciliation engine to the configured kinds and store.

    Without an explicit ``store`` the SQLAlchemy adapter is started (once) and used.
    """

    kinds_config = kinds or get_kinds_config()
    if store is None:
        if not is_started():
            startup(database_uri=database_uri)
        store = SqlAlchemyRecordStore(schema=kinds_config.schema)
    return ReconciliationEngine(store=store, kinds=kinds_config.registry)


def sync_records(
    kind: str,
    records: Sequence[DomainRecord],
    *,
    mode: SyncMode = SyncMode.UPSERT,
    engine: ReconciliationEngine | None = None,
    cancel: CancelSignal | None = None,
) -> ReconciliationReport:
    """Run one reconciliation call for ``records`` of ``kind``."""

    effective_engine = engine or build_engine()
    log.info("Starting %s of %s %s records", mode.value, len(records), kind)

    if mode is SyncMode.DELETE:
        report = effective_engine.delete(kind, records, cancel=cancel)
    elif mode is SyncMode.INSERT:
        report = effective_engine.insert(kind, records, cancel=cancel)
    else:
        report = effective_engine.upsert(kind, records, cancel=cancel)

    log.info(
        f"Finished {mode.value} of {kind}: persisted={len(report.persisted)}, "
        f"rejected={len(report.failures)}, created={report.created}, updated={report.updated}"
    )
    return report
