"""In-memory record store.

Keeps records per kind in insertion order. Used by tests and by library
callers that do not need durability.
"""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from recordsync.domain.errors import StoreUnavailableError
from recordsync.domain.model import DomainRecord, new_record_id
from recordsync.domain.ports.persistence import WriteMode, WriteResult
from recordsync.domain.ports.validation import RecordSchema

if TYPE_CHECKING:
    from collections.abc import Sequence

    from recordsync.domain.model import RecordId
    from recordsync.domain.ports.persistence import AttributeIn

log = getLogger(__name__)


class InMemoryRecordStore:
    """Dict-backed ``RecordStore`` with per-record partial success."""

    def __init__(
        self,
        *,
        schema: RecordSchema | None = None,
        id_factory: Callable[[], RecordId] = new_record_id,
    ) -> None:
        self.schema = schema or RecordSchema()
        self.available = True
        self._id_factory = id_factory
        self._records: dict[str, dict[RecordId, DomainRecord]] = {}

    def find(self, kind: str, predicate: AttributeIn | None = None) -> list[DomainRecord]:
        self._ensure_available()
        records = self._records.get(kind, {}).values()
        return [
            record.copy() for record in records if predicate is None or predicate.matches(record)
        ]

    def write_batch(
        self,
        kind: str,
        records: Sequence[DomainRecord],
        mode: WriteMode,
    ) -> list[WriteResult]:
        self._ensure_available()
        table = self._records.setdefault(kind, {})
        return [self._write_one(table, kind, record, mode) for record in records]

    def seed(self, record: DomainRecord) -> RecordId:
        """Store ``record`` as-is, bypassing validation (duplicates allowed)."""

        stored = record.copy()
        if stored.id is None:
            stored.id = self._id_factory()
        self._records.setdefault(stored.kind, {})[stored.id] = stored
        return stored.id

    def get(self, kind: str, record_id: RecordId) -> DomainRecord | None:
        record = self._records.get(kind, {}).get(record_id)
        return record.copy() if record is not None else None

    def count(self, kind: str) -> int:
        return len(self._records.get(kind, {}))

    def _write_one(
        self,
        table: dict[RecordId, DomainRecord],
        kind: str,
        record: DomainRecord,
        mode: WriteMode,
    ) -> WriteResult:
        if record.kind != kind:
            return WriteResult.failure(f"record kind {record.kind!r} does not match batch kind {kind!r}")

        if mode is WriteMode.DELETE:
            if record.id is None or record.id not in table:
                return WriteResult.failure(f"no {kind} record with id {record.id}")
            del table[record.id]
            return WriteResult.success(record.id)

        violation = self.schema.violation(record)
        if violation is not None:
            return WriteResult.failure(violation)

        if record.id is None:
            record_id = self._id_factory()
            table[record_id] = DomainRecord(kind=kind, attributes=dict(record.attributes), id=record_id)
            return WriteResult.success(record_id)

        if mode is WriteMode.INSERT:
            return WriteResult.failure(f"insert refused, record already has id {record.id}")
        if record.id not in table:
            return WriteResult.failure(f"no {kind} record with id {record.id}")
        table[record.id] = record.copy()
        return WriteResult.success(record.id)

    def _ensure_available(self) -> None:
        if not self.available:
            raise StoreUnavailableError("In-memory store is marked unavailable")
