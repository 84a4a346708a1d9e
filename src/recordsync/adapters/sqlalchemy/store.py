"""Record store backed by a SQLAlchemy session factory."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Any

from sqlalchemy import String, bindparam, cast, delete, insert, select, update
from sqlalchemy.exc import InterfaceError, OperationalError

from recordsync.adapters.sqlalchemy.mappings import record_table
from recordsync.adapters.sqlalchemy.state import session_factory as default_session_factory
from recordsync.domain.errors import StoreUnavailableError
from recordsync.domain.model import DomainRecord, new_record_id
from recordsync.domain.ports.persistence import WriteMode, WriteResult
from recordsync.domain.ports.validation import RecordSchema

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.orm import Session, sessionmaker

    from recordsync.domain.model import RecordId
    from recordsync.domain.ports.persistence import AttributeIn

log = getLogger(__name__)


class SqlAlchemyRecordStore:
    """``RecordStore`` keeping every kind in the ``record`` table.

    A batch write is one transaction: records are validated up front, known
    ids are checked with one ``SELECT``, then inserts, updates and deletes are
    issued as bulk statements. Rejected records never reach the database.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        *,
        schema: RecordSchema | None = None,
        id_factory: Callable[[], RecordId] = new_record_id,
    ) -> None:
        self.session_factory = session_factory or default_session_factory()
        self.schema = schema or RecordSchema()
        self._id_factory = id_factory

    def find(self, kind: str, predicate: AttributeIn | None = None) -> list[DomainRecord]:
        stmt = (
            select(record_table.c.id, record_table.c.attributes)
            .where(record_table.c.kind == kind)
            .order_by(record_table.c.seq)
        )
        if predicate is not None:
            if not predicate.values:
                return []
            # CAST so numeric JSON values compare like their str() form
            key_value = cast(record_table.c.attributes[predicate.attribute].as_string(), String)
            stmt = stmt.where(key_value.in_(sorted(predicate.values)))
        try:
            with self.session_factory() as session:
                rows = session.execute(stmt).all()
        except (OperationalError, InterfaceError) as exc:
            raise StoreUnavailableError(f"Could not read {kind} records: {exc}") from exc
        return [
            DomainRecord(kind=kind, attributes=dict(attributes), id=record_id)
            for record_id, attributes in rows
        ]

    def write_batch(
        self,
        kind: str,
        records: Sequence[DomainRecord],
        mode: WriteMode,
    ) -> list[WriteResult]:
        now = datetime.now(UTC)
        try:
            with self.session_factory() as session, session.begin():
                known = self._existing_ids(session, kind, records, mode)
                batch = _BatchStatements(now=now)
                results = [
                    self._plan_one(batch, known, kind, record, mode) for record in records
                ]
                batch.execute(session)
        except (OperationalError, InterfaceError) as exc:
            raise StoreUnavailableError(f"Could not write {kind} records: {exc}") from exc
        log.debug(
            "Wrote %s batch for %s: inserted=%s, updated=%s, deleted=%s",
            mode.value,
            kind,
            len(batch.inserts),
            len(batch.updates),
            len(batch.deletes),
        )
        return results

    def _existing_ids(
        self,
        session: Session,
        kind: str,
        records: Sequence[DomainRecord],
        mode: WriteMode,
    ) -> set[RecordId]:
        if mode is WriteMode.INSERT:
            return set()
        ids = {record.id for record in records if record.id is not None}
        if not ids:
            return set()
        stmt = (
            select(record_table.c.id)
            .where(record_table.c.kind == kind)
            .where(record_table.c.id.in_(sorted(ids)))
        )
        return set(session.execute(stmt).scalars())

    def _plan_one(
        self,
        batch: _BatchStatements,
        known: set[RecordId],
        kind: str,
        record: DomainRecord,
        mode: WriteMode,
    ) -> WriteResult:
        if record.kind != kind:
            return WriteResult.failure(f"record kind {record.kind!r} does not match batch kind {kind!r}")

        if mode is WriteMode.DELETE:
            if record.id is None or record.id not in known:
                return WriteResult.failure(f"no {kind} record with id {record.id}")
            known.discard(record.id)
            batch.deletes.append(record.id)
            return WriteResult.success(record.id)

        violation = self.schema.violation(record)
        if violation is not None:
            return WriteResult.failure(violation)

        if record.id is None:
            record_id = self._id_factory()
            batch.inserts.append(
                {
                    "id": record_id,
                    "kind": kind,
                    "attributes": dict(record.attributes),
                    "created_at": batch.now,
                    "updated_at": batch.now,
                }
            )
            return WriteResult.success(record_id)

        if mode is WriteMode.INSERT:
            return WriteResult.failure(f"insert refused, record already has id {record.id}")
        if record.id not in known:
            return WriteResult.failure(f"no {kind} record with id {record.id}")
        batch.updates.append(
            {
                "b_id": record.id,
                "b_attributes": dict(record.attributes),
                "b_updated_at": batch.now,
            }
        )
        return WriteResult.success(record.id)


class _BatchStatements:
    def __init__(self, *, now: datetime) -> None:
        self.now = now
        self.inserts: list[dict[str, Any]] = []
        self.updates: list[dict[str, Any]] = []
        self.deletes: list[RecordId] = []

    def execute(self, session: Session) -> None:
        if self.inserts:
            session.execute(insert(record_table), self.inserts)
        if self.updates:
            stmt = (
                update(record_table)
                .where(record_table.c.id == bindparam("b_id"))
                .values(
                    attributes=bindparam("b_attributes", type_=record_table.c.attributes.type),
                    updated_at=bindparam("b_updated_at", type_=record_table.c.updated_at.type),
                )
            )
            session.execute(stmt, self.updates)
        if self.deletes:
            session.execute(delete(record_table).where(record_table.c.id.in_(self.deletes)))
