"""Batch committer: one store write per kind, one outcome per record.

Each record moves ``PENDING -> PERSISTED`` or ``PENDING -> REJECTED``. Both
end states are terminal and nothing is retried here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from recordsync.domain.errors import StoreContractError, StoreRejectionError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from recordsync.domain.errors import RecordError
    from recordsync.domain.model import DomainRecord, RecordId
    from recordsync.domain.ports.persistence import RecordStore, WriteMode, WriteResult

log = getLogger(__name__)


class RecordState(StrEnum):
    PENDING = "pending"
    PERSISTED = "persisted"
    REJECTED = "rejected"


@dataclass(slots=True, kw_only=True)
class RecordOutcome:
    record: DomainRecord
    state: RecordState = RecordState.PENDING
    error: RecordError | None = None

    @property
    def id(self) -> RecordId | None:
        return self.record.id if self.state is RecordState.PERSISTED else None

    @property
    def ok(self) -> bool:
        return self.state is RecordState.PERSISTED

    def persist(self, record_id: RecordId) -> None:
        self._leave_pending(RecordState.PERSISTED)
        self.record.assign_id(record_id)
        self.state = RecordState.PERSISTED

    def reject(self, error: RecordError) -> None:
        self._leave_pending(RecordState.REJECTED)
        self.error = error
        self.state = RecordState.REJECTED

    def _leave_pending(self, target: RecordState) -> None:
        if self.state is not RecordState.PENDING:
            raise ValueError(f"Cannot move {self.state.value} outcome to {target.value}")

    @classmethod
    def rejected(cls, record: DomainRecord, error: RecordError) -> RecordOutcome:
        outcome = cls(record=record)
        outcome.reject(error)
        return outcome

    @classmethod
    def shared(cls, outcome: RecordOutcome) -> RecordOutcome:
        """Outcome of a candidate folded into the record ``outcome`` tracks."""
        return cls(record=outcome.record, state=outcome.state, error=outcome.error)


@dataclass(slots=True)
class CommitResult:
    kind: str
    mode: WriteMode
    outcomes: list[RecordOutcome] = field(default_factory=list[RecordOutcome])

    @property
    def persisted(self) -> list[RecordOutcome]:
        return [outcome for outcome in self.outcomes if outcome.state is RecordState.PERSISTED]

    @property
    def rejected(self) -> list[RecordOutcome]:
        return [outcome for outcome in self.outcomes if outcome.state is RecordState.REJECTED]

    @property
    def ok(self) -> bool:
        return all(outcome.ok for outcome in self.outcomes)


def commit(
    store: RecordStore,
    kind: str,
    records: Sequence[DomainRecord],
    mode: WriteMode,
) -> CommitResult:
    """Write ``records`` with a single ``write_batch`` call.

    Successful records are stamped with the store identifier. Rejections are
    reported per record and never abort the records that succeeded.
    """

    result = CommitResult(kind=kind, mode=mode)
    if not records:
        return result

    results: Sequence[WriteResult] = store.write_batch(kind, list(records), mode)
    if len(results) != len(records):
        raise StoreContractError(
            f"Store returned {len(results)} results for {len(records)} {kind} records"
        )

    for record, write_result in zip(records, results, strict=True):
        outcome = RecordOutcome(record=record)
        if write_result.ok and write_result.id is not None:
            try:
                outcome.persist(write_result.id)
            except ValueError as exc:
                raise StoreContractError(str(exc)) from exc
        else:
            message = write_result.error or "store returned neither id nor error"
            log.warning("Store rejected %s record %s: %s", kind, record.id or "(new)", message)
            outcome.reject(StoreRejectionError(record, message))
        result.outcomes.append(outcome)

    log.info(
        "Committed %s %s records (%s): persisted=%s, rejected=%s",
        len(records),
        kind,
        mode.value,
        len(result.persisted),
        len(result.rejected),
    )
    return result
