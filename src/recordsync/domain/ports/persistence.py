"""Port for the persistent record store the engine reads from and writes to."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from recordsync.domain.model import DomainRecord, RecordId


class WriteMode(StrEnum):
    """Batch write semantics.

    ``INSERT`` creates only, ``UPSERT`` creates records without an id and
    updates records by id, ``DELETE`` removes records by id.
    """

    INSERT = "insert"
    UPSERT = "upsert"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class AttributeIn:
    """Predicate: the attribute, compared as a string, is one of ``values``."""

    attribute: str
    values: frozenset[str]

    def matches(self, record: DomainRecord) -> bool:
        value = record.attributes.get(self.attribute)
        return value is not None and str(value) in self.values


@dataclass(frozen=True, slots=True)
class WriteResult:
    """Outcome of one record within a batch write: an id or an error message."""

    id: RecordId | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, record_id: RecordId) -> WriteResult:
        return cls(id=record_id)

    @classmethod
    def failure(cls, message: str) -> WriteResult:
        return cls(error=message)


@runtime_checkable
class RecordStore(Protocol):
    """Minimal contract for a store with batch reads and partial-success batch writes."""

    def find(self, kind: str, predicate: AttributeIn | None = None) -> Sequence[DomainRecord]:
        """Return detached copies of the matching records, in store order."""
        ...

    def write_batch(
        self,
        kind: str,
        records: Sequence[DomainRecord],
        mode: WriteMode,
    ) -> Sequence[WriteResult]:
        """Write all records in one call; one result per record, in input order."""
        ...
