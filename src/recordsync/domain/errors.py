"""Error taxonomy for reconciliation calls.

Record-level errors (``RecordError`` subclasses) are collected into per-record
outcomes and never raised past a call boundary. The remaining errors abort the
whole call.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from recordsync.domain.model import DomainRecord


class ReconciliationError(Exception):
    """Base class for every error raised or reported by the engine."""


class RecordError(ReconciliationError):
    """A single record could not be processed; its siblings proceed."""

    def __init__(self, record: DomainRecord, message: str) -> None:
        self.record = record
        super().__init__(message)


class MissingKeyError(RecordError):
    """Raised when a record lacks the attribute used as its natural key."""

    def __init__(self, record: DomainRecord, attribute: str) -> None:
        self.attribute = attribute
        super().__init__(record, f"{record.kind} record has no value for key attribute {attribute!r}")


class UnresolvedLinkError(RecordError):
    """Reported for a child whose parent has no identifier after the parent commit."""

    def __init__(self, record: DomainRecord, *, parent_kind: str, parent_key: str) -> None:
        self.parent_kind = parent_kind
        self.parent_key = parent_key
        super().__init__(
            record,
            f"{record.kind} record references {parent_kind} {parent_key!r}, "
            "which was not persisted",
        )


class StoreRejectionError(RecordError):
    """The store refused an individual record during a batch write."""

    def __init__(self, record: DomainRecord, store_message: str) -> None:
        self.store_message = store_message
        super().__init__(record, f"store rejected {record.kind} record: {store_message}")


class StoreUnavailableError(ReconciliationError):
    """The batch call itself could not be carried out."""


class StoreContractError(ReconciliationError):
    """The store answered a batch call with a malformed result."""


class ReconciliationCancelledError(ReconciliationError):
    """The caller cancelled the call between two phases."""

    def __init__(self, phase: str) -> None:
        self.phase = phase
        super().__init__(f"Reconciliation cancelled before phase {phase!r}")


class UnknownKindError(ReconciliationError, KeyError):
    """Raised when no configuration is registered for a record kind."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(kind)

    def __str__(self) -> str:
        return f"No configuration registered for kind {self.kind!r}"
