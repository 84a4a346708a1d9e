"""Partition candidates into updates of persisted records and new records.

Responsibilities of this stage:
- match each candidate against the natural-key index
- overlay mutable attributes onto a copy of the matched record
- build new records from caller defaults plus candidate attributes
- fold candidates repeating a key into the first entry for that key, so one
  record is written per key
- route unmatched candidates that already carry an id to an update by id

This stage is a pure transform: no store access, inputs are never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from recordsync.domain.errors import MissingKeyError
from recordsync.domain.model import DomainRecord

from .keys import key_extractor

if TYPE_CHECKING:
    from collections.abc import Sequence

    from recordsync.domain.kinds import KindConfig

    from .index import NaturalKeyIndex
    from .keys import KeyOf

log = getLogger(__name__)


class ReconcileAction(StrEnum):
    UPDATE = "update"
    CREATE = "create"


@dataclass(slots=True, kw_only=True)
class BatchEntry:
    """One reconciled candidate and the record that will be written for it."""

    position: int
    candidate: DomainRecord
    record: DomainRecord
    action: ReconcileAction
    key: str | None = None
    # first entry for the same key; this candidate was folded into its record
    leader: BatchEntry | None = None


@dataclass(slots=True, kw_only=True)
class KeyFailure:
    position: int
    candidate: DomainRecord
    error: MissingKeyError


@dataclass(slots=True)
class ReconciliationBatch:
    """Reconciled working set of one kind, in input order."""

    kind: str
    entries: list[BatchEntry] = field(default_factory=list[BatchEntry])
    failures: list[KeyFailure] = field(default_factory=list[KeyFailure])

    @property
    def to_update(self) -> list[BatchEntry]:
        return [entry for entry in self.entries if entry.action is ReconcileAction.UPDATE]

    @property
    def to_create(self) -> list[BatchEntry]:
        return [entry for entry in self.entries if entry.action is ReconcileAction.CREATE]

    @property
    def leaders(self) -> list[BatchEntry]:
        """Entries whose record is written; folded entries share their leader's record."""
        return [entry for entry in self.entries if entry.leader is None]

    @property
    def records(self) -> list[DomainRecord]:
        return [entry.record for entry in self.leaders]

    def __len__(self) -> int:
        return len(self.entries) + len(self.failures)


def reconcile(
    candidates: Sequence[DomainRecord],
    index: NaturalKeyIndex,
    config: KindConfig,
    *,
    key_of: KeyOf | None = None,
    match_ids: bool = True,
) -> ReconciliationBatch:
    """Classify every candidate as update, create or key failure.

    A candidate whose key was already seen in this batch is folded into the
    earlier entry: its mutable attributes are applied to that entry's record
    and it shares that entry's action. With ``match_ids`` an unmatched
    candidate carrying an id becomes an update by id; otherwise the id is kept
    on the new record and the store decides.
    """

    batch = ReconciliationBatch(kind=config.name)
    if key_of is None and config.key_attribute is not None:
        key_of = key_extractor(config.key_attribute)

    leaders: dict[str, BatchEntry] = {}
    for position, candidate in enumerate(candidates):
        key: str | None = None
        if key_of is not None:
            try:
                key = key_of(candidate)
            except MissingKeyError as exc:
                batch.failures.append(KeyFailure(position=position, candidate=candidate, error=exc))
                continue

        leader = leaders.get(key) if key is not None else None
        if leader is not None:
            _apply_mutable(leader.record, candidate, config)
            batch.entries.append(
                BatchEntry(
                    position=position,
                    candidate=candidate,
                    record=leader.record,
                    action=leader.action,
                    key=key,
                    leader=leader,
                )
            )
            continue

        persisted = index.get(key) if key is not None else None
        if persisted is not None:
            entry = BatchEntry(
                position=position,
                candidate=candidate,
                record=_overlay(persisted, candidate, config),
                action=ReconcileAction.UPDATE,
                key=key,
            )
        elif match_ids and candidate.id is not None:
            entry = BatchEntry(
                position=position,
                candidate=candidate,
                record=candidate.copy(),
                action=ReconcileAction.UPDATE,
                key=key,
            )
        else:
            entry = BatchEntry(
                position=position,
                candidate=candidate,
                record=_new_record(candidate, config),
                action=ReconcileAction.CREATE,
                key=key,
            )
        if key is not None:
            leaders[key] = entry
        batch.entries.append(entry)

    folded = len(batch.entries) - len(batch.leaders)
    if folded:
        log.info("Folded %s repeated-key %s candidates into earlier entries", folded, config.name)
    log.debug(
        "Reconciled %s %s candidates: update=%s, create=%s, missing_key=%s",
        len(candidates),
        config.name,
        len(batch.to_update),
        len(batch.to_create),
        len(batch.failures),
    )
    return batch


def _apply_mutable(record: DomainRecord, candidate: DomainRecord, config: KindConfig) -> None:
    for attribute, value in candidate.attributes.items():
        if config.is_mutable(attribute):
            record.attributes[attribute] = value


def _overlay(persisted: DomainRecord, candidate: DomainRecord, config: KindConfig) -> DomainRecord:
    record = persisted.copy()
    _apply_mutable(record, candidate, config)
    return record


def _new_record(candidate: DomainRecord, config: KindConfig) -> DomainRecord:
    attributes = config.resolve_defaults()
    attributes.update(candidate.attributes)
    return DomainRecord(kind=config.name, attributes=attributes, id=candidate.id)
