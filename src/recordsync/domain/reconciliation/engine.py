"""Orchestrator for natural-key reconciliation calls.

Every call runs its phases strictly in sequence:
index -> reconcile -> commit parents -> link -> commit children.
All working state (index, batch, link resolution) lives for one call only, so
an engine instance can be shared between callers without locking.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING

from recordsync.domain.errors import MissingKeyError, ReconciliationCancelledError
from recordsync.domain.ports.persistence import WriteMode

from .commit import RecordOutcome, RecordState, commit
from .index import NaturalKeyIndex, build_index
from .keys import key_extractor
from .link import link_children
from .reconcile import ReconcileAction, reconcile

if TYPE_CHECKING:
    from collections.abc import Sequence

    from recordsync.domain.kinds import KindConfig, KindRegistry
    from recordsync.domain.model import DomainRecord, RecordId
    from recordsync.domain.ports.persistence import RecordStore

    from .commit import CommitResult
    from .keys import KeyOf

type CancelSignal = Callable[[], bool]

log = getLogger(__name__)


@dataclass(slots=True)
class ReconciliationReport:
    """Outcome of one call: exactly one outcome per input record, in input order."""

    kind: str
    outcomes: list[RecordOutcome] = field(default_factory=list[RecordOutcome])
    parents: CommitResult | None = None
    created: int = 0
    updated: int = 0

    @property
    def persisted(self) -> list[RecordOutcome]:
        return [outcome for outcome in self.outcomes if outcome.state is RecordState.PERSISTED]

    @property
    def failures(self) -> list[RecordOutcome]:
        return [outcome for outcome in self.outcomes if outcome.state is RecordState.REJECTED]

    @property
    def ids(self) -> list[RecordId | None]:
        return [outcome.id for outcome in self.outcomes]

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass(slots=True)
class ReconciliationEngine:
    """Run reconcile-and-commit flows against one record store."""

    store: RecordStore
    kinds: KindRegistry

    def upsert(
        self,
        kind: str,
        candidates: Sequence[DomainRecord],
        *,
        key_of: KeyOf | None = None,
        parent_key_of: KeyOf | None = None,
        cancel: CancelSignal | None = None,
    ) -> ReconciliationReport:
        """Match candidates by natural key, then create or update them in one write.

        Kinds linked to a parent kind get their parents resolved or created first.
        """

        return self._run(
            kind,
            candidates,
            match_existing=True,
            key_of=key_of,
            parent_key_of=parent_key_of,
            cancel=cancel,
        )

    def insert(
        self,
        kind: str,
        records: Sequence[DomainRecord],
        *,
        parent_key_of: KeyOf | None = None,
        cancel: CancelSignal | None = None,
    ) -> ReconciliationReport:
        """Create every record without looking for existing ones (parents are still linked)."""

        return self._run(
            kind,
            records,
            match_existing=False,
            key_of=None,
            parent_key_of=parent_key_of,
            cancel=cancel,
        )

    def delete(
        self,
        kind: str,
        records: Sequence[DomainRecord],
        *,
        cancel: CancelSignal | None = None,
    ) -> ReconciliationReport:
        """Remove records by identifier in one batch."""

        _ = self.kinds[kind]
        _checkpoint(cancel, "commit")
        result = commit(self.store, kind, [record.copy() for record in records], WriteMode.DELETE)
        return ReconciliationReport(kind=kind, outcomes=result.outcomes)

    def _run(
        self,
        kind: str,
        candidates: Sequence[DomainRecord],
        *,
        match_existing: bool,
        key_of: KeyOf | None,
        parent_key_of: KeyOf | None,
        cancel: CancelSignal | None,
    ) -> ReconciliationReport:
        config = self.kinds[kind]
        report = ReconciliationReport(kind=kind)
        outcomes: list[RecordOutcome | None] = [None] * len(candidates)

        # (original position, record to reconcile)
        working: list[tuple[int, DomainRecord]]
        if config.parent is not None:
            parent_config = self.kinds[config.parent.parent_kind]
            _checkpoint(cancel, "link")
            linked = link_children(
                self.store,
                candidates,
                link=config.parent,
                parent_config=parent_config,
                key_of=parent_key_of,
            )
            report.parents = linked.parent_commit
            for failure in linked.failures:
                outcomes[failure.position] = RecordOutcome.rejected(failure.candidate, failure.error)
            working = [(child.position, child.record) for child in linked.linked]
        else:
            working = [(position, candidate.copy()) for position, candidate in enumerate(candidates)]

        records = [record for _, record in working]
        index = NaturalKeyIndex(kind=kind)
        if match_existing and config.key_attribute is not None:
            _checkpoint(cancel, "index")
            key_of = key_of or key_extractor(config.key_attribute)
            index = build_index(
                self.store,
                kind,
                _present_keys(records, key_of),
                key_attribute=config.key_attribute,
            )
        effective_config = config if match_existing else _without_key(config)

        _checkpoint(cancel, "reconcile")
        batch = reconcile(
            records,
            index,
            effective_config,
            key_of=key_of if match_existing else None,
            match_ids=match_existing,
        )
        for failure in batch.failures:
            position = working[failure.position][0]
            outcomes[position] = RecordOutcome.rejected(candidates[position], failure.error)

        mode = WriteMode.UPSERT if batch.to_update else WriteMode.INSERT
        _checkpoint(cancel, "commit")
        leaders = batch.leaders
        result = commit(self.store, kind, [entry.record for entry in leaders], mode)
        by_leader: dict[int, RecordOutcome] = {}
        for entry, outcome in zip(leaders, result.outcomes, strict=True):
            by_leader[entry.position] = outcome
            outcomes[working[entry.position][0]] = outcome
            if outcome.ok:
                if entry.action is ReconcileAction.UPDATE:
                    report.updated += 1
                else:
                    report.created += 1
        for entry in batch.entries:
            if entry.leader is not None:
                shared = RecordOutcome.shared(by_leader[entry.leader.position])
                outcomes[working[entry.position][0]] = shared

        report.outcomes = [outcome for outcome in outcomes if outcome is not None]
        if len(report.outcomes) != len(candidates):
            raise RuntimeError(f"Lost track of {len(candidates) - len(report.outcomes)} {kind} records")
        log.info(
            "Reconciled %s %s records: created=%s, updated=%s, rejected=%s",
            len(candidates),
            kind,
            report.created,
            report.updated,
            len(report.failures),
        )
        return report


def _checkpoint(cancel: CancelSignal | None, phase: str) -> None:
    if cancel is not None and cancel():
        log.info("Cancellation requested before %s phase", phase)
        raise ReconciliationCancelledError(phase)


def _present_keys(records: Sequence[DomainRecord], key_of: KeyOf) -> list[str]:
    keys: list[str] = []
    for record in records:
        try:
            keys.append(key_of(record))
        except MissingKeyError:
            continue
    return keys


def _without_key(config: KindConfig) -> KindConfig:
    return replace(config, key_attribute=None)
