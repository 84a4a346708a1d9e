"""Parent linker: get-or-create parents by natural key, then stamp children.

Order of operations is fixed because child links need parent identifiers:
1) collect the distinct parent keys referenced by the children
2) index + reconcile those keys against the parent kind
3) insert the missing parents in one batch
4) resolve each child's parent key to an identifier and stamp it

A child whose parent could not be persisted is reported with
``UnresolvedLinkError``; its siblings are linked regardless.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from recordsync.domain.errors import MissingKeyError, UnresolvedLinkError
from recordsync.domain.model import DomainRecord
from recordsync.domain.ports.persistence import WriteMode

from .commit import CommitResult, commit
from .index import build_index
from .keys import key_extractor
from .reconcile import ReconcileAction, ReconciliationBatch, reconcile

if TYPE_CHECKING:
    from collections.abc import Sequence

    from recordsync.domain.errors import RecordError
    from recordsync.domain.kinds import KindConfig, ParentLink
    from recordsync.domain.model import RecordId
    from recordsync.domain.ports.persistence import RecordStore

    from .keys import KeyOf

log = getLogger(__name__)


@dataclass(slots=True)
class LinkResolution:
    """Parent natural key -> parent identifier, valid after the parent commit."""

    parent_kind: str
    ids_by_key: dict[str, RecordId] = field(default_factory=dict[str, "RecordId"])

    def resolve(self, key: str) -> RecordId | None:
        return self.ids_by_key.get(key)


@dataclass(slots=True, kw_only=True)
class LinkedChild:
    position: int
    candidate: DomainRecord
    record: DomainRecord
    parent_key: str


@dataclass(slots=True, kw_only=True)
class LinkFailure:
    position: int
    candidate: DomainRecord
    error: RecordError


@dataclass(slots=True, kw_only=True)
class LinkResult:
    resolution: LinkResolution
    parents: ReconciliationBatch
    parent_commit: CommitResult
    linked: list[LinkedChild] = field(default_factory=list[LinkedChild])
    failures: list[LinkFailure] = field(default_factory=list[LinkFailure])


def link_children(
    store: RecordStore,
    children: Sequence[DomainRecord],
    *,
    link: ParentLink,
    parent_config: KindConfig,
    key_of: KeyOf | None = None,
) -> LinkResult:
    """Resolve or create the parent of every child and stamp its identifier."""

    if parent_config.key_attribute is None:
        raise ValueError(f"Parent kind {parent_config.name} has no natural key attribute")
    if parent_config.parent is not None:
        raise ValueError(
            f"Parent kind {parent_config.name} links to {parent_config.parent.parent_kind}; "
            "nested parent links are not supported"
        )
    key_of = key_of or key_extractor(link.reference_attribute)

    keyed: list[tuple[int, DomainRecord, str]] = []
    failures: list[LinkFailure] = []
    for position, child in enumerate(children):
        try:
            keyed.append((position, child, key_of(child)))
        except MissingKeyError as exc:
            failures.append(LinkFailure(position=position, candidate=child, error=exc))

    parent_keys = list(dict.fromkeys(key for _, _, key in keyed))
    index = build_index(
        store,
        parent_config.name,
        parent_keys,
        key_attribute=parent_config.key_attribute,
    )
    parent_candidates = [
        DomainRecord(kind=parent_config.name, attributes={parent_config.key_attribute: key})
        for key in parent_keys
    ]
    parents = reconcile(parent_candidates, index, parent_config)
    to_create = [entry for entry in parents.leaders if entry.action is ReconcileAction.CREATE]
    parent_commit = commit(
        store,
        parent_config.name,
        [entry.record for entry in to_create],
        WriteMode.INSERT,
    )

    resolution = LinkResolution(parent_kind=parent_config.name)
    for entry in parents.to_update:
        if entry.key is not None and entry.record.id is not None:
            resolution.ids_by_key[entry.key] = entry.record.id
    rejections: dict[str, RecordError] = {}
    for entry, outcome in zip(to_create, parent_commit.outcomes, strict=True):
        if entry.key is None:
            continue
        if outcome.id is not None:
            resolution.ids_by_key[entry.key] = outcome.id
        elif outcome.error is not None:
            rejections[entry.key] = outcome.error

    result = LinkResult(
        resolution=resolution,
        parents=parents,
        parent_commit=parent_commit,
        failures=failures,
    )
    for position, child, parent_key in keyed:
        parent_id = resolution.resolve(parent_key)
        if parent_id is None:
            error = UnresolvedLinkError(child, parent_kind=parent_config.name, parent_key=parent_key)
            error.__cause__ = rejections.get(parent_key)
            log.warning("%s", error)
            result.failures.append(LinkFailure(position=position, candidate=child, error=error))
            continue
        stamped = child.copy()
        stamped.attributes[link.attribute] = parent_id
        result.linked.append(
            LinkedChild(position=position, candidate=child, record=stamped, parent_key=parent_key)
        )

    result.failures.sort(key=lambda failure: failure.position)
    log.info(
        "Linked %s of %s children to %s: reused=%s, created=%s, unresolved=%s",
        len(result.linked),
        len(children),
        parent_config.name,
        len(parents.to_update),
        len(parent_commit.persisted),
        len(result.failures),
    )
    return result
