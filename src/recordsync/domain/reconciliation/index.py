"""Existing-record index built from a single batch lookup.

One ``find`` call per index, whatever the number of keys. Looking records up
one key at a time is exactly what this module exists to avoid.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from recordsync.domain.ports.persistence import AttributeIn

if TYPE_CHECKING:
    from collections.abc import Iterable

    from recordsync.domain.model import DomainRecord, RecordId
    from recordsync.domain.ports.persistence import RecordStore

log = getLogger(__name__)


@dataclass(slots=True)
class NaturalKeyIndex:
    """Natural key -> the persisted record selected for that key."""

    kind: str
    entries: dict[str, DomainRecord] = field(default_factory=dict[str, "DomainRecord"])
    # later records sharing an already indexed key; kept for reporting only
    shadowed: list[DomainRecord] = field(default_factory=list["DomainRecord"])

    def get(self, key: str) -> DomainRecord | None:
        return self.entries.get(key)

    def identifier(self, key: str) -> RecordId | None:
        record = self.entries.get(key)
        return record.id if record is not None else None

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def __len__(self) -> int:
        return len(self.entries)


def build_index(
    store: RecordStore,
    kind: str,
    keys: Iterable[str],
    *,
    key_attribute: str,
) -> NaturalKeyIndex:
    """Index the persisted ``kind`` records whose ``key_attribute`` is in ``keys``.

    When the store holds several records for one key, the first one returned
    wins and the others are listed in ``NaturalKeyIndex.shadowed``.
    """

    wanted = frozenset(keys)
    index = NaturalKeyIndex(kind=kind)
    if not wanted:
        return index

    found = store.find(kind, AttributeIn(key_attribute, wanted))
    for record in found:
        value = record.attributes.get(key_attribute)
        key = str(value) if value is not None else None
        if key is None or key not in wanted:
            continue
        if key in index.entries:
            index.shadowed.append(record)
            continue
        index.entries[key] = record

    if index.shadowed:
        duplicates = Counter(str(record.attributes[key_attribute]) for record in index.shadowed)
        for duplicate, count in sorted(duplicates.items()):
            log.warning(
                "Store holds %s %s records for key %r; using %s",
                count + 1,
                kind,
                duplicate,
                index.identifier(duplicate),
            )

    log.debug("Indexed %s of %s requested %s keys", len(index), len(wanted), kind)
    return index
