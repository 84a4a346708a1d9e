"""Natural-key extraction.

Keys are matched exactly: no case folding, no whitespace trimming. Blank
strings count as missing.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from recordsync.domain.errors import MissingKeyError

if TYPE_CHECKING:
    from recordsync.domain.model import DomainRecord

type KeyOf = Callable[[DomainRecord], str]


def extract_key(record: DomainRecord, attribute: str) -> str:
    value = record.attributes.get(attribute)
    if value is None:
        raise MissingKeyError(record, attribute)
    key = value if isinstance(value, str) else str(value)
    if not key.strip():
        raise MissingKeyError(record, attribute)
    return key


def key_extractor(attribute: str) -> KeyOf:
    """Return a ``KeyOf`` reading ``attribute`` from each record."""

    def key_of(record: DomainRecord) -> str:
        return extract_key(record, attribute)

    return key_of
