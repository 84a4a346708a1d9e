"""Record validation rules enforced by store adapters."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from recordsync.domain.model import DomainRecord


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


@dataclass(frozen=True, slots=True)
class RecordSchema:
    """Required attributes per kind; kinds without an entry accept anything."""

    required: Mapping[str, tuple[str, ...]] = field(default_factory=dict[str, tuple[str, ...]])

    def violation(self, record: DomainRecord) -> str | None:
        """Describe why ``record`` is invalid, or return ``None`` when it is valid."""

        missing = [
            attribute
            for attribute in self.required.get(record.kind, ())
            if _is_blank(record.attributes.get(attribute))
        ]
        if not missing:
            return None
        return f"required attributes missing: {', '.join(missing)}"
