"""
Domain record: a kind, a bag of attributes and a store-assigned identity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import uuid4

type RecordId = str


def new_record_id() -> RecordId:
    return str(uuid4())


@dataclass(eq=False, kw_only=True)
class DomainRecord:
    """A record of a given kind.

    ``id`` stays ``None`` until a store persists the record. Once assigned it
    never changes; natural keys and foreign keys are ordinary attributes whose
    names are supplied per kind by configuration.
    """

    kind: str
    attributes: dict[str, object] = field(default_factory=dict[str, object])
    id: RecordId | None = None

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    def get(self, attribute: str) -> object | None:
        return self.attributes.get(attribute)

    def assign_id(self, record_id: RecordId) -> None:
        """Stamp the store identifier; re-stamping with another id is refused."""
        if self.id is not None and self.id != record_id:
            raise ValueError(
                f"{self.kind} record already persisted as {self.id}, refusing to reassign {record_id}"
            )
        self.id = record_id

    def copy(self) -> DomainRecord:
        return DomainRecord(kind=self.kind, attributes=dict(self.attributes), id=self.id)
