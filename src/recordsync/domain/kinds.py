"""Per-kind reconciliation settings supplied by the calling flow."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field

from recordsync.domain.errors import UnknownKindError

type DefaultFactory = Callable[[], object]
type DefaultValue = object | DefaultFactory


@dataclass(frozen=True, slots=True, kw_only=True)
class ParentLink:
    """How a child kind points at its parent kind.

    ``reference_attribute`` holds the parent's natural key on the child;
    ``attribute`` receives the parent identifier once it is known.
    """

    parent_kind: str
    attribute: str
    reference_attribute: str


@dataclass(frozen=True, slots=True, kw_only=True)
class KindConfig:
    name: str
    key_attribute: str | None = None
    mutable_attributes: tuple[str, ...] | None = None
    defaults: Mapping[str, DefaultValue] = field(default_factory=dict[str, "DefaultValue"])
    parent: ParentLink | None = None

    @property
    def has_natural_key(self) -> bool:
        return self.key_attribute is not None

    def is_mutable(self, attribute: str) -> bool:
        if attribute == self.key_attribute:
            return False
        if self.parent is not None and attribute == self.parent.attribute:
            return True
        if self.mutable_attributes is None:
            return True
        return attribute in self.mutable_attributes

    def resolve_defaults(self) -> dict[str, object]:
        """Evaluate defaults for one new record; callables are invoked each time."""
        return {
            attribute: value() if callable(value) else value
            for attribute, value in self.defaults.items()
        }


class KindRegistry(Mapping[str, KindConfig]):
    """Lookup of kind configurations by kind name."""

    def __init__(self, configs: Iterable[KindConfig] = ()) -> None:
        self._configs: dict[str, KindConfig] = {}
        for config in configs:
            self.register(config)

    def register(self, config: KindConfig) -> None:
        self._configs[config.name] = config

    def __getitem__(self, kind: str) -> KindConfig:
        try:
            return self._configs[kind]
        except KeyError:
            raise UnknownKindError(kind) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._configs)

    def __len__(self) -> int:
        return len(self._configs)

    def parent_of(self, kind: str) -> KindConfig | None:
        config = self[kind]
        if config.parent is None:
            return None
        return self[config.parent.parent_kind]
