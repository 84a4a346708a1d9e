"""Kind configuration loaded from a TOML file.

Example::

    [kinds.Account]
    key_attribute = "Name"
    required = ["Name"]

    [kinds.Opportunity]
    key_attribute = "Name"
    mutable_attributes = ["Amount"]
    defaults = { StageName = "Prospecting" }
    date_offsets = { CloseDate = 30 }

    [kinds.Contact]
    required = ["LastName"]
    parent = { kind = "Account", attribute = "AccountId", reference_attribute = "LastName" }
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from recordsync.domain.kinds import KindConfig, KindRegistry, ParentLink
from recordsync.domain.ports.validation import RecordSchema

from .env import KINDS_FILE_ENV, require_env
from .errors import ConfigurationError, ConfigurationFileError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from recordsync.domain.kinds import DefaultValue

type ScalarValue = str | bool | int | float | date


class KindsBaseModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class ParentSettings(KindsBaseModel):
    kind: str = Field(min_length=1)
    attribute: str = Field(min_length=1)
    reference_attribute: str = Field(min_length=1)


class KindSettings(KindsBaseModel):
    key_attribute: str | None = Field(default=None, min_length=1)
    mutable_attributes: tuple[str, ...] | None = None
    required: tuple[str, ...] = ()
    defaults: dict[str, ScalarValue] = Field(default_factory=dict)
    date_offsets: dict[str, int] = Field(default_factory=dict)
    parent: ParentSettings | None = None

    @model_validator(mode="after")
    def _check_defaults(self) -> KindSettings:
        clashing = sorted(set(self.defaults) & set(self.date_offsets))
        if clashing:
            raise ValueError(f"attributes set in both defaults and date_offsets: {', '.join(clashing)}")
        return self


class KindsFile(KindsBaseModel):
    kinds: dict[str, KindSettings] = Field(min_length=1)

    @model_validator(mode="after")
    def _check_parents(self) -> KindsFile:
        for name, settings in self.kinds.items():
            if settings.parent is None:
                continue
            parent = self.kinds.get(settings.parent.kind)
            if parent is None:
                raise ValueError(f"kind {name} links to undefined kind {settings.parent.kind}")
            if parent.key_attribute is None:
                raise ValueError(
                    f"kind {name} links to {settings.parent.kind}, which has no key_attribute"
                )
            if parent.parent is not None:
                raise ValueError(
                    f"kind {name} links to {settings.parent.kind}, which has its own parent"
                )
        return self


@dataclass(frozen=True, slots=True)
class KindsConfig:
    registry: KindRegistry
    schema: RecordSchema


def today_plus(days: int) -> str:
    """ISO date ``days`` after today (UTC)."""

    return (datetime.now(UTC).date() + timedelta(days=days)).isoformat()


def parse_kinds_config(document: Mapping[str, object]) -> KindsConfig:
    try:
        parsed = KindsFile.model_validate(document)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid kinds configuration: {exc}") from exc

    registry = KindRegistry()
    required: dict[str, tuple[str, ...]] = {}
    for name, settings in parsed.kinds.items():
        registry.register(_kind_config(name, settings))
        if settings.required:
            required[name] = settings.required
    return KindsConfig(registry=registry, schema=RecordSchema(required=required))


def load_kinds_config(path: Path) -> KindsConfig:
    try:
        with path.open("rb") as handle:
            document = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigurationFileError(path, "kinds file not found") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationFileError(path, f"not valid TOML: {exc}") from exc
    return parse_kinds_config(document)


def get_kinds_config(path: Path | None = None) -> KindsConfig:
    """Load kinds from ``path`` or from the file named by ``RECORDSYNC_KINDS_FILE``."""

    if path is None:
        path = Path(require_env(KINDS_FILE_ENV))
    return load_kinds_config(path.expanduser())


def _kind_config(name: str, settings: KindSettings) -> KindConfig:
    defaults: dict[str, DefaultValue] = {
        attribute: value.isoformat() if isinstance(value, date) else value
        for attribute, value in settings.defaults.items()
    }
    for attribute, days in settings.date_offsets.items():
        defaults[attribute] = partial(today_plus, days)

    parent = None
    if settings.parent is not None:
        parent = ParentLink(
            parent_kind=settings.parent.kind,
            attribute=settings.parent.attribute,
            reference_attribute=settings.parent.reference_attribute,
        )
    return KindConfig(
        name=name,
        key_attribute=settings.key_attribute,
        mutable_attributes=settings.mutable_attributes,
        defaults=defaults,
        parent=parent,
    )
