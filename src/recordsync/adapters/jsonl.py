"""JSON-lines record files: one JSON object per line, one record per object."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from recordsync.domain.model import DomainRecord

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path


class RecordFileError(ValueError):
    """Raised when a record file line cannot be parsed."""

    def __init__(self, path: Path, line_number: int, reason: str) -> None:
        self.path = path
        self.line_number = line_number
        super().__init__(f"{path}:{line_number}: {reason}")


class RecordPayload(BaseModel):
    """A record line: optional ``id``, every other field is an attribute."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def attributes(self) -> dict[str, Any]:
        return dict(self.__pydantic_extra__ or {})

    def to_record(self, kind: str) -> DomainRecord:
        return DomainRecord(kind=kind, attributes=self.attributes, id=self.id)


def parse_lines(lines: Iterable[bytes], *, kind: str, path: Path) -> Iterator[DomainRecord]:
    for line_number, raw in enumerate(lines, start=1):
        try:
            line = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise RecordFileError(path, line_number, f"invalid UTF-8: {exc.reason}") from exc
        if not line.strip():
            continue
        try:
            payload = RecordPayload.model_validate_json(line)
        except ValidationError as exc:
            raise RecordFileError(path, line_number, _describe(exc)) from exc
        yield payload.to_record(kind)


def _describe(exc: ValidationError) -> str:
    error = exc.errors()[0]
    if error["type"] == "json_invalid":
        return f"invalid JSON: {error.get('ctx', {}).get('error', error['msg'])}"
    return str(exc)


def read_records(path: Path, *, kind: str) -> list[DomainRecord]:
    with path.open("rb") as handle:
        return list(parse_lines(handle, kind=kind, path=path))
