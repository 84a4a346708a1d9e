"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import AttributeIn, RecordStore, WriteMode, WriteResult
from .validation import RecordSchema

__all__ = [
    "AttributeIn",
    "RecordSchema",
    "RecordStore",
    "WriteMode",
    "WriteResult",
]
