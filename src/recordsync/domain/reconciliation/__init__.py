"""Natural-key reconciliation and bulk-upsert core.

Layered flow for one call:
1) extract natural keys from candidates
2) index existing records with a single batch lookup
3) reconcile candidates into updates and creates
4) get-or-create parents and stamp their ids on children
5) commit each kind with one bulk write
"""

from __future__ import annotations

from .commit import CommitResult, RecordOutcome, RecordState, commit
from .engine import CancelSignal, ReconciliationEngine, ReconciliationReport
from .index import NaturalKeyIndex, build_index
from .keys import KeyOf, extract_key, key_extractor
from .link import LinkResolution, LinkResult, link_children
from .reconcile import BatchEntry, ReconcileAction, ReconciliationBatch, reconcile

__all__ = [
    "BatchEntry",
    "CancelSignal",
    "CommitResult",
    "KeyOf",
    "LinkResolution",
    "LinkResult",
    "NaturalKeyIndex",
    "ReconcileAction",
    "ReconciliationBatch",
    "ReconciliationEngine",
    "ReconciliationReport",
    "RecordOutcome",
    "RecordState",
    "build_index",
    "commit",
    "extract_key",
    "key_extractor",
    "link_children",
    "reconcile",
]
