# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError

from recordsync.adapters.jsonl import RecordFileError, read_records
from recordsync.app import SyncMode, build_engine, sync_records
from recordsync.config import ConfigurationError, configure_logging, get_kinds_config
from recordsync.domain.errors import ReconciliationError, UnknownKindError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from recordsync.domain.reconciliation import ReconciliationReport, RecordOutcome

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile records by natural key")
    parser.add_argument(
        "--kinds",
        type=Path,
        help="TOML file describing record kinds (defaults to $RECORDSYNC_KINDS_FILE)",
    )
    parser.add_argument(
        "--database-uri",
        type=str,
        help="SQLAlchemy database URI (defaults to $DATABASE_URI or the data directory)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "command",
        choices=[mode.value for mode in SyncMode],
        help="upsert matches existing records by key, insert always creates, delete removes by id",
    )
    parser.add_argument("kind", type=str, help="Record kind, as named in the kinds file")
    parser.add_argument(
        "file",
        type=Path,
        help="JSON-lines file with one record per line (optional 'id', other fields are attributes)",
    )
    return parser.parse_args(list(argv))


def _describe(outcome: RecordOutcome) -> str:
    if outcome.ok:
        return f"persisted {outcome.id}"
    return f"rejected {outcome.error}"


def _print_report(report: ReconciliationReport) -> None:
    for position, outcome in enumerate(report.outcomes, start=1):
        print(f"{position}: {_describe(outcome)}")
    print(
        f"{report.kind}: {len(report.persisted)} persisted "
        f"({report.created} created, {report.updated} updated), "
        f"{len(report.failures)} rejected"
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        kinds = get_kinds_config(parsed_args.kinds)
        if parsed_args.kind not in kinds.registry:
            raise UnknownKindError(parsed_args.kind)  # noqa: TRY301
        records = read_records(parsed_args.file, kind=parsed_args.kind)
    except (ConfigurationError, UnknownKindError, RecordFileError, OSError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        engine = build_engine(kinds=kinds, database_uri=parsed_args.database_uri)
        report = sync_records(
            parsed_args.kind,
            records,
            mode=SyncMode(parsed_args.command),
            engine=engine,
        )
    except (ReconciliationError, SQLAlchemyError):
        log.exception("Reconciliation aborted")
        sys.exit(1)

    _print_report(report)
    if not report.ok:
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
