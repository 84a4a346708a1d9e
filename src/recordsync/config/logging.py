"""Logging setup for the recordsync command line."""

from __future__ import annotations

import logging
import sys
from typing import Final

LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
# migration chatter is only interesting when debugging
QUIET_LOGGERS: Final[tuple[str, ...]] = ("alembic",)


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Send log records to stderr so the per-record report on stdout stays parseable.

    Pass ``force=True`` to reconfigure during tests or specialised entry points.
    """

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        stream=sys.stderr,
        force=force,
    )
    quiet_level = logging.NOTSET if level <= logging.DEBUG else logging.WARNING
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)
