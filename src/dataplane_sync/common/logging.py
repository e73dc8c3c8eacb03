"""Logging setup for processes that drive the Data Plane API."""

from __future__ import annotations

import logging
import os

LOG_LEVEL_ENV = "DATAPLANE_LOG_LEVEL"
_REQUEST_LOGGERS = ("httpx", "httpcore")


def resolve_level(level: int | str | None) -> int:
    """Map a level number or name to a ``logging`` level; ``None`` reads the environment."""

    if level is None:
        level = os.getenv(LOG_LEVEL_ENV) or logging.INFO
    if isinstance(level, int):
        return level
    resolved = logging.getLevelNamesMapping().get(level.strip().upper())
    if resolved is None:
        raise ValueError(f"Unknown log level {level!r}")
    return resolved


def configure_logging(*, level: int | str | None = None, force: bool = False) -> None:
    """Initialise the root logger for transaction progress output.

    ``level`` takes a number or a name such as ``"debug"``; when omitted it comes from
    ``DATAPLANE_LOG_LEVEL`` and defaults to INFO. Per-request logs from httpx stay at
    WARNING or above so transaction progress stays readable.
    Pass ``force=True`` to reconfigure during tests or specialised entry points.
    """

    effective = resolve_level(level)
    logging.basicConfig(
        level=effective,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=force,
    )
    for name in _REQUEST_LOGGERS:
        logging.getLogger(name).setLevel(max(effective, logging.WARNING))
