"""Shared helpers used across adapters and domain services."""

from __future__ import annotations

from .logging import LOG_LEVEL_ENV, configure_logging, resolve_level

__all__ = ["LOG_LEVEL_ENV", "configure_logging", "resolve_level"]
