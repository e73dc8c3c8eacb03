"""Public interface for the Data Plane API adapter."""

from __future__ import annotations

from .client import DataPlaneClient, sanitize_body
from .drivers import DataPlaneDriver, build_drivers
from .schema import PAYLOAD_MODELS, APIErrorPayload, TransactionPayload, parse_version

__all__ = [
    "PAYLOAD_MODELS",
    "APIErrorPayload",
    "DataPlaneClient",
    "DataPlaneDriver",
    "TransactionPayload",
    "build_drivers",
    "parse_version",
    "sanitize_body",
]
