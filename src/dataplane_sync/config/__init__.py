"""Application configuration helpers."""

from __future__ import annotations

from dataplane_sync.common.logging import configure_logging

from .dataplane import (
    DEFAULT_API_VERSION,
    SUPPORTED_API_VERSIONS,
    ApiVersion,
    DataPlaneConfig,
    get_dataplane_config,
)
from .env import env_float, env_int, optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import ResilienceConfig, RetryPolicy

__all__ = [
    "DEFAULT_API_VERSION",
    "SUPPORTED_API_VERSIONS",
    "ApiVersion",
    "ConfigurationError",
    "DataPlaneConfig",
    "MissingConfigurationError",
    "ResilienceConfig",
    "RetryPolicy",
    "configure_logging",
    "env_float",
    "env_int",
    "get_dataplane_config",
    "optional_env_var",
    "require_env_vars",
]
