"""HAProxy Data Plane API configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, cast

from dataplane_sync.domain.transaction import TransactionPolicy

from .env import env_float, env_int, optional_env_var, require_env_vars
from .errors import ConfigurationError
from .http_resilience import ResilienceConfig, RetryPolicy

type ApiVersion = Literal["v2", "v3"]

SUPPORTED_API_VERSIONS: tuple[ApiVersion, ...] = ("v2", "v3")
DEFAULT_API_VERSION: ApiVersion = "v3"
DATAPLANE_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class DataPlaneConfig:
    """Connection and transaction settings for one Data Plane API endpoint."""

    base_url: str
    username: str
    password: str = field(repr=False)
    api_version: ApiVersion = DEFAULT_API_VERSION
    resilience: ResilienceConfig = field(
        default_factory=lambda: ResilienceConfig(name="dataplane")
    )
    transaction: TransactionPolicy = field(default_factory=TransactionPolicy)

    def __post_init__(self) -> None:
        if self.api_version not in SUPPORTED_API_VERSIONS:
            supported = ", ".join(SUPPORTED_API_VERSIONS)
            raise ConfigurationError(
                f"Unsupported Data Plane API version {self.api_version!r} (expected {supported})"
            )
        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"Data Plane URL must be http(s), got {self.base_url!r}")

    @property
    def api_root(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.api_version}"


def get_dataplane_config(
    *,
    resilience: ResilienceConfig | None = None,
    transaction: TransactionPolicy | None = None,
) -> DataPlaneConfig:
    values = require_env_vars(("DATAPLANE_URL", "DATAPLANE_USERNAME", "DATAPLANE_PASSWORD"))
    api_version = optional_env_var("DATAPLANE_API_VERSION") or DEFAULT_API_VERSION
    if api_version not in SUPPORTED_API_VERSIONS:
        raise ConfigurationError(f"DATAPLANE_API_VERSION must be v2 or v3, got {api_version!r}")

    timeout = env_float("DATAPLANE_TIMEOUT_SECONDS", DATAPLANE_TIMEOUT_SECONDS, minimum=0.1)
    default_policy = TransactionPolicy()
    policy = transaction or TransactionPolicy(
        max_attempts=env_int("DATAPLANE_MAX_ATTEMPTS", default_policy.max_attempts, minimum=1),
        retry_delay_seconds=env_float(
            "DATAPLANE_RETRY_DELAY_SECONDS", default_policy.retry_delay_seconds, minimum=0.0
        ),
    )

    return DataPlaneConfig(
        base_url=values["DATAPLANE_URL"],
        username=values["DATAPLANE_USERNAME"],
        password=values["DATAPLANE_PASSWORD"],
        api_version=cast(ApiVersion, api_version),
        resilience=resilience
        or ResilienceConfig(
            name="dataplane",
            timeout_seconds=timeout,
            retry=RetryPolicy(),
            default_headers={"Accept": "application/json"},
        ),
        transaction=policy,
    )
