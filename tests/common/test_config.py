from __future__ import annotations

import pytest

from dataplane_sync.config import (
    ConfigurationError,
    DataPlaneConfig,
    MissingConfigurationError,
    env_float,
    env_int,
    get_dataplane_config,
    optional_env_var,
    require_env_vars,
)
from dataplane_sync.domain.transaction import TransactionPolicy


@pytest.fixture
def dataplane_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    monkeypatch.setenv("DATAPLANE_URL", "http://haproxy:5555/")
    monkeypatch.setenv("DATAPLANE_USERNAME", "admin")
    monkeypatch.setenv("DATAPLANE_PASSWORD", "s3cret")
    for name in (
        "DATAPLANE_API_VERSION",
        "DATAPLANE_TIMEOUT_SECONDS",
        "DATAPLANE_MAX_ATTEMPTS",
        "DATAPLANE_RETRY_DELAY_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_reports_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_B", raising=False)
    monkeypatch.setenv("MISSING_A", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert exc.value.names == ("MISSING_A", "MISSING_B")
    assert "MISSING_A, MISSING_B" in str(exc.value)


def test_optional_env_var_treats_blank_as_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "  ")

    assert optional_env_var("EXAMPLE_VAR") is None


def test_numeric_env_vars_parse_and_validate(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_INT", "4")
    monkeypatch.setenv("EXAMPLE_FLOAT", "0.5")
    monkeypatch.delenv("EXAMPLE_UNSET", raising=False)

    assert env_int("EXAMPLE_INT", 1) == 4
    assert env_float("EXAMPLE_FLOAT", 1.0) == 0.5
    assert env_int("EXAMPLE_UNSET", 9) == 9

    with pytest.raises(ConfigurationError, match=">= 5"):
        env_int("EXAMPLE_INT", 1, minimum=5)

    monkeypatch.setenv("EXAMPLE_INT", "four")
    with pytest.raises(ConfigurationError, match="must be an integer"):
        env_int("EXAMPLE_INT", 1)


def test_get_dataplane_config_defaults(dataplane_env: pytest.MonkeyPatch) -> None:
    config = get_dataplane_config()

    assert config.api_version == "v3"
    assert config.api_root == "http://haproxy:5555/v3"
    assert config.transaction == TransactionPolicy()
    assert config.resilience.retry is not None
    assert "s3cret" not in repr(config)


def test_get_dataplane_config_reads_overrides(dataplane_env: pytest.MonkeyPatch) -> None:
    dataplane_env.setenv("DATAPLANE_API_VERSION", "v2")
    dataplane_env.setenv("DATAPLANE_TIMEOUT_SECONDS", "5")
    dataplane_env.setenv("DATAPLANE_MAX_ATTEMPTS", "2")
    dataplane_env.setenv("DATAPLANE_RETRY_DELAY_SECONDS", "0")

    config = get_dataplane_config()

    assert config.api_root == "http://haproxy:5555/v2"
    assert config.resilience.timeout_seconds == 5.0
    assert config.transaction.max_attempts == 2
    assert config.transaction.retry_delay_seconds == 0.0


def test_get_dataplane_config_rejects_unknown_api_version(
    dataplane_env: pytest.MonkeyPatch,
) -> None:
    dataplane_env.setenv("DATAPLANE_API_VERSION", "v1")

    with pytest.raises(ConfigurationError, match="v2 or v3"):
        get_dataplane_config()


def test_get_dataplane_config_requires_credentials(dataplane_env: pytest.MonkeyPatch) -> None:
    dataplane_env.delenv("DATAPLANE_PASSWORD")

    with pytest.raises(MissingConfigurationError, match="DATAPLANE_PASSWORD"):
        get_dataplane_config()


def test_dataplane_config_requires_http_url() -> None:
    with pytest.raises(ConfigurationError, match="http"):
        DataPlaneConfig(base_url="haproxy:5555", username="admin", password="pw")
