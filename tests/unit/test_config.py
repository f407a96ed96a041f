"""Tests for controller configuration."""

from __future__ import annotations

import pytest

from iam_service_account_controller.config import ControllerConfig, load_config
from iam_service_account_controller.utils.errors import ConfigurationError

OIDC = "oidc.eks.eu-west-1.amazonaws.com/id/EXAMPLE"

ENV_VARS = (
    "OIDC_PROVIDER",
    "CONTROLLER_NAME",
    "AWS_REGION",
    "IAM_ROLE_PREFIX",
    "CLUSTER_NAME",
    "CONTROLLER_ROLE_ARN",
    "WEB_IDENTITY_TOKEN_PATH",
    "WORKER_THREADS",
    "RESYNC_INTERVAL_SECONDS",
    "METRICS_PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestFromEnv:
    """Test cases for reading configuration from the environment."""

    def test_defaults(self, monkeypatch):
        """Test default values."""
        monkeypatch.setenv("OIDC_PROVIDER", OIDC)

        config = ControllerConfig.from_env()

        assert config.oidc_provider == OIDC
        assert config.controller_name == "iam-service-account-controller"
        assert config.region == "eu-west-1"
        assert config.role_prefix == "k8s-sa"
        assert config.cluster_name == "cluster"
        assert config.worker_threads == 2
        assert config.uses_web_identity

    def test_overrides(self, monkeypatch):
        """Test that every variable is honoured."""
        monkeypatch.setenv("OIDC_PROVIDER", OIDC)
        monkeypatch.setenv("CONTROLLER_NAME", "ctl")
        monkeypatch.setenv("AWS_REGION", "us-east-1")
        monkeypatch.setenv("IAM_ROLE_PREFIX", "")
        monkeypatch.setenv("CLUSTER_NAME", "prod")
        monkeypatch.setenv("WEB_IDENTITY_TOKEN_PATH", "")
        monkeypatch.setenv("WORKER_THREADS", "4")
        monkeypatch.setenv("RESYNC_INTERVAL_SECONDS", "0")
        monkeypatch.setenv("METRICS_PORT", "9090")

        config = ControllerConfig.from_env()

        assert config.controller_name == "ctl"
        assert config.region == "us-east-1"
        assert config.role_prefix == ""
        assert config.cluster_name == "prod"
        assert not config.uses_web_identity
        assert config.worker_threads == 4
        assert config.resync_interval_seconds == 0
        assert config.metrics_port == 9090

    def test_invalid_number(self, monkeypatch):
        """Test that unparseable numbers are configuration errors."""
        monkeypatch.setenv("WORKER_THREADS", "many")
        with pytest.raises(ConfigurationError, match="Invalid numeric configuration"):
            ControllerConfig.from_env()


class TestValidate:
    """Test cases for configuration validation."""

    def _config(self, **overrides) -> ControllerConfig:
        values = {"oidc_provider": OIDC, "token_path": ""}
        values.update(overrides)
        return ControllerConfig(**values)

    def test_valid(self):
        """Test that a complete configuration passes."""
        self._config().validate()

    def test_missing_oidc_provider(self):
        """Test that the OIDC provider is required."""
        with pytest.raises(ConfigurationError, match="OIDC provider"):
            self._config(oidc_provider="").validate()

    def test_web_identity_needs_role(self):
        """Test that a token path requires a controller role."""
        with pytest.raises(ConfigurationError, match="role ARN"):
            self._config(token_path="/var/run/token").validate()

    def test_web_identity_with_role(self):
        """Test that a token path with a role is accepted."""
        self._config(token_path="/var/run/token", controller_role_arn="controller").validate()

    def test_empty_controller_name(self):
        """Test that the controller name is required."""
        with pytest.raises(ConfigurationError, match="CONTROLLER_NAME"):
            self._config(controller_name="").validate()

    @pytest.mark.parametrize("prefix", ["bad/prefix", "has space", "x" * 64])
    def test_invalid_prefix(self, prefix):
        """Test that prefixes IAM would reject fail early."""
        with pytest.raises(ConfigurationError):
            self._config(role_prefix=prefix).validate()

    def test_empty_prefix_allowed(self):
        """Test that the prefix may be empty."""
        self._config(role_prefix="").validate()

    def test_worker_threads(self):
        """Test that at least one worker is required."""
        with pytest.raises(ConfigurationError, match="WORKER_THREADS"):
            self._config(worker_threads=0).validate()

    def test_negative_resync(self):
        """Test that the resync interval cannot be negative."""
        with pytest.raises(ConfigurationError, match="RESYNC_INTERVAL_SECONDS"):
            self._config(resync_interval_seconds=-1).validate()


class TestLoadConfig:
    """Test cases for load_config function."""

    def test_load_config_validates(self, monkeypatch):
        """Test that load_config rejects an invalid environment."""
        with pytest.raises(ConfigurationError):
            load_config()

    def test_load_config(self, monkeypatch):
        """Test loading a valid environment."""
        monkeypatch.setenv("OIDC_PROVIDER", OIDC)
        monkeypatch.setenv("CONTROLLER_ROLE_ARN", "controller")
        assert load_config().oidc_provider == OIDC
