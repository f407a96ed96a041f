"""Controller configuration with validation.

All deployment-wide constants (role prefix, account, OIDC provider, the
controller's own identity) live in one immutable structure that is built once
at startup and handed to the components that need it.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass

from .constants import (
    CONTROLLER_NAME,
    DEFAULT_CLUSTER_NAME,
    DEFAULT_METRICS_PORT,
    DEFAULT_REGION,
    DEFAULT_RESYNC_INTERVAL_SECONDS,
    DEFAULT_ROLE_PREFIX,
    DEFAULT_TOKEN_PATH,
    DEFAULT_WORKER_THREADS,
)
from .utils.errors import ConfigurationError

# IAM role names allow alphanumerics and +=,.@_-
VALID_ROLE_PREFIX_PATTERN = r"^[A-Za-z0-9+=,.@_-]*$"
MAX_ROLE_NAME_LENGTH = 64


@dataclass(frozen=True)
class ControllerConfig:
    """Runtime configuration of the controller."""

    oidc_provider: str
    controller_name: str = CONTROLLER_NAME
    region: str = DEFAULT_REGION
    role_prefix: str = DEFAULT_ROLE_PREFIX
    cluster_name: str = DEFAULT_CLUSTER_NAME
    controller_role_arn: str = ""
    token_path: str = DEFAULT_TOKEN_PATH
    worker_threads: int = DEFAULT_WORKER_THREADS
    resync_interval_seconds: float = DEFAULT_RESYNC_INTERVAL_SECONDS
    metrics_port: int = DEFAULT_METRICS_PORT

    @property
    def uses_web_identity(self) -> bool:
        """Whether the IAM client authenticates with a web identity token."""
        return bool(self.token_path)

    @classmethod
    def from_env(cls) -> "ControllerConfig":
        """Build the configuration from environment variables.

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed
        """
        try:
            worker_threads = int(os.getenv("WORKER_THREADS", str(DEFAULT_WORKER_THREADS)))
            resync_interval = float(
                os.getenv("RESYNC_INTERVAL_SECONDS", str(DEFAULT_RESYNC_INTERVAL_SECONDS))
            )
            metrics_port = int(os.getenv("METRICS_PORT", str(DEFAULT_METRICS_PORT)))
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric configuration: {e}") from e

        return cls(
            oidc_provider=os.getenv("OIDC_PROVIDER", ""),
            controller_name=os.getenv("CONTROLLER_NAME", CONTROLLER_NAME),
            region=os.getenv("AWS_REGION", DEFAULT_REGION),
            role_prefix=os.getenv("IAM_ROLE_PREFIX", DEFAULT_ROLE_PREFIX),
            cluster_name=os.getenv("CLUSTER_NAME", DEFAULT_CLUSTER_NAME),
            controller_role_arn=os.getenv("CONTROLLER_ROLE_ARN", ""),
            token_path=os.getenv("WEB_IDENTITY_TOKEN_PATH", DEFAULT_TOKEN_PATH),
            worker_threads=worker_threads,
            resync_interval_seconds=resync_interval,
            metrics_port=metrics_port,
        )

    def validate(self) -> None:
        """Validate the configuration.

        Raises:
            ConfigurationError: If the controller cannot start with this configuration
        """
        if not self.oidc_provider:
            raise ConfigurationError(
                "Invalid OIDC provider: ''. Set OIDC_PROVIDER, for example "
                "'oidc.eks.eu-west-1.amazonaws.com/id/14758F1AFD44C09B7992073CCF00B43D'"
            )

        if self.uses_web_identity and not self.controller_role_arn:
            raise ConfigurationError(
                "Invalid role ARN for controller when using web ID token auth: ''. "
                "Set CONTROLLER_ROLE_ARN or clear WEB_IDENTITY_TOKEN_PATH"
            )

        if not self.controller_name:
            raise ConfigurationError("CONTROLLER_NAME must not be empty")

        if not re.match(VALID_ROLE_PREFIX_PATTERN, self.role_prefix):
            raise ConfigurationError(f"Invalid IAM role prefix: '{self.role_prefix}'")

        if len(self.role_prefix) >= MAX_ROLE_NAME_LENGTH:
            raise ConfigurationError(
                f"IAM role prefix must be shorter than {MAX_ROLE_NAME_LENGTH} characters"
            )

        if self.worker_threads < 1:
            raise ConfigurationError(f"WORKER_THREADS must be at least 1, got {self.worker_threads}")

        if self.resync_interval_seconds < 0:
            raise ConfigurationError("RESYNC_INTERVAL_SECONDS must not be negative")


def load_config() -> ControllerConfig:
    """Load and validate configuration from the environment."""
    config = ControllerConfig.from_env()
    config.validate()
    return config
