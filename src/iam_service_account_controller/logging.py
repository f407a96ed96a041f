"""Structured logging configuration for the IAM ServiceAccount Controller."""

import json
import logging
import sys
from typing import Any

from .constants import CONTROLLER_NAME, KIND_SERVICE_ACCOUNT
from .utils.context import get_context_dict


def setup_structured_logging(level: int = logging.INFO) -> None:
    """Configure structured JSON logging."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def log_resource_event(
    logger: logging.Logger,
    namespace: str,
    resource_name: str,
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    controller: str = CONTROLLER_NAME,
    resource_kind: str = KIND_SERVICE_ACCOUNT,
    **kwargs: Any,
) -> None:
    """Log a structured resource event."""
    log_data = {
        "controller": controller,
        "resource": resource_kind,
        "name": resource_name,
        "namespace": namespace,
        "event": event,
        "reason": reason,
        "message": message,
    }
    log_data.update(get_context_dict(kwargs))
    logger.log(level, json.dumps(log_data, default=str))
