"""Main entry point for the IAM ServiceAccount Controller."""

from __future__ import annotations

import logging
from typing import Any

import kopf

from . import health
from . import logging as structured_logging
from .builders.role import RoleNamer
from .builders.role_store import create_role_store_from_config
from .config import load_config
from .controller import Controller
from .handlers import serviceaccount  # noqa: F401
from .reconciler import Reconciler
from .tracing import initialize_tracing
from .utils.cache import ObjectCache
from .utils.errors import ConfigurationError
from .utils.events import KopfEventRecorder

logger = logging.getLogger(__name__)


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, memo: kopf.Memo, **_: Any) -> None:
    """Configure the operator and start the reconciliation workers."""
    structured_logging.setup_structured_logging()

    settings.posting.level = logging.WARNING
    settings.networking.request_timeout = 30.0
    settings.watching.reconnect_backoff = 1.0

    try:
        config = load_config()
        role_store, account_id = create_role_store_from_config(config)
    except ConfigurationError as e:
        logger.error(f"Invalid controller configuration: {e}")
        raise kopf.PermanentError(str(e)) from e

    initialize_tracing(config.controller_name)

    namer = RoleNamer(
        account_id=account_id,
        oidc_provider=config.oidc_provider,
        controller_name=config.controller_name,
        cluster_name=config.cluster_name,
        prefix=config.role_prefix,
    )
    cache = ObjectCache()
    reconciler = Reconciler(cache, role_store, namer, KopfEventRecorder())
    controller = Controller(
        cache,
        reconciler,
        namer,
        resync_interval=config.resync_interval_seconds,
    )

    memo.cache = cache
    memo.controller = controller
    memo.health_server = health.start_health_server(config.metrics_port, lambda: controller.ready)

    logger.info(
        f"Managing IAM roles in account {account_id} with prefix '{config.role_prefix}' "
        f"for cluster {config.cluster_name}"
    )
    controller.run(config.worker_threads)


@kopf.on.cleanup()
def shutdown(memo: kopf.Memo, **_: Any) -> None:
    """Stop the workers, letting in-flight reconciliations finish."""
    controller = getattr(memo, "controller", None)
    if controller is not None:
        controller.stop()

    server = getattr(memo, "health_server", None)
    if server is not None:
        server.shutdown()


def main() -> None:
    """Run the controller against all namespaces."""
    kopf.run(clusterwide=True, standalone=True)
