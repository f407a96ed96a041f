"""Controller runtime wiring watch notifications, the work queue and the reconciler."""

from __future__ import annotations

import contextvars
import logging
import threading
import time
from typing import Any, Hashable, Mapping

from . import metrics
from .admission import should_manage_object
from .builders.role import RoleNamer
from .reconciler import Reconciler
from .utils.cache import ObjectCache, key_for_object
from .utils.context import with_correlation_id
from .utils.errors import InvalidKeyError, sanitize_exception
from .utils.workqueue import RateLimitingQueue

logger = logging.getLogger(__name__)


class Controller:
    """Runs reconciliation workers fed by ServiceAccount notifications.

    The change-notification source keeps ``cache`` up to date and then calls
    :meth:`on_add`, :meth:`on_update` or :meth:`on_delete`. Those only decide
    whether the object is in scope and queue its key; all IAM calls happen on
    the worker threads started by :meth:`run`.
    """

    def __init__(
        self,
        cache: ObjectCache,
        reconciler: Reconciler,
        namer: RoleNamer,
        queue: RateLimitingQueue | None = None,
        resync_interval: float = 0,
    ) -> None:
        self.cache = cache
        self.reconciler = reconciler
        self.namer = namer
        self.queue = queue if queue is not None else RateLimitingQueue(name="ServiceAccounts")
        self.resync_interval = resync_interval
        self._threads: list[threading.Thread] = []
        self._stopped = threading.Event()
        self._running = threading.Event()

    # Subscription interface

    def on_add(self, obj: Mapping[str, Any]) -> bool:
        return self.enqueue(obj)

    def on_update(self, old: Mapping[str, Any] | None, new: Mapping[str, Any]) -> bool:
        return self.enqueue(new)

    def on_delete(self, obj: Mapping[str, Any]) -> bool:
        return self.enqueue(obj)

    def enqueue(self, obj: Mapping[str, Any]) -> bool:
        """Queue the object's key if it passes the admission filter.

        Returns:
            True if the key was handed to the work queue
        """
        if not should_manage_object(obj, self.namer):
            metrics.admission_total.labels(decision="rejected").inc()
            return False

        try:
            key = key_for_object(obj)
        except InvalidKeyError as e:
            logger.error(f"Cannot derive key for admitted object: {e}")
            return False

        metrics.admission_total.labels(decision="admitted").inc()
        self.queue.add(key)
        return True

    def resync(self) -> int:
        """Re-run every cached object through the admission filter.

        Returns:
            Number of keys queued
        """
        return sum(1 for obj in self.cache.list() if self.enqueue(obj))

    # Workers

    @property
    def ready(self) -> bool:
        return self._running.is_set() and not self._stopped.is_set()

    def run(self, workers: int) -> None:
        """Start ``workers`` reconciliation threads and return.

        Each thread runs in a copy of the caller's context, so context-bound
        state such as kopf's event posting queue is available to workers.
        """
        logger.info(f"Starting {workers} workers")
        for i in range(workers):
            self._start_thread(self.run_worker, f"worker-{i}")

        if self.resync_interval > 0:
            self._start_thread(self._resync_loop, "resync")

        self._running.set()
        logger.info("Started workers")

    def _start_thread(self, target: Any, name: str) -> None:
        ctx = contextvars.copy_context()
        thread = threading.Thread(target=ctx.run, args=(target,), name=name, daemon=True)
        thread.start()
        self._threads.append(thread)

    def stop(self, timeout: float | None = None) -> None:
        """Shut down the queue and wait for in-flight reconciliations to finish."""
        logger.info("Shutting down workers")
        self._stopped.set()
        self.queue.shut_down()
        for thread in self._threads:
            thread.join(timeout)
        self._threads.clear()
        self._running.clear()

    def run_worker(self) -> None:
        while self.process_next_work_item():
            pass

    def _resync_loop(self) -> None:
        while not self._stopped.wait(self.resync_interval):
            queued = self.resync()
            logger.debug(f"Resync queued {queued} ServiceAccounts")

    def process_next_work_item(self, timeout: float | None = None) -> bool:
        """Process a single key from the queue.

        Returns:
            False once the queue is shut down, True otherwise
        """
        item, shutdown = self.queue.get(timeout)
        if shutdown:
            return False
        if item is None:
            return True

        try:
            with with_correlation_id():
                self._process(item)
        finally:
            self.queue.done(item)
        return True

    def _process(self, item: Hashable) -> None:
        start_time = time.time()
        try:
            result = self.reconciler.sync(item)  # type: ignore[arg-type]
        except InvalidKeyError as e:
            # Retrying cannot fix a malformed key
            self.queue.forget(item)
            logger.error(f"Dropping invalid work item {item!r}: {e}")
            metrics.reconcile_total.labels(result="invalid_key").inc()
            return
        except Exception as e:
            self.queue.add_rate_limited(item)
            metrics.reconcile_total.labels(result="error").inc()
            metrics.error_total.labels(error_type=type(e).__name__).inc()
            logger.error(
                f"Error syncing '{item}': {sanitize_exception(e)}, requeuing "
                f"(attempt {self.queue.num_requeues(item)})"
            )
            return
        finally:
            metrics.reconcile_duration_seconds.observe(time.time() - start_time)

        self.queue.forget(item)
        metrics.reconcile_total.labels(result=result.value).inc()
        logger.info(f"Successfully synced '{item}' ({result.value})")
