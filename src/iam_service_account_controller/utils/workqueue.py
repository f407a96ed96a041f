"""Deduplicating, delaying and rate limited work queue.

Guarantees:

* a key queued several times before it is picked up is handed out once;
* a key added while a worker processes it is marked dirty and queued again,
  exactly once, when the worker calls :meth:`WorkQueue.done`, so no two
  workers ever hold the same key;
* failed keys are retried after a per-key delay from a rate limiter until
  :meth:`RateLimitingQueue.forget` is called.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from collections import deque
from typing import Hashable

from .. import metrics
from .rate_limit import RateLimiter, default_controller_rate_limiter

logger = logging.getLogger(__name__)


class WorkQueue:
    """FIFO queue with deduplication and in-flight coalescing."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._queue: deque[Hashable] = deque()
        # Keys that need processing: queued, or re-added while in flight
        self._dirty: set[Hashable] = set()
        self._processing: set[Hashable] = set()
        self._cond = threading.Condition()
        self._shutting_down = False

    def add(self, item: Hashable) -> None:
        """Mark ``item`` as needing processing."""
        with self._cond:
            if self._shutting_down or item in self._dirty:
                return
            metrics.workqueue_adds_total.inc()
            self._dirty.add(item)
            if item in self._processing:
                return
            self._queue.append(item)
            metrics.workqueue_depth.set(len(self._queue))
            self._cond.notify()

    def get(self, timeout: float | None = None) -> tuple[Hashable | None, bool]:
        """Block until an item is available.

        Args:
            timeout: Maximum seconds to wait, forever if None

        Returns:
            Tuple of the item (None if nothing was handed out) and whether the
            queue is shutting down
        """
        with self._cond:
            if not self._cond.wait_for(lambda: self._queue or self._shutting_down, timeout):
                return None, False
            if self._shutting_down:
                return None, True

            item = self._queue.popleft()
            metrics.workqueue_depth.set(len(self._queue))
            self._processing.add(item)
            self._dirty.discard(item)
            return item, False

    def done(self, item: Hashable) -> None:
        """Mark ``item`` as processed, requeueing it if it was re-added meanwhile."""
        with self._cond:
            self._processing.discard(item)
            if item in self._dirty and not self._shutting_down:
                self._queue.append(item)
                metrics.workqueue_depth.set(len(self._queue))
                self._cond.notify()

    def shut_down(self) -> None:
        """Stop handing out items; blocked and future ``get`` calls return at once."""
        with self._cond:
            self._shutting_down = True
            self._cond.notify_all()

    @property
    def shutting_down(self) -> bool:
        with self._cond:
            return self._shutting_down

    def is_processing(self, item: Hashable) -> bool:
        with self._cond:
            return item in self._processing

    def __len__(self) -> int:
        with self._cond:
            return len(self._queue)


class DelayingQueue(WorkQueue):
    """Work queue that can add items after a delay without blocking the caller."""

    def __init__(self, name: str = "") -> None:
        super().__init__(name)
        self._waiting: list[tuple[float, int, Hashable]] = []
        # Earliest ready time per waiting item
        self._ready_at: dict[Hashable, float] = {}
        self._counter = itertools.count()
        self._waiting_cond = threading.Condition()
        self._waiter = threading.Thread(
            target=self._waiting_loop,
            name=f"{name or 'workqueue'}-delay",
            daemon=True,
        )
        self._waiter.start()

    def add_after(self, item: Hashable, delay: float) -> None:
        """Add ``item`` once ``delay`` seconds have passed."""
        if self.shutting_down:
            return
        if delay <= 0:
            self.add(item)
            return

        ready_at = time.monotonic() + delay
        with self._waiting_cond:
            current = self._ready_at.get(item)
            if current is not None and current <= ready_at:
                return
            self._ready_at[item] = ready_at
            heapq.heappush(self._waiting, (ready_at, next(self._counter), item))
            self._waiting_cond.notify()

    def _waiting_loop(self) -> None:
        while not self.shutting_down:
            with self._waiting_cond:
                timeout = None
                now = time.monotonic()
                ready: list[Hashable] = []
                while self._waiting:
                    ready_at, _, item = self._waiting[0]
                    if ready_at > now:
                        timeout = ready_at - now
                        break
                    heapq.heappop(self._waiting)
                    # Skip entries superseded by an earlier add_after
                    if self._ready_at.get(item) == ready_at:
                        del self._ready_at[item]
                        ready.append(item)
                if not ready and not self.shutting_down:
                    self._waiting_cond.wait(timeout)
            for item in ready:
                self.add(item)

    def shut_down(self) -> None:
        super().shut_down()
        with self._waiting_cond:
            self._waiting_cond.notify_all()
        if self._waiter is not threading.current_thread():
            self._waiter.join()

    def pending_delayed(self) -> int:
        """Return the number of items waiting for their delay to pass."""
        with self._waiting_cond:
            return len(self._ready_at)


class RateLimitingQueue(DelayingQueue):
    """Delaying queue whose retries are paced by a rate limiter."""

    def __init__(self, rate_limiter: RateLimiter | None = None, name: str = "") -> None:
        super().__init__(name)
        self.rate_limiter = rate_limiter or default_controller_rate_limiter()

    def add_rate_limited(self, item: Hashable) -> None:
        """Re-add ``item`` after the delay the rate limiter assigns to it."""
        metrics.workqueue_retries_total.inc()
        self.add_after(item, self.rate_limiter.when(item))

    def forget(self, item: Hashable) -> None:
        """Stop tracking retries of ``item``; its next failure starts at the base delay."""
        self.rate_limiter.forget(item)

    def num_requeues(self, item: Hashable) -> int:
        return self.rate_limiter.num_requeues(item)
