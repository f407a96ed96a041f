"""Rate limiters deciding how long a failed work item waits before retrying."""

from __future__ import annotations

import os
import threading
import time
from typing import Callable, Hashable, Protocol

# Rate limit configuration
_BASE_RETRY_DELAY_SECONDS = float(os.getenv("BASE_RETRY_DELAY_SECONDS", "0.005"))
_MAX_RETRY_DELAY_SECONDS = float(os.getenv("MAX_RETRY_DELAY_SECONDS", "1000.0"))
_QUEUE_RATE_LIMIT_PER_SECOND = float(os.getenv("QUEUE_RATE_LIMIT_PER_SECOND", "10.0"))
_QUEUE_RATE_LIMIT_BURST = int(os.getenv("QUEUE_RATE_LIMIT_BURST", "100"))


class RateLimiter(Protocol):
    """Protocol for per-item retry delay policies."""

    def when(self, item: Hashable) -> float:
        """Record a failure of ``item`` and return the delay before its retry."""
        ...

    def forget(self, item: Hashable) -> None:
        """Clear all retry state for ``item``."""
        ...

    def num_requeues(self, item: Hashable) -> int:
        """Return how many times ``item`` has been rate limited."""
        ...


class ItemExponentialFailureRateLimiter:
    """Per-item exponential backoff: base * 2^failures, capped at max_delay."""

    def __init__(self, base_delay: float, max_delay: float) -> None:
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._failures: dict[Hashable, int] = {}
        self._lock = threading.Lock()

    def when(self, item: Hashable) -> float:
        with self._lock:
            exp = self._failures.get(item, 0)
            self._failures[item] = exp + 1

        # Avoid float overflow for items that keep failing
        if exp > 64:
            return self.max_delay
        return min(self.base_delay * (2 ** exp), self.max_delay)

    def forget(self, item: Hashable) -> None:
        with self._lock:
            self._failures.pop(item, None)

    def num_requeues(self, item: Hashable) -> int:
        with self._lock:
            return self._failures.get(item, 0)


class BucketRateLimiter:
    """Overall token bucket shared by all items.

    Each call reserves one token and returns how long the caller has to wait
    for it, so a burst of failures across many keys is spread out.
    """

    def __init__(
        self,
        rate: float,
        burst: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.rate = rate
        self.burst = burst
        self._clock = clock
        self._tokens = float(burst)
        self._last = clock()
        self._lock = threading.Lock()

    def when(self, item: Hashable) -> float:
        with self._lock:
            now = self._clock()
            self._tokens = min(float(self.burst), self._tokens + (now - self._last) * self.rate)
            self._last = now
            self._tokens -= 1.0
            if self._tokens >= 0:
                return 0.0
            return -self._tokens / self.rate

    def forget(self, item: Hashable) -> None:
        pass

    def num_requeues(self, item: Hashable) -> int:
        return 0


class MaxOfRateLimiter:
    """Combine several limiters, waiting for the longest of their delays."""

    def __init__(self, *limiters: RateLimiter) -> None:
        self.limiters = limiters

    def when(self, item: Hashable) -> float:
        return max(limiter.when(item) for limiter in self.limiters)

    def forget(self, item: Hashable) -> None:
        for limiter in self.limiters:
            limiter.forget(item)

    def num_requeues(self, item: Hashable) -> int:
        return max(limiter.num_requeues(item) for limiter in self.limiters)


def default_controller_rate_limiter() -> MaxOfRateLimiter:
    """Return the default limiter: per-key exponential backoff plus an overall bucket."""
    return MaxOfRateLimiter(
        ItemExponentialFailureRateLimiter(_BASE_RETRY_DELAY_SECONDS, _MAX_RETRY_DELAY_SECONDS),
        BucketRateLimiter(_QUEUE_RATE_LIMIT_PER_SECOND, _QUEUE_RATE_LIMIT_BURST),
    )
