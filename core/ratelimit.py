"""
core/ratelimit.py -- Fixed-window request counter.

One FixedWindowRateLimiter counts every request to the endpoint it guards,
regardless of client. The window opens at the first call after the previous
window elapsed, not on wall-clock boundaries.

Limitations: state lives in process memory. Multiple server instances each
keep their own counter and a restart clears it. This is a coarse abuse guard
for upstream API quotas, not a precise quota system.

Instances are constructed by the application lifespan (see api/main.py) and
held in a RateLimiterRegistry on app.state. There is no module-level counter,
so tests build as many independent limiters as they need.
"""

import logging
import threading
import time
from typing import Callable, Mapping

logger = logging.getLogger("datawatchman.ratelimit")


class FixedWindowRateLimiter:
    """Allow at most max_requests calls per window_seconds.

    Args:
        max_requests:   Ceiling per window. Must be positive.
        window_seconds: Window length. Must be positive.
        clock:          Monotonic time source in seconds. Injected by tests.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        # Sync route handlers run in a thread pool, so the read-check-increment
        # sequence below must not interleave.
        self._lock = threading.Lock()
        self._count = 0
        self._window_start = clock()

    @property
    def request_count(self) -> int:
        return self._count

    @property
    def window_start(self) -> float:
        return self._window_start

    def allow(self) -> bool:
        """Count one request. Returns False, without counting, at the ceiling."""
        with self._lock:
            now = self._clock()
            if now - self._window_start >= self.window_seconds:
                logger.debug("Rate limit window reset after %d requests", self._count)
                self._count = 0
                self._window_start = now
            if self._count >= self.max_requests:
                return False
            self._count += 1
            return True


class RateLimiterRegistry:
    """Named limiters, one per guarded endpoint."""

    def __init__(self, limiters: Mapping[str, FixedWindowRateLimiter]) -> None:
        self._limiters = dict(limiters)

    def __getitem__(self, name: str) -> FixedWindowRateLimiter:
        return self._limiters[name]

    def names(self) -> list[str]:
        return sorted(self._limiters)
