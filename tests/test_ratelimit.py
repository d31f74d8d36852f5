"""Unit tests for core/ratelimit.py -- FixedWindowRateLimiter and the registry.

The clock is injected, so window expiry is tested without sleeping.
"""

import threading

import pytest

from core.ratelimit import FixedWindowRateLimiter, RateLimiterRegistry
from tests.helpers import FakeClock


class TestFixedWindowRateLimiter:
    def test_allows_up_to_ceiling_then_refuses(self):
        limiter = FixedWindowRateLimiter(3, 60, clock=FakeClock())
        assert [limiter.allow() for _ in range(4)] == [True, True, True, False]

    def test_refused_request_is_not_counted(self):
        limiter = FixedWindowRateLimiter(2, 60, clock=FakeClock())
        limiter.allow()
        limiter.allow()
        assert limiter.allow() is False
        assert limiter.allow() is False
        assert limiter.request_count == 2

    def test_window_resets_after_elapsed(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(1, 60, clock=clock)
        assert limiter.allow() is True
        assert limiter.allow() is False

        clock.advance(60)
        assert limiter.allow() is True
        assert limiter.request_count == 1
        assert limiter.window_start == clock.now

    def test_window_does_not_reset_early(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(1, 60, clock=clock)
        limiter.allow()
        clock.advance(59.9)
        assert limiter.allow() is False

    def test_window_opens_at_first_call_after_expiry(self):
        """A new window starts when a call arrives, not on a fixed boundary."""
        clock = FakeClock(start=0.0)
        limiter = FixedWindowRateLimiter(1, 60, clock=clock)
        limiter.allow()
        clock.advance(150)
        limiter.allow()
        assert limiter.window_start == 150
        clock.advance(59)
        assert limiter.allow() is False

    @pytest.mark.parametrize("max_requests,window", [(0, 60), (-1, 60), (5, 0)])
    def test_rejects_non_positive_configuration(self, max_requests, window):
        with pytest.raises(ValueError):
            FixedWindowRateLimiter(max_requests, window)

    def test_concurrent_calls_never_exceed_ceiling(self):
        limiter = FixedWindowRateLimiter(50, 60, clock=FakeClock())
        results: list[bool] = []
        lock = threading.Lock()

        def worker():
            for _ in range(20):
                allowed = limiter.allow()
                with lock:
                    results.append(allowed)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 50
        assert limiter.request_count == 50


class TestRateLimiterRegistry:
    def test_limiters_are_independent(self):
        registry = RateLimiterRegistry(
            {
                "a": FixedWindowRateLimiter(1, 60, clock=FakeClock()),
                "b": FixedWindowRateLimiter(1, 60, clock=FakeClock()),
            }
        )
        assert registry["a"].allow() is True
        assert registry["a"].allow() is False
        assert registry["b"].allow() is True

    def test_names_sorted(self):
        registry = RateLimiterRegistry({"geocode": FixedWindowRateLimiter(1, 1), "bdtopo": FixedWindowRateLimiter(1, 1)})
        assert registry.names() == ["bdtopo", "geocode"]
