"""
api/gating.py -- FastAPI Depends() helpers shared by every API route.

Each request passes the gates in a fixed order before any handler code or
outbound call runs:

  1. require_allowed_origin  -- OriginValidator on Origin / Referer  -> 403
  2. enforce_rate_limit(name) -- the endpoint's FixedWindowRateLimiter -> 429

Declare them in that order in the route's dependencies list. FastAPI resolves
list dependencies left to right and stops at the first exception, so a
rejected origin never consumes rate-limit budget. Body and query validation
(400) runs after both.

The validator and the limiter registry are built by the lifespan in
api/main.py and read from app.state, so tests swap them per client.

Layer rule: may import from core/ only.
"""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import Request

from core.config import Settings
from core.errors import OriginRejected, RateLimited
from core.origin import OriginValidator
from core.ratelimit import FixedWindowRateLimiter, RateLimiterRegistry

logger = logging.getLogger("datawatchman.gating")

# Limiter names, one per guarded endpoint.
GEOCODE = "geocode"
COMPANIES = "companies"
BDTOPO = "bdtopo"
STREET_WORKS = "street_works"
USRN_LOOKUP = "usrn_lookup"
SUBMISSIONS = "submissions"


def build_origin_validator(settings: Settings) -> OriginValidator:
    return OriginValidator(settings.cors_origins, allow_missing=settings.allow_missing_origin)


def build_rate_limiters(settings: Settings) -> RateLimiterRegistry:
    """One independent fixed-window counter per endpoint, sized from settings."""
    window = settings.rate_limit_window_minutes * 60
    usrn_window = settings.usrn_rate_limit_window_minutes * 60
    return RateLimiterRegistry(
        {
            GEOCODE: FixedWindowRateLimiter(settings.rate_limit_max, window),
            COMPANIES: FixedWindowRateLimiter(settings.rate_limit_max, window),
            BDTOPO: FixedWindowRateLimiter(settings.rate_limit_max, window),
            STREET_WORKS: FixedWindowRateLimiter(settings.rate_limit_max, window),
            SUBMISSIONS: FixedWindowRateLimiter(settings.rate_limit_max, window),
            USRN_LOOKUP: FixedWindowRateLimiter(settings.usrn_rate_limit_max, usrn_window),
        }
    )


def require_allowed_origin(request: Request) -> None:
    """Reject requests whose Origin (or Referer origin) is not allow-listed."""
    validator: OriginValidator = request.app.state.origin_validator
    origin = request.headers.get("origin")
    referer = request.headers.get("referer")
    if not validator.validate(origin, referer):
        raise OriginRejected(f"origin={origin!r} referer={referer!r}")


def enforce_rate_limit(name: str) -> Callable[[Request], None]:
    """Return a dependency that counts the request against the named limiter."""

    def _dependency(request: Request) -> None:
        registry: RateLimiterRegistry = request.app.state.rate_limiters
        if not registry[name].allow():
            logger.warning("Rate limit exceeded on %s", name)
            raise RateLimited(f"{name} window exhausted")

    return _dependency
