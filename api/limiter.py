"""
api/limiter.py -- Shared slowapi per-client rate limiter instance.

api/main.py attaches it to app.state and mounts SlowAPIMiddleware; route
modules apply per-client limits with @limiter.limit().

There must be exactly one instance: each Limiter owns its own in-memory
counter store, so a second instance would count a different set of hits.

This complements, not replaces, the endpoint-wide fixed-window counters in
core/ratelimit.py: those cap total upstream usage, this one stops a single
client from filling the submissions table.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")
