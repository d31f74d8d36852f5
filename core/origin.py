"""
core/origin.py -- Allow-list origin validation.

Decides whether the browser origin declared on a request (Origin header, or
the origin part of the Referer when Origin is absent) is one we serve. Matching
is string-exact against the configured allow-list: no wildcards, no suffix
matching, no normalisation beyond extracting the origin from a referer.

Requests carrying neither header are governed by an explicit policy flag
(allow_missing). Strict rejection is the default.
"""

from typing import Iterable, Optional
from urllib.parse import urlsplit


def _origin_of(url: str) -> Optional[str]:
    """Return scheme://host[:port] for an absolute URL, or None if it has none."""
    try:
        parts = urlsplit(url)
        # Accessing .port validates it; a malformed port raises ValueError.
        _ = parts.port
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc}"


def _scheme_allowed(origin: str) -> bool:
    parts = urlsplit(origin)
    return parts.scheme == "https" or parts.hostname == "localhost"


class OriginValidator:
    def __init__(self, allowed_origins: Iterable[str], allow_missing: bool = False) -> None:
        self.allowed_origins: tuple[str, ...] = tuple(allowed_origins)
        self.allow_missing = allow_missing

    def validate(self, origin: Optional[str], referer: Optional[str]) -> bool:
        """Return True if the request's declared origin is on the allow-list."""
        if origin:
            candidate = origin
        elif referer:
            candidate = _origin_of(referer)
            if candidate is None:
                return False
        else:
            return self.allow_missing

        try:
            if not _scheme_allowed(candidate):
                return False
        except ValueError:
            return False
        return candidate in self.allowed_origins
