"""
core/address.py -- Free-text address to BAN identifier resolution.

BAN scores a street-level query better than a full postal address when the
house number is unknown to it, so the resolver asks for the street first and
only falls back to the text exactly as the user typed it when that finds
nothing.

Results are tagged rather than collapsed to None, so callers can tell
"no such address" (NotFound) from "BAN could not be asked" (UpstreamError).
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from core.fetcher import search_address

logger = logging.getLogger("datawatchman.address")

_HOUSE_NUMBER_RE = re.compile(r"^\d+\s+")

# BAN answers 400 to any q outside this range.
MIN_QUERY_LENGTH = 3
MAX_QUERY_LENGTH = 200


@dataclass(frozen=True)
class Found:
    address_id: str


@dataclass(frozen=True)
class NotFound:
    query: str


@dataclass(frozen=True)
class UpstreamError:
    detail: str


AddressResolution = Union[Found, NotFound, UpstreamError]

SearchFn = Callable[[str], Optional[list[dict[str, Any]]]]


def extract_street_only(full_address: str) -> str:
    """Drop the leading house number from the first comma-separated segment.

    "7 Rue de l'Armorique, 75015 Paris" -> "Rue de l'Armorique, 75015 Paris"
    "7 Rue de l'Armorique 75015 Paris"  -> "Rue de l'Armorique 75015 Paris"
    """
    parts = [p.strip() for p in full_address.split(",")]
    street = _HOUSE_NUMBER_RE.sub("", parts[0] or full_address.strip()).strip()
    rest = parts[1:]
    if rest:
        return ", ".join([street, *rest])
    return street


def _searchable(query: str) -> bool:
    return MIN_QUERY_LENGTH <= len(query) <= MAX_QUERY_LENGTH


def _first_id(features: list[dict[str, Any]]) -> Optional[str]:
    if not features:
        return None
    return (features[0].get("properties") or {}).get("id") or None


class AddressResolver:
    """Resolve free text to a BAN identifier: street-only query, then one fallback.

    search is injected so tests and the CLI can substitute the BAN client.
    It must return the feature list, or None when the request failed.
    """

    def __init__(self, search: SearchFn = search_address) -> None:
        self._search = search

    def resolve(self, full_address: str) -> AddressResolution:
        full_address = full_address.strip()
        street_only = extract_street_only(full_address)

        if _searchable(street_only):
            features = self._search(street_only)
            if features is None:
                return UpstreamError(detail="BAN street query failed")
            address_id = _first_id(features)
            if address_id:
                return Found(address_id)
            logger.debug("No BAN match for street-only query, retrying with full text")
        else:
            logger.debug("Street-only query %r outside BAN length bounds, using full text", street_only)

        if not _searchable(full_address):
            return NotFound(query=full_address)
        features = self._search(full_address)
        if features is None:
            return UpstreamError(detail="BAN fallback query failed")
        address_id = _first_id(features)
        if address_id:
            return Found(address_id)
        return NotFound(query=full_address)
