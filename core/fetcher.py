"""
fetcher.py -- All external data fetching.

Every source is a public French open-data API. Only INSEE Sirene needs a key.

Failure convention: each function returns None when the upstream could not be
reached or answered with a non-2xx status, after logging a warning. An empty
list or empty payload means the upstream answered and had nothing to report.
Callers decide which of the two is an error.
"""

import logging
from typing import Any, Optional

import requests

from core.config import get_settings

logger = logging.getLogger("datawatchman.fetcher")

BAN_SEARCH_API = "https://api-adresse.data.gouv.fr/search/"
IGN_REVERSE_API = "https://data.geopf.fr/geocodage/reverse"
IGN_WFS_API = "https://data.geopf.fr/wfs/ows"
INSEE_SIRENE_API = "https://api.insee.fr/api-sirene/3.11/siret"
PARIS_STREET_WORKS_API = "https://opendata.paris.fr/api/explore/v2.1/catalog/datasets/chantiers-a-paris/records"

BDTOPO_ROAD_LAYER = "BDTOPO_V3:troncon_de_route"

# Module-level session shared across all fetcher calls for connection pooling.
# max_redirects=3 replaces the requests default of 30 -- these are known public APIs,
# 3 hops is generous and protects against open redirect / SSRF via redirect chains.
_session = requests.Session()
_session.max_redirects = 3
_session.headers.update({"Accept": "application/json"})


def _timeout() -> float:
    return get_settings().http_timeout_seconds


def search_address(query: str, limit: int = 1) -> Optional[list[dict[str, Any]]]:
    """Forward-geocode free text against the BAN (Base Adresse Nationale).

    Returns the GeoJSON feature list (possibly empty), or None on failure.
    """
    try:
        resp = _session.get(BAN_SEARCH_API, params={"q": query, "limit": limit}, timeout=_timeout())
        resp.raise_for_status()
        return resp.json().get("features") or []
    except (requests.RequestException, ValueError) as e:
        logger.warning("BAN search failed: %s", e)
        return None


def reverse_geocode(lat: float, lon: float) -> Optional[list[dict[str, Any]]]:
    """Reverse-geocode a point with the IGN Géoplateforme, address index, one result."""
    try:
        resp = _session.get(
            IGN_REVERSE_API,
            params={"lat": lat, "lon": lon, "index": "address", "limit": 1},
            timeout=_timeout(),
        )
        resp.raise_for_status()
        return resp.json().get("features") or []
    except (requests.RequestException, ValueError) as e:
        logger.warning("IGN reverse geocoding failed for (%s, %s): %s", lat, lon, e)
        return None


def search_establishments(address_key: str, api_key: str) -> Optional[dict[str, Any]]:
    """Search active employer establishments registered at a BAN-derived address key.

    INSEE answers 404 when nothing matches, which is the normal outcome for a
    street without businesses -- that is returned as an empty result, not None.
    """
    query = (
        f"identifiantAdresseEtablissement:{address_key}_B AND "
        "periode(etatAdministratifEtablissement:A AND caractereEmployeurEtablissement: O)"
    )
    try:
        resp = _session.get(
            INSEE_SIRENE_API,
            params={"q": query, "nombre": 100},
            headers={"X-INSEE-Api-Key-Integration": api_key},
            timeout=_timeout(),
        )
        if resp.status_code == 404:
            return {"header": {"total": 0}, "etablissements": []}
        resp.raise_for_status()
        return resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("INSEE Sirene search failed for %s: %s", address_key, e)
        return None


def fetch_road_sections(street_key: str, side: str = "gauche") -> Optional[dict[str, Any]]:
    """Fetch BD TOPO road sections whose BAN street identifier matches on one side.

    side is "gauche" (left) or "droite" (right). The identifier is validated by
    the caller; it is still passed as a quoted CQL literal, never unquoted.
    """
    if side not in ("gauche", "droite"):
        raise ValueError(f"Unknown road side: {side}")
    field = f"identifiant_voie_ban_{side}"
    try:
        resp = _session.get(
            IGN_WFS_API,
            params={
                "SERVICE": "WFS",
                "VERSION": "2.0.0",
                "REQUEST": "GetFeature",
                "TYPENAMES": BDTOPO_ROAD_LAYER,
                "CQL_FILTER": f"{field}='{street_key}'",
                "OUTPUTFORMAT": "application/json",
            },
            timeout=_timeout(),
        )
        resp.raise_for_status()
        return resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("BD TOPO %s fetch failed for %s: %s", side, street_key, e)
        return None


def fetch_street_works(params: dict[str, Any]) -> Optional[dict[str, Any]]:
    """Query the Paris "chantiers-a-paris" dataset (Opendatasoft explore v2.1)."""
    try:
        resp = _session.get(PARIS_STREET_WORKS_API, params=params, timeout=_timeout())
        resp.raise_for_status()
        return resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("Paris street works fetch failed: %s", e)
        return None
