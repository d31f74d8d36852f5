"""
core/pipeline.py -- Street-works lookups: fetch, check, reshape.

No side effects beyond outbound HTTP. No print statements. Called by both
the CLI (via main.py) and the REST API (via api/routes/v1/).

Failures are raised as core.errors types; the API layer maps them to status
codes and the CLI prints them.
"""

import logging
import re
from datetime import date
from typing import Any, Optional

from core.address import AddressResolver, Found, NotFound
from core.errors import NoDataFound, UpstreamUnavailable, ValidationFailed
from core.fetcher import fetch_road_sections, fetch_street_works, reverse_geocode, search_establishments
from core.models import ARRONDISSEMENT_PATTERN, Company, CompanySearch, RoadSections, StreetWork, StreetWorksPage

logger = logging.getLogger("datawatchman.pipeline")

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_ARRONDISSEMENT_RE = re.compile(ARRONDISSEMENT_PATTERN)

MAX_STREET_WORKS_LIMIT = 100


# ---------------------------------------------------------------------------
# BAN identifier shaping
# ---------------------------------------------------------------------------


def siret_address_key(ban_id: str) -> str:
    """INSEE indexes establishments by the BAN id with underscores removed.

    51454_4070 -> 514544070
    """
    return ban_id.replace("_", "")


def street_level_key(ban_id: str) -> str:
    """Trim a BAN id to its street (commune + voie) part for BD TOPO.

    75105_9517_00004_b -> 75105_9517
    """
    return "_".join(ban_id.split("_")[:2])


def _resolve_or_raise(resolver: AddressResolver, address: str) -> str:
    result = resolver.resolve(address)
    if isinstance(result, Found):
        return result.address_id
    if isinstance(result, NotFound):
        raise NoDataFound("Could not find address in BAN database", detail=f"no BAN match for {address[:80]!r}")
    raise UpstreamUnavailable(result.detail)


# ---------------------------------------------------------------------------
# Reverse geocoding
# ---------------------------------------------------------------------------


def describe_location(lat: float, lon: float) -> str:
    """Return the postal label of the address nearest to a point."""
    features = reverse_geocode(lat, lon)
    if features is None:
        raise UpstreamUnavailable("IGN reverse geocoder unavailable")
    if not features:
        raise NoDataFound("No address found for these coordinates")
    props = features[0].get("properties") or {}
    return props.get("label") or props.get("name") or "Adresse non disponible"


# ---------------------------------------------------------------------------
# Business registry
# ---------------------------------------------------------------------------


def _company_from_etablissement(etab: dict[str, Any]) -> Company:
    unite = etab.get("uniteLegale") or {}
    adresse = etab.get("adresseEtablissement") or {}
    nom = unite.get("denominationUniteLegale") or (
        f"{unite.get('nomUniteLegale') or ''} {unite.get('prenom1UniteLegale') or ''}".strip()
    )
    street = " ".join(
        part
        for part in (
            adresse.get("numeroVoieEtablissement"),
            adresse.get("typeVoieEtablissement"),
            adresse.get("libelleVoieEtablissement"),
        )
        if part
    )
    return Company(
        siret=etab.get("siret", ""),
        nom=nom,
        adresse=street,
        code_postal=adresse.get("codePostalEtablissement") or "",
        ville=adresse.get("libelleCommuneEtablissement") or "",
        activite=unite.get("activitePrincipaleUniteLegale") or "",
        date_creation=etab.get("dateCreationEtablissement"),
    )


def find_companies(address: str, resolver: AddressResolver, api_key: str) -> CompanySearch:
    """List active employer establishments at the street of a free-text address.

    An unconfigured INSEE key is not an error: the feature degrades to an
    empty result with an explanatory message.
    """
    address_id = _resolve_or_raise(resolver, address)
    key = siret_address_key(address_id)

    if not api_key:
        return CompanySearch(
            total=0,
            companies=[],
            message="INSEE API key not configured - returning empty results",
        )

    data = search_establishments(key, api_key)
    if data is None:
        raise UpstreamUnavailable(f"INSEE Sirene unavailable for {key}")

    etablissements = data.get("etablissements") or []
    total = (data.get("header") or {}).get("total") or 0
    companies = [_company_from_etablissement(e) for e in etablissements]
    return CompanySearch(
        total=total,
        companies=companies,
        searched_address_id=key,
        message=None if companies else "No companies found on this street",
    )


# ---------------------------------------------------------------------------
# Road topology
# ---------------------------------------------------------------------------


def find_road_sections(address: str, resolver: AddressResolver) -> RoadSections:
    """Return BD TOPO road sections for the street of a free-text address.

    Only the left-hand BAN street identifier is queried; the WFS is slow and
    left-side matches cover the streets seen so far. A street with no
    sections is a normal, empty result.
    """
    address_id = _resolve_or_raise(resolver, address)
    key = street_level_key(address_id)

    data = fetch_road_sections(key, side="gauche")
    if data is None:
        raise UpstreamUnavailable(f"BD TOPO unavailable for {key}")

    features = data.get("features") or []
    return RoadSections(
        ban_id=key,
        total_features=data.get("numberReturned") or 0,
        features=features,
    )


# ---------------------------------------------------------------------------
# Paris street works
# ---------------------------------------------------------------------------


def build_street_works_params(
    limit: int = MAX_STREET_WORKS_LIMIT,
    offset: Optional[int] = None,
    arrondissement: Optional[str] = None,
    date_debut: Optional[str] = None,
    date_fin: Optional[str] = None,
    active_only: bool = False,
    today: Optional[date] = None,
) -> dict[str, Any]:
    """Build Opendatasoft query params from validated filters.

    Every value interpolated into the where clause is checked against a strict
    pattern first, so user input can never extend the ODSQL expression.
    """
    if not 1 <= limit <= MAX_STREET_WORKS_LIMIT:
        raise ValidationFailed(f"limit out of range: {limit}")
    if offset is not None and offset < 0:
        raise ValidationFailed(f"negative offset: {offset}")
    if arrondissement is not None and not _ARRONDISSEMENT_RE.match(arrondissement):
        raise ValidationFailed("arrondissement must be a 5-digit postcode")
    for value in (date_debut, date_fin):
        if value is not None and not _ISO_DATE_RE.match(value):
            raise ValidationFailed("dates must be YYYY-MM-DD")

    params: dict[str, Any] = {"limit": limit}
    if offset:
        params["offset"] = offset

    where: list[str] = []
    if arrondissement:
        where.append(f'cp_arrondissement="{arrondissement}"')
    if date_debut:
        where.append(f'date_debut>="{date_debut}"')
    if date_fin:
        where.append(f'date_fin<="{date_fin}"')
    if active_only:
        day = (today or date.today()).isoformat()
        where.append(f'date_debut<="{day}" AND date_fin>="{day}"')
    if where:
        params["where"] = " AND ".join(where)
    return params


def _street_work_from_record(item: dict[str, Any]) -> StreetWork:
    return StreetWork(
        id=item.get("num_emprise"),
        arrondissement=item.get("cp_arrondissement"),
        start_date=item.get("date_debut"),
        end_date=item.get("date_fin"),
        category=item.get("chantier_categorie"),
        contractor=item.get("moa_principal"),
        area=item.get("surface"),
        description=item.get("chantier_synthese"),
        location_details=item.get("localisation_detail") or [],
        parking_impact=item.get("localisation_stationnement") or [],
        request_id=item.get("demande_cite_id"),
        work_site_id=item.get("chantier_cite_id"),
        geometry=item.get("geo_shape"),
        coordinates=item.get("geo_point_2d"),
    )


def list_street_works(params: dict[str, Any]) -> StreetWorksPage:
    """Fetch one page of Paris street works and reshape the records."""
    data = fetch_street_works(params)
    if data is None:
        raise UpstreamUnavailable("Paris open data unavailable")
    results = data.get("results") or []
    return StreetWorksPage(
        total_count=data.get("total_count") or 0,
        works=[_street_work_from_record(r) for r in results],
    )
