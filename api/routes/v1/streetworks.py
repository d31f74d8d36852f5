"""
api/routes/v1/streetworks.py -- Paris street-works routes and their enrichments.

  GET /french-street-works  -- page of Paris street-works records
  GET /geocode              -- postal address nearest to a lat/lon point
  GET /companies            -- active employers on the street of an address
  GET /bdtopo               -- BD TOPO road sections of the street of an address

Every route is gated by origin then by its own fixed-window limiter (see
api/gating.py). Handlers are plain `def`: the outbound calls use requests,
so FastAPI runs them in its thread pool.

Errors raised by core.pipeline (NoDataFound, UpstreamUnavailable, ...) are
left to propagate; the ServiceError handler in api/main.py maps them.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import StringConstraints

from api.gating import BDTOPO, COMPANIES, GEOCODE, STREET_WORKS, enforce_rate_limit, require_allowed_origin
from api.models import CompaniesResponse, ReverseGeocodeResponse, RoadSectionsResponse, StreetWorksResponse
from core.address import MAX_QUERY_LENGTH, MIN_QUERY_LENGTH
from core.config import get_settings
from core.models import ARRONDISSEMENT_PATTERN
from core.pipeline import (
    MAX_STREET_WORKS_LIMIT,
    build_street_works_params,
    describe_location,
    find_companies,
    find_road_sections,
    list_street_works,
)

router = APIRouter()

_Address = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=MIN_QUERY_LENGTH, max_length=MAX_QUERY_LENGTH),
    Query(description="Free-text postal address."),
]


@router.get(
    "/french-street-works",
    response_model=StreetWorksResponse,
    dependencies=[Depends(require_allowed_origin), Depends(enforce_rate_limit(STREET_WORKS))],
)
def get_street_works(
    limit: Annotated[int, Query(ge=1, le=MAX_STREET_WORKS_LIMIT)] = MAX_STREET_WORKS_LIMIT,
    offset: Annotated[Optional[int], Query(ge=0)] = None,
    arrondissement: Annotated[Optional[str], Query(pattern=ARRONDISSEMENT_PATTERN)] = None,
    date_debut: Annotated[Optional[str], Query(alias="dateDebut", pattern=r"^\d{4}-\d{2}-\d{2}$")] = None,
    date_fin: Annotated[Optional[str], Query(alias="dateFin", pattern=r"^\d{4}-\d{2}-\d{2}$")] = None,
    active_only: Annotated[bool, Query(alias="activeOnly")] = False,
) -> StreetWorksResponse:
    """Return Paris street works, optionally filtered by arrondissement and dates.

    Query params:
        limit          -- 1..100 records (default 100, the catalog maximum)
        offset         -- pagination offset
        arrondissement -- 5-digit postcode, e.g. 75015
        dateDebut      -- works starting on or after YYYY-MM-DD
        dateFin        -- works ending on or before YYYY-MM-DD
        activeOnly     -- only works in progress today
    """
    params = build_street_works_params(
        limit=limit,
        offset=offset,
        arrondissement=arrondissement,
        date_debut=date_debut,
        date_fin=date_fin,
        active_only=active_only,
    )
    return StreetWorksResponse.from_page(list_street_works(params))


@router.get(
    "/geocode",
    response_model=ReverseGeocodeResponse,
    dependencies=[Depends(require_allowed_origin), Depends(enforce_rate_limit(GEOCODE))],
)
def get_geocode(
    lat: Annotated[float, Query(ge=-90, le=90)],
    lon: Annotated[float, Query(ge=-180, le=180)],
) -> ReverseGeocodeResponse:
    """Return the postal label of the address closest to (lat, lon)."""
    return ReverseGeocodeResponse(address=describe_location(lat, lon))


@router.get(
    "/companies",
    response_model=CompaniesResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_allowed_origin), Depends(enforce_rate_limit(COMPANIES))],
)
def get_companies(request: Request, address: _Address) -> CompaniesResponse:
    """List active employer establishments on the street of `address`.

    A street without businesses is a normal outcome: 200 with an empty list.
    An address BAN cannot place answers 404.
    """
    search = find_companies(address, request.app.state.address_resolver, get_settings().insee_api_key)
    return CompaniesResponse.from_search(search)


@router.get(
    "/bdtopo",
    response_model=RoadSectionsResponse,
    dependencies=[Depends(require_allowed_origin), Depends(enforce_rate_limit(BDTOPO))],
)
def get_bdtopo(request: Request, address: _Address) -> RoadSectionsResponse:
    """Return BD TOPO road sections for the street of `address`."""
    return RoadSectionsResponse.from_sections(find_road_sections(address, request.app.state.address_resolver))
