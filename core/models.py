from dataclasses import dataclass, field
from typing import Any, Optional

# ---------------------------------------------------------------------------
# Domain constants
# ---------------------------------------------------------------------------

# Paris postcodes double as arrondissement codes (75001-75020, 75116).
ARRONDISSEMENT_PATTERN = r"^\d{5}$"


@dataclass
class Company:
    siret: str
    nom: str
    adresse: str
    code_postal: str
    ville: str
    activite: str
    date_creation: Optional[str]


@dataclass
class CompanySearch:
    total: int
    companies: list[Company]
    searched_address_id: Optional[str] = None
    message: Optional[str] = None


@dataclass
class RoadSections:
    ban_id: str  # street-level BAN key, e.g. 75105_9517
    total_features: int
    features: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class StreetWork:
    id: Optional[str]
    arrondissement: Optional[str]
    start_date: Optional[str]
    end_date: Optional[str]
    category: Optional[str]
    contractor: Optional[str]
    area: Optional[float]
    description: Optional[str]
    location_details: list[str]
    parking_impact: list[str]
    request_id: Optional[str]
    work_site_id: Optional[str]
    geometry: Optional[dict[str, Any]]  # GeoJSON Feature (Polygon)
    coordinates: Optional[dict[str, float]]  # {"lon": ..., "lat": ...}


@dataclass
class StreetWorksPage:
    total_count: int
    works: list[StreetWork]
