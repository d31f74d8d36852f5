"""
API request and response models for DataWatchman REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in core/, bduk/ and
reports/, which own the internal domain representation. Route handlers map
between the two with the from_* factory methods colocated here.

Wire format: the street-works, company and submission payloads use camelCase
keys (alias_generator=to_camel); the USRN report keeps snake_case keys.
FastAPI serializes response models by alias.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from bduk.models import USRN_PATTERN, UsrnReport
from core.models import Company, CompanySearch, RoadSections, StreetWork, StreetWorksPage
from reports.models import Submission

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class OwnerTypeEnum(str, Enum):
    public_sector = "Public Sector"
    private_sector = "Private Sector"
    academic = "Academic/Research"
    non_profit = "Non-profit"
    other = "Other"


class MissingTypeEnum(str, Enum):
    both = "Both"
    usrn = "USRN"
    uprn = "UPRN"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Body of every non-2xx JSON response."""

    success: bool = False
    error: ErrorDetail


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


_URL_ADAPTER = TypeAdapter(AnyUrl)


class SubmissionRequest(_CamelModel):
    """Request body for POST /api/v1/submissions."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    dataset_name: str = Field(min_length=1, max_length=255)
    dataset_url: str = Field(min_length=1, max_length=2048)
    dataset_owner: OwnerTypeEnum
    owner_name: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1, max_length=500)
    missing_type: MissingTypeEnum
    job_title: Optional[str] = Field(default=None, max_length=255)
    sector: OwnerTypeEnum

    @field_validator("dataset_url")
    @classmethod
    def dataset_url_is_absolute(cls, value: str) -> str:
        """Accept any absolute URL and keep the text exactly as submitted."""
        try:
            _URL_ADAPTER.validate_python(value)
        except ValidationError as exc:
            raise ValueError("must be an absolute URL") from exc
        return value

    @field_validator("job_title")
    @classmethod
    def blank_job_title_is_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    def to_submission(self) -> Submission:
        return Submission(
            dataset_name=self.dataset_name,
            dataset_url=self.dataset_url,
            dataset_owner=self.dataset_owner.value,
            owner_name=self.owner_name,
            description=self.description,
            missing_type=self.missing_type.value,
            sector=self.sector.value,
            job_title=self.job_title,
        )


class UsrnLookupRequest(BaseModel):
    """Request body for POST /api/v1/usrn-lookup."""

    model_config = ConfigDict(str_strip_whitespace=True)

    usrn: str = Field(pattern=USRN_PATTERN, description="USRN, exactly 8 digits.")
    password: Optional[str] = Field(default=None, max_length=256)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


class AuthConfigResponse(_CamelModel):
    require_password: bool


class ReverseGeocodeResponse(BaseModel):
    success: bool = True
    address: str


class CompanyOut(_CamelModel):
    siret: str
    nom: str
    adresse: str
    code_postal: str
    ville: str
    activite: str
    date_creation: Optional[str] = None

    @classmethod
    def from_company(cls, company: Company) -> "CompanyOut":
        return cls(
            siret=company.siret,
            nom=company.nom,
            adresse=company.adresse,
            code_postal=company.code_postal,
            ville=company.ville,
            activite=company.activite,
            date_creation=company.date_creation,
        )


class CompaniesResponse(_CamelModel):
    success: bool = True
    total: int
    companies: list[CompanyOut]
    searched_address_id: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def from_search(cls, search: CompanySearch) -> "CompaniesResponse":
        return cls(
            total=search.total,
            companies=[CompanyOut.from_company(c) for c in search.companies],
            searched_address_id=search.searched_address_id,
            message=search.message,
        )


class RoadSectionsResponse(_CamelModel):
    success: bool = True
    ban_id: str
    total_features: int
    features: list[dict[str, Any]]

    @classmethod
    def from_sections(cls, sections: RoadSections) -> "RoadSectionsResponse":
        return cls(ban_id=sections.ban_id, total_features=sections.total_features, features=sections.features)


class StreetWorkOut(_CamelModel):
    id: Optional[str] = None
    arrondissement: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    category: Optional[str] = None
    contractor: Optional[str] = None
    area: Optional[float] = None
    description: Optional[str] = None
    location_details: list[str] = Field(default_factory=list)
    parking_impact: list[str] = Field(default_factory=list)
    request_id: Optional[str] = None
    work_site_id: Optional[str] = None
    geometry: Optional[dict[str, Any]] = None
    coordinates: Optional[dict[str, float]] = None

    @classmethod
    def from_street_work(cls, work: StreetWork) -> "StreetWorkOut":
        return cls(
            id=work.id,
            arrondissement=work.arrondissement,
            start_date=work.start_date,
            end_date=work.end_date,
            category=work.category,
            contractor=work.contractor,
            area=work.area,
            description=work.description,
            location_details=work.location_details,
            parking_impact=work.parking_impact,
            request_id=work.request_id,
            work_site_id=work.work_site_id,
            geometry=work.geometry,
            coordinates=work.coordinates,
        )


class StreetWorksResponse(_CamelModel):
    success: bool = True
    total_count: int
    count: int
    data: list[StreetWorkOut]

    @classmethod
    def from_page(cls, page: StreetWorksPage) -> "StreetWorksResponse":
        return cls(
            total_count=page.total_count,
            count=len(page.works),
            data=[StreetWorkOut.from_street_work(w) for w in page.works],
        )


class SubmissionResponse(_CamelModel):
    success: bool = True
    message: str = "Report submitted successfully!"
    id: int
    created_at: str


class PostcodeGroupOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    postcode: str
    count: int
    gigabit_ready: int
    future_gigabit: int


class UsrnSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    postcodes: list[PostcodeGroupOut]
    total_gigabit_ready: int
    total_future_gigabit: int
    region: Optional[str] = None
    local_authority: Optional[str] = None


class PremiseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    uprn: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None
    local_authority: Optional[str] = None
    region: Optional[str] = None
    current_gigabit: bool
    future_gigabit: bool
    lot_name: Optional[str] = None
    subsidy_control_status: Optional[str] = None


class UsrnReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    usrn: str
    total_premises: int
    showing: int
    summary: UsrnSummaryOut
    premises: list[PremiseOut]


class UsrnLookupResponse(BaseModel):
    success: bool = True
    data: UsrnReportOut

    @classmethod
    def from_report(cls, report: UsrnReport) -> "UsrnLookupResponse":
        return cls(data=UsrnReportOut.model_validate(report, from_attributes=True))
