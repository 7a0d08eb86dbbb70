"""Input records and shared enums.

Organizations and programs are owned by the calling layer and handed to
the engine as plain, immutable records. Optional fields that arrive with
values the engine does not recognise or cannot parse ("상시", "미정",
"약 10억", "") are coerced to "unknown" (None or dropped from a list) so
that malformed data degrades to a neutral outcome instead of an
exception at match time.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from fundmatch.core.dates import ensure_utc


class OrganizationType(str, Enum):
    """Organization categories used in program target lists."""

    COMPANY = "COMPANY"
    RESEARCH_INSTITUTE = "RESEARCH_INSTITUTE"
    UNIVERSITY = "UNIVERSITY"
    PUBLIC_INSTITUTION = "PUBLIC_INSTITUTION"


class ProgramStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"
    ARCHIVED = "ARCHIVED"


class EmployeeCountRange(str, Enum):
    UNDER_10 = "UNDER_10"
    FROM_10_TO_50 = "FROM_10_TO_50"
    FROM_50_TO_100 = "FROM_50_TO_100"
    FROM_100_TO_300 = "FROM_100_TO_300"
    OVER_300 = "OVER_300"


class RevenueRange(str, Enum):
    NONE = "NONE"
    UNDER_1B = "UNDER_1B"
    FROM_1B_TO_10B = "FROM_1B_TO_10B"
    FROM_10B_TO_50B = "FROM_10B_TO_50B"
    FROM_50B_TO_100B = "FROM_50B_TO_100B"
    OVER_100B = "OVER_100B"


class CompanyScaleType(str, Enum):
    """Company scale, ordered from smallest to largest."""

    STARTUP = "STARTUP"
    SME = "SME"
    MID_SIZED = "MID_SIZED"
    LARGE_ENTERPRISE = "LARGE_ENTERPRISE"


class BusinessStructure(str, Enum):
    CORPORATION = "CORPORATION"  # 법인
    SOLE_PROPRIETOR = "SOLE_PROPRIETOR"  # 개인사업자


class KoreanRegion(str, Enum):
    SEOUL = "SEOUL"
    BUSAN = "BUSAN"
    DAEGU = "DAEGU"
    INCHEON = "INCHEON"
    GWANGJU = "GWANGJU"
    DAEJEON = "DAEJEON"
    ULSAN = "ULSAN"
    SEJONG = "SEJONG"
    GYEONGGI = "GYEONGGI"
    GANGWON = "GANGWON"
    CHUNGBUK = "CHUNGBUK"
    CHUNGNAM = "CHUNGNAM"
    JEONBUK = "JEONBUK"
    JEONNAM = "JEONNAM"
    GYEONGBUK = "GYEONGBUK"
    GYEONGNAM = "GYEONGNAM"
    JEJU = "JEJU"


class ConfidenceLevel(str, Enum):
    """Reliability of the eligibility fields extracted from an announcement."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class ApplicationType(str, Enum):
    OPEN_COMPETITION = "OPEN_COMPETITION"
    DESIGNATED_PROJECT = "DESIGNATED_PROJECT"
    DEMAND_SURVEY = "DEMAND_SURVEY"
    CONSOLIDATED_ANNOUNCEMENT = "CONSOLIDATED_ANNOUNCEMENT"
    INSTITUTIONAL_ONLY = "INSTITUTIONAL_ONLY"


class BlockReason(str, Enum):
    """Closed set of eligibility gate block codes."""

    DESIGNATED_PROJECT = "DESIGNATED_PROJECT"
    DEMAND_SURVEY = "DEMAND_SURVEY"
    INSTITUTIONAL_ONLY = "INSTITUTIONAL_ONLY"
    HOSPITAL_ONLY = "HOSPITAL_ONLY"
    TRAINING_PROGRAM = "TRAINING_PROGRAM"
    CONSOLIDATED_ANNOUNCEMENT = "CONSOLIDATED_ANNOUNCEMENT"
    ORG_TYPE_MISMATCH = "ORG_TYPE_MISMATCH"
    BUSINESS_STRUCTURE_MISMATCH = "BUSINESS_STRUCTURE_MISMATCH"
    TRL_OUT_OF_RANGE = "TRL_OUT_OF_RANGE"
    HARD_REQUIREMENT_FAILED = "HARD_REQUIREMENT_FAILED"
    SME_SCALE_BLOCK = "SME_SCALE_BLOCK"
    SME_STARTUP_ONLY = "SME_STARTUP_ONLY"
    SME_REGION_NON_METRO_ONLY = "SME_REGION_NON_METRO_ONLY"
    SME_REGION_MISMATCH = "SME_REGION_MISMATCH"
    EXCLUDED_DOMAIN = "EXCLUDED_DOMAIN"
    INDUSTRY_MISMATCH = "INDUSTRY_MISMATCH"
    STATUS_INACTIVE = "STATUS_INACTIVE"
    DEADLINE_PASSED = "DEADLINE_PASSED"


class EligibilityLevel(str, Enum):
    FULLY_ELIGIBLE = "FULLY_ELIGIBLE"
    CONDITIONALLY_ELIGIBLE = "CONDITIONALLY_ELIGIBLE"
    INELIGIBLE = "INELIGIBLE"


# Bucket midpoints used wherever a bucket is compared with a numeric bound
EMPLOYEE_MIDPOINTS: Dict[EmployeeCountRange, int] = {
    EmployeeCountRange.UNDER_10: 5,
    EmployeeCountRange.FROM_10_TO_50: 30,
    EmployeeCountRange.FROM_50_TO_100: 75,
    EmployeeCountRange.FROM_100_TO_300: 200,
    EmployeeCountRange.OVER_300: 500,
}

# KRW
REVENUE_MIDPOINTS: Dict[RevenueRange, int] = {
    RevenueRange.NONE: 0,
    RevenueRange.UNDER_1B: 500_000_000,
    RevenueRange.FROM_1B_TO_10B: 5_000_000_000,
    RevenueRange.FROM_10B_TO_50B: 30_000_000_000,
    RevenueRange.FROM_50B_TO_100B: 75_000_000_000,
    RevenueRange.OVER_100B: 150_000_000_000,
}

SCALE_ORDER: List[CompanyScaleType] = list(CompanyScaleType)


def _coerce_enum(enum_cls: Type[Enum], value: Any) -> Optional[Enum]:
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        return None


def _coerce_enum_list(enum_cls: Type[Enum], values: Any) -> List[Enum]:
    if not values:
        return []
    if isinstance(values, (str, Enum)):
        values = [values]
    coerced = []
    for value in values:
        member = _coerce_enum(enum_cls, value)
        if member is not None and member not in coerced:
            coerced.append(member)
    return coerced


_INT = TypeAdapter(int)
_DATE = TypeAdapter(date)
_DATETIME = TypeAdapter(datetime)


def _lenient(adapter: TypeAdapter, value: Any) -> Any:
    """Parse with the field's own adapter; unparseable values become None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        return adapter.validate_python(value)
    except ValidationError:
        return None


class Organization(BaseModel):
    """Organization profile as supplied by the calling layer."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    type: OrganizationType

    # Scale
    employee_count: Optional[EmployeeCountRange] = None
    revenue_range: Optional[RevenueRange] = None
    company_scale_type: Optional[CompanyScaleType] = None
    business_structure: Optional[BusinessStructure] = None
    business_established_date: Optional[date] = None
    regions: List[KoreanRegion] = Field(default_factory=list)

    # Capabilities
    industry_sector: Optional[str] = None
    technology_readiness_level: Optional[int] = None
    target_research_trl: Optional[int] = None
    certifications: List[str] = Field(default_factory=list)
    government_certifications: List[str] = Field(default_factory=list)
    key_technologies: List[str] = Field(default_factory=list)
    research_focus_areas: List[str] = Field(default_factory=list)
    technology_domains_specific: List[str] = Field(default_factory=list)
    excluded_domains: List[str] = Field(default_factory=list)

    # R&D history
    rd_experience: bool = False
    collaboration_count: Optional[int] = None
    prior_grant_wins: Optional[int] = None
    industry_awards: List[str] = Field(default_factory=list)
    investment_total: Optional[int] = Field(
        default=None, description="Verified investment received (KRW)"
    )
    researcher_count: Optional[int] = None

    # Consortium partner preferences
    desired_consortium_fields: List[str] = Field(default_factory=list)
    desired_technologies: List[str] = Field(default_factory=list)
    commercialization_capabilities: List[str] = Field(default_factory=list)
    target_org_scale: Optional[CompanyScaleType] = None
    target_partner_trl: Optional[int] = None
    expected_trl_level: Optional[int] = None

    # Profile fields that only feed completeness
    description: Optional[str] = None
    website: Optional[str] = None
    primary_contact_name: Optional[str] = None
    primary_contact_email: Optional[str] = None
    address: Optional[str] = None
    primary_business_domain: Optional[str] = None
    company_profile_description: Optional[str] = None

    @field_validator(
        "employee_count",
        "revenue_range",
        "company_scale_type",
        "business_structure",
        "target_org_scale",
        mode="before",
    )
    @classmethod
    def _unknown_enum_to_none(cls, value, info):
        enum_cls = _ORGANIZATION_ENUMS[info.field_name]
        return _coerce_enum(enum_cls, value)

    @field_validator(
        "technology_readiness_level",
        "target_research_trl",
        "collaboration_count",
        "prior_grant_wins",
        "investment_total",
        "researcher_count",
        "target_partner_trl",
        "expected_trl_level",
        mode="before",
    )
    @classmethod
    def _unparseable_int_to_none(cls, value):
        return _lenient(_INT, value)

    @field_validator("business_established_date", mode="before")
    @classmethod
    def _unparseable_date_to_none(cls, value):
        if isinstance(value, datetime):
            return value.date()
        return _lenient(_DATE, value)

    @field_validator("regions", mode="before")
    @classmethod
    def _known_regions(cls, value):
        return _coerce_enum_list(KoreanRegion, value)

    @property
    def all_certifications(self) -> List[str]:
        """Private and government certifications together."""
        return list(self.certifications) + list(self.government_certifications)

    @property
    def capability_keywords(self) -> List[str]:
        """Technology and focus keywords used for literal overlap checks."""
        return (
            list(self.key_technologies)
            + list(self.technology_domains_specific)
            + list(self.research_focus_areas)
        )


_ORGANIZATION_ENUMS: Dict[str, Type[Enum]] = {
    "employee_count": EmployeeCountRange,
    "revenue_range": RevenueRange,
    "company_scale_type": CompanyScaleType,
    "business_structure": BusinessStructure,
    "target_org_scale": CompanyScaleType,
}


class Program(BaseModel):
    """Funding announcement as supplied by the ingestion layer."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    agency: Optional[str] = None
    ministry: Optional[str] = None
    status: ProgramStatus = ProgramStatus.ACTIVE

    # Eligibility constraints
    target_type: List[OrganizationType] = Field(default_factory=list)
    target_company_scales: List[CompanyScaleType] = Field(default_factory=list)
    target_regions: List[KoreanRegion] = Field(
        default_factory=list, description="Empty means nationwide"
    )
    min_trl: Optional[int] = None
    max_trl: Optional[int] = None
    required_certifications: List[str] = Field(default_factory=list)
    preferred_certifications: List[str] = Field(default_factory=list)
    required_min_employees: Optional[int] = None
    required_max_employees: Optional[int] = None
    required_min_revenue: Optional[int] = None
    required_max_revenue: Optional[int] = None
    required_investment_amount: Optional[int] = None
    required_operating_years: Optional[int] = None
    max_operating_years: Optional[int] = None
    allowed_business_structures: List[BusinessStructure] = Field(default_factory=list)

    # Scheduling and money (KRW)
    application_start: Optional[datetime] = None
    deadline: Optional[datetime] = None
    published_at: Optional[datetime] = None
    budget_amount: Optional[int] = None
    max_support_amount: Optional[int] = None

    # Free text
    description: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    category: Optional[str] = None
    biz_type: Optional[str] = Field(default=None, description="사업유형, e.g. 기술, 금융, 창업")
    sport_type: Optional[str] = Field(default=None, description="지원유형, e.g. 기술개발, 정책자금")
    life_cycle: List[str] = Field(default_factory=list, description="생애주기, e.g. 창업, 성장")

    eligibility_confidence: ConfidenceLevel = ConfidenceLevel.MEDIUM
    external_id: Optional[str] = None
    content_hash: Optional[str] = None

    @field_validator("target_type", mode="before")
    @classmethod
    def _known_org_types(cls, value):
        return _coerce_enum_list(OrganizationType, value)

    @field_validator("target_company_scales", mode="before")
    @classmethod
    def _known_scales(cls, value):
        return _coerce_enum_list(CompanyScaleType, value)

    @field_validator("target_regions", mode="before")
    @classmethod
    def _known_regions(cls, value):
        return _coerce_enum_list(KoreanRegion, value)

    @field_validator("allowed_business_structures", mode="before")
    @classmethod
    def _known_structures(cls, value):
        return _coerce_enum_list(BusinessStructure, value)

    @field_validator("eligibility_confidence", mode="before")
    @classmethod
    def _confidence_default(cls, value):
        return _coerce_enum(ConfidenceLevel, value) or ConfidenceLevel.MEDIUM

    @field_validator("status", mode="before")
    @classmethod
    def _status_default(cls, value):
        return _coerce_enum(ProgramStatus, value) or ProgramStatus.ACTIVE

    @field_validator(
        "min_trl",
        "max_trl",
        "required_min_employees",
        "required_max_employees",
        "required_min_revenue",
        "required_max_revenue",
        "required_investment_amount",
        "required_operating_years",
        "max_operating_years",
        "budget_amount",
        "max_support_amount",
        mode="before",
    )
    @classmethod
    def _unparseable_int_to_none(cls, value):
        return _lenient(_INT, value)

    @field_validator("application_start", "deadline", "published_at", mode="before")
    @classmethod
    def _unparseable_datetime_to_none(cls, value):
        return _lenient(_DATETIME, value)

    @field_validator("application_start", "deadline", "published_at", mode="after")
    @classmethod
    def _to_utc(cls, value):
        return ensure_utc(value) if value is not None else None
