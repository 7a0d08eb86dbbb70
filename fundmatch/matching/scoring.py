"""Weighted multi-factor scoring of gate-approved programs.

Each of the twelve factors maps one aspect of organizational fit onto a
ratio in [0, 1]; the ratio times the factor's weight is its sub-score.
Weights come from a versioned ScoringWeights object and sum to 100, so the
total is the plain sum of the sub-scores (clamped to 0-100).

Factors read only the program, the organization, "now" and the mode
flag; none reads another factor's result, so evaluation order is free.
The scorer assumes the eligibility gate already passed and does not
re-validate eligibility.
"""

import math
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from fundmatch.classification.industry import (
    DEFAULT_AFFINITY,
    IndustryCategory,
    classify_industry,
    keyword_pattern,
    normalize_industry,
)
from fundmatch.classification.trl import classify_trl, get_trl_stage, valid_trl, valid_trl_range
from fundmatch.core.constants import RECOGNIZED_SME_CERTIFICATIONS
from fundmatch.core.dates import business_age_years, days_until
from fundmatch.core.logging import get_logger
from fundmatch.matching.requirements import holds_certification
from fundmatch.matching.weights import FACTOR_NAMES, ScoringWeights
from fundmatch.models import (
    EMPLOYEE_MIDPOINTS,
    REVENUE_MIDPOINTS,
    SCALE_ORDER,
    CompanyScaleType,
    Organization,
    Program,
    RevenueRange,
)
from fundmatch.settings import settings

logger = get_logger("matching.scoring")

SCORE_MAX = 100.0

# Sectors that read as "technology companies" for 기술 programs
TECH_SECTORS = frozenset(
    {
        IndustryCategory.ICT,
        IndustryCategory.BIO_HEALTH,
        IndustryCategory.MANUFACTURING,
        IndustryCategory.ENERGY,
    }
)

SMALL_REVENUE = frozenset({RevenueRange.NONE, RevenueRange.UNDER_1B})

# Raw point scales per lookup factor (ratio = points / max)
BIZ_TYPE_MAX_POINTS = 28
LIFECYCLE_MAX_POINTS = 2
SPORT_TYPE_MAX_POINTS = 3
INDUSTRY_NO_TEXT_RATIO = 8 / 30

# Deadline buckets: (max days, ratio)
UPCOMING_DEADLINE_BUCKETS: Tuple[Tuple[int, float], ...] = (
    (7, 1.0),
    (30, 0.8),
    (60, 8 / 15),
    (90, 5 / 15),
)
EXPIRED_DEADLINE_BUCKETS: Tuple[Tuple[int, float], ...] = (
    (30, 1.0),
    (90, 0.8),
    (180, 8 / 15),
    (365, 5 / 15),
)
HISTORICAL_OPEN_DEADLINE_RATIO = 1 / 3


class ScoreBreakdown(BaseModel):
    """Per-factor sub-scores (points) and their total."""

    company_scale: float = Field(ge=0, description="Company scale fit")
    revenue_range: float = Field(ge=0, description="Revenue range fit")
    employee_count: float = Field(ge=0, description="Employee count fit")
    business_age: float = Field(ge=0, description="Business age fit")
    region: float = Field(ge=0, description="Region fit")
    certifications: float = Field(ge=0, description="Required/preferred certifications held")
    biz_type: float = Field(ge=0, description="사업유형 match")
    lifecycle: float = Field(ge=0, description="Lifecycle stage match")
    industry_content: float = Field(ge=0, description="Industry/content relevance")
    deadline: float = Field(ge=0, description="Deadline urgency")
    financial_relevance: float = Field(ge=0, description="Support amount vs revenue")
    sport_type: float = Field(ge=0, description="지원유형 match")
    total: float = Field(ge=0, le=100, description="Sum of sub-scores (0-100)")

    ratios: Dict[str, float] = Field(
        default_factory=dict, description="Raw factor ratios in [0, 1]"
    )
    maxima: Dict[str, int] = Field(
        default_factory=dict, description="Factor maxima of the weighting used"
    )
    weights_version: str = ""
    include_expired: bool = False

    def factors(self) -> Dict[str, float]:
        """Sub-scores keyed by factor name, in breakdown order."""
        return {name: getattr(self, name) for name in FACTOR_NAMES}

    def ratio(self, name: str) -> float:
        return self.ratios.get(name, 0.0)


# ============================================================================
# Shared helpers
# ============================================================================


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _bucket_ratio(days: int, buckets: Tuple[Tuple[int, float], ...]) -> float:
    for limit, ratio in buckets:
        if days <= limit:
            return ratio
    return 0.0


def _bound_ratio(value: int, low: Optional[int], high: Optional[int]) -> float:
    """Full credit inside [low, high], 0.5 within 2x of the violated bound, 0.25 within 4x."""
    if low is not None and value < low:
        if value * 2 >= low:
            return 0.5
        if value * 4 >= low:
            return 0.25
        return 0.0
    if high is not None and value > high:
        if value <= high * 2:
            return 0.5
        if value <= high * 4:
            return 0.25
        return 0.0
    return 1.0


def _step_ratio(distance: int) -> float:
    """Decay for ordinal distance outside a range (scale steps, years)."""
    if distance <= 0:
        return 1.0
    if distance == 1:
        return 0.5
    if distance == 2:
        return 0.2
    return 0.0


def _org_lifecycle(organization: Organization, now: datetime) -> Optional[str]:
    """"startup" or "growth", or None without scale/age data."""
    if organization.company_scale_type is CompanyScaleType.STARTUP:
        return "startup"
    age = business_age_years(organization.business_established_date, now)
    if age is None:
        return None
    return "startup" if age < 3 else "growth"


# ============================================================================
# Eligibility-fit factors
# ============================================================================


def _company_scale(program: Program, organization: Organization, now: datetime, include_expired: bool) -> float:
    if not program.target_company_scales:
        return 0.5
    scale = organization.company_scale_type
    if scale is None:
        return 0.4
    if scale in program.target_company_scales:
        return 1.0
    position = SCALE_ORDER.index(scale)
    distance = min(abs(position - SCALE_ORDER.index(target)) for target in program.target_company_scales)
    return _step_ratio(distance)


def _revenue_range(program: Program, organization: Organization, now: datetime, include_expired: bool) -> float:
    if program.required_min_revenue is None and program.required_max_revenue is None:
        return 0.5
    if organization.revenue_range is None:
        return 0.5
    midpoint = REVENUE_MIDPOINTS[organization.revenue_range]
    return _bound_ratio(midpoint, program.required_min_revenue, program.required_max_revenue)


def _employee_count(program: Program, organization: Organization, now: datetime, include_expired: bool) -> float:
    if program.required_min_employees is None and program.required_max_employees is None:
        return 0.5
    if organization.employee_count is None:
        return 0.5
    midpoint = EMPLOYEE_MIDPOINTS[organization.employee_count]
    return _bound_ratio(midpoint, program.required_min_employees, program.required_max_employees)


def _business_age(program: Program, organization: Organization, now: datetime, include_expired: bool) -> float:
    low, high = program.required_operating_years, program.max_operating_years
    if low is None and high is None:
        return 0.5
    age = business_age_years(organization.business_established_date, now)
    if age is None:
        return 0.5
    if low is not None and age < low:
        return _step_ratio(low - age)
    if high is not None and age > high:
        return _step_ratio(age - high)
    return 1.0


def _region(program: Program, organization: Organization, now: datetime, include_expired: bool) -> float:
    if not program.target_regions:
        return 0.7  # nationwide
    if not organization.regions:
        return 0.3
    if set(organization.regions) & set(program.target_regions):
        return 1.0
    return 0.0


def _certifications(program: Program, organization: Organization, now: datetime, include_expired: bool) -> float:
    held = organization.all_certifications

    if program.required_certifications:
        owned = sum(1 for cert in program.required_certifications if holds_certification(cert, held))
        required_part = 0.7 * owned / len(program.required_certifications)
    else:
        required_part = 0.35

    if program.preferred_certifications:
        owned = sum(1 for cert in program.preferred_certifications if holds_certification(cert, held))
        preferred_part = 0.3 * owned / len(program.preferred_certifications)
    else:
        recognized = sum(1 for cert in RECOGNIZED_SME_CERTIFICATIONS if holds_certification(cert, held))
        preferred_part = min(0.3, 0.15 * recognized)

    return _clamp(required_part + preferred_part)


# ============================================================================
# Relevance factors
# ============================================================================


def _biz_type_points(program: Program, organization: Organization, now: datetime) -> int:
    biz_type = (program.biz_type or "").strip()
    scale = organization.company_scale_type
    revenue = organization.revenue_range
    has_revenue = revenue is not None and revenue is not RevenueRange.NONE

    if not biz_type:
        return 8
    if biz_type == "기술":
        if organization.rd_experience:
            return 28
        if normalize_industry(organization.industry_sector) in TECH_SECTORS:
            return 22
        return 6
    if biz_type == "금융":
        if scale is CompanyScaleType.STARTUP:
            return 28
        if scale is CompanyScaleType.SME or revenue in SMALL_REVENUE:
            return 22
        return 8
    if biz_type == "창업":
        if scale is CompanyScaleType.STARTUP:
            return 28
        age = business_age_years(organization.business_established_date, now)
        if age is not None and age < 3:
            return 22
        if age is not None and age < 7:
            return 14
        return 3
    if biz_type == "수출":
        return 24 if has_revenue else 6
    if biz_type in ("인력", "경영"):
        return 14
    if biz_type == "내수":
        return 22 if has_revenue else 8
    if biz_type == "중견":
        if scale is CompanyScaleType.MID_SIZED:
            return 28
        if scale is CompanyScaleType.SME:
            return 14
        return 3
    if biz_type == "소상공인":
        if scale is CompanyScaleType.STARTUP or revenue in SMALL_REVENUE:
            return 24
        return 4
    return 8


def _biz_type(program: Program, organization: Organization, now: datetime, include_expired: bool) -> float:
    return _biz_type_points(program, organization, now) / BIZ_TYPE_MAX_POINTS


def _lifecycle_points(program: Program, organization: Organization, now: datetime) -> int:
    if program.life_cycle:
        stage = _org_lifecycle(organization, now)
        if stage is None:
            return 1
        for life_cycle in program.life_cycle:
            if "창업" in life_cycle and stage == "startup":
                return 2
            if "성장" in life_cycle and stage == "growth":
                return 2
            if "폐업" in life_cycle or "재기" in life_cycle:
                return 1
        return 0

    if (program.biz_type or "").strip() == "창업":
        stage = _org_lifecycle(organization, now)
        if stage == "startup":
            return 2
        if stage == "growth":
            return 0
        return 1

    # Fall back to research-stage alignment
    trl_range = valid_trl_range(program.min_trl, program.max_trl)
    org_trl = valid_trl(organization.technology_readiness_level)
    if trl_range is None or org_trl is None:
        return 1
    program_stage = classify_trl(*trl_range).stage
    return 2 if get_trl_stage(org_trl) is program_stage else 1


def _lifecycle(program: Program, organization: Organization, now: datetime, include_expired: bool) -> float:
    return _lifecycle_points(program, organization, now) / LIFECYCLE_MAX_POINTS


def _program_text(program: Program) -> str:
    parts: List[str] = [program.description or "", " ".join(program.keywords), program.category or ""]
    return " ".join(part for part in parts if part)


def _mentioned_keywords(keywords: List[str], program: Program) -> List[str]:
    """Organization keywords literally present in the program's title, text or keyword list."""
    haystack = f"{program.title} {_program_text(program)}"
    program_keywords = {keyword.strip().lower() for keyword in program.keywords}
    mentioned: List[str] = []
    for keyword in keywords:
        key = (keyword or "").strip()
        if len(key) < 2 or key.lower() in mentioned:
            continue
        if key.lower() in program_keywords or keyword_pattern(key).search(haystack):
            mentioned.append(key.lower())
    return mentioned


def _industry_content(program: Program, organization: Organization, now: datetime, include_expired: bool) -> float:
    text = _program_text(program)
    if len(f"{program.title or ''}{text}".strip()) < 2:
        return INDUSTRY_NO_TEXT_RATIO

    classification = classify_industry(program.title, text, program.ministry)
    affinity = DEFAULT_AFFINITY.score(organization.industry_sector, classification.industry)

    keywords = organization.capability_keywords
    if not keywords:
        return _clamp(affinity)

    distinct = {keyword.strip().lower() for keyword in keywords if keyword and keyword.strip()}
    mentioned = _mentioned_keywords(keywords, program)
    overlap = min(1.0, len(mentioned) / max(1, min(3, len(distinct))))
    return _clamp(0.6 * affinity + 0.4 * overlap)


def _deadline(program: Program, organization: Organization, now: datetime, include_expired: bool) -> float:
    if program.deadline is None:
        return 0.0
    days = days_until(program.deadline, now)
    if days < 0:
        if include_expired:
            return _bucket_ratio(-days, EXPIRED_DEADLINE_BUCKETS)
        return 0.0
    if include_expired:
        return HISTORICAL_OPEN_DEADLINE_RATIO
    return _bucket_ratio(days, UPCOMING_DEADLINE_BUCKETS)


def _financial_relevance(program: Program, organization: Organization, now: datetime, include_expired: bool) -> float:
    support = program.max_support_amount
    if not support or organization.revenue_range is None:
        return 0.5
    midpoint = REVENUE_MIDPOINTS[organization.revenue_range]
    if midpoint == 0:
        return 0.5
    # 1% <= support / revenue <= 30%, in integer arithmetic
    if support * 100 >= midpoint and support * 100 <= midpoint * 30:
        return 1.0
    return 0.5


def _sport_type_points(program: Program, organization: Organization) -> int:
    sport_type = (program.sport_type or "").strip()
    scale = organization.company_scale_type
    revenue = organization.revenue_range

    if sport_type == "기술개발":
        return 3 if organization.rd_experience else 1
    if sport_type == "창업":
        return 3 if scale is CompanyScaleType.STARTUP else 1
    if sport_type == "수출지원":
        return 3 if revenue is not None and revenue is not RevenueRange.NONE else 1
    if sport_type in ("정책자금", "인력지원"):
        return 2
    if sport_type == "스마트공장":
        manufacturing = normalize_industry(organization.industry_sector) is IndustryCategory.MANUFACTURING
        return 3 if manufacturing else 1
    if sport_type == "소상공인":
        return 3 if scale is CompanyScaleType.STARTUP or revenue in SMALL_REVENUE else 1
    return 1


def _sport_type(program: Program, organization: Organization, now: datetime, include_expired: bool) -> float:
    return _sport_type_points(program, organization) / SPORT_TYPE_MAX_POINTS


FactorFunction = Callable[[Program, Organization, datetime, bool], float]

FACTOR_FUNCTIONS: Dict[str, FactorFunction] = {
    "company_scale": _company_scale,
    "revenue_range": _revenue_range,
    "employee_count": _employee_count,
    "business_age": _business_age,
    "region": _region,
    "certifications": _certifications,
    "biz_type": _biz_type,
    "lifecycle": _lifecycle,
    "industry_content": _industry_content,
    "deadline": _deadline,
    "financial_relevance": _financial_relevance,
    "sport_type": _sport_type,
}


def score(
    program: Program,
    organization: Organization,
    *,
    now: datetime,
    include_expired: bool = False,
    weights: Optional[ScoringWeights] = None,
) -> ScoreBreakdown:
    """Score a gate-approved program for an organization.

    Args:
        program: Program that passed the eligibility gate
        organization: Organization profile
        now: Reference time for deadline urgency and business age
        include_expired: Historical mode; past deadlines score by recency
        weights: Factor maxima (default: settings.scoring_weights)

    Returns:
        ScoreBreakdown with every factor present, even when zero
    """
    weights = weights or settings.scoring_weights
    maxima = weights.as_dict()

    ratios: Dict[str, float] = {}
    points: Dict[str, float] = {}
    for name in FACTOR_NAMES:
        ratio = _clamp(FACTOR_FUNCTIONS[name](program, organization, now, include_expired))
        ratios[name] = round(ratio, 3)
        points[name] = round(maxima[name] * ratio, 1)

    # Exact, order-independent sum
    total = round(min(SCORE_MAX, max(0.0, math.fsum(points.values()))), 1)

    logger.debug(
        "Score '%s' for %s -> %.1f (weights %s%s)",
        program.title[:50],
        organization.id,
        total,
        weights.version,
        ", historical" if include_expired else "",
    )

    return ScoreBreakdown(
        **points,
        total=total,
        ratios=ratios,
        maxima=maxima,
        weights_version=weights.version,
        include_expired=include_expired,
    )
