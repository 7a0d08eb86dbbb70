"""Consortium partner compatibility.

Scores a candidate organization B as a consortium partner for A. The
factors look for complementarity rather than similarity: early-stage
research paired with commercialization capability, wanted technologies
offered by the partner, a fitting partner size and collaboration history.

The score is asymmetric on purpose: A's wishes (desired fields, desired
technologies, target partner TRL and scale) are matched against B's
profile, so compatibility(A, B) generally differs from compatibility(B, A).
"""

from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from fundmatch.classification.industry import DEFAULT_AFFINITY, normalize_industry
from fundmatch.classification.trl import valid_trl
from fundmatch.core.exceptions import ConfigurationError
from fundmatch.core.logging import get_logger
from fundmatch.models import SCALE_ORDER, EmployeeCountRange, Organization, OrganizationType

logger = get_logger("matching.partner")

PARTNER_FACTORS: Tuple[str, ...] = ("trl_fit", "industry", "technology", "scale", "experience")

RESEARCH_TYPES = frozenset({OrganizationType.RESEARCH_INSTITUTE, OrganizationType.UNIVERSITY})

EMPLOYEE_ORDER: List[EmployeeCountRange] = list(EmployeeCountRange)

# Neutral ratio when a factor has no data on either side
NEUTRAL_RATIO = 0.25

REASON_LABELS: Dict[str, str] = {
    "PERFECT_TRL_COMPLEMENT": "완벽한 TRL 상호보완 관계",
    "TRL_COMPLEMENT": "TRL 상호보완 관계",
    "TRL_GAP_INNOVATION_OPPORTUNITY": "초기 기술과 응용 역량의 결합 기회",
    "DESIRED_FIELD_MATCH": "희망 협력 분야 일치",
    "SAME_INDUSTRY": "동일 산업 분야",
    "CROSS_INDUSTRY_RELEVANT": "연관 산업 분야",
    "TECHNOLOGY_MATCH": "기술 역량 일치",
    "PERFECT_SCALE_MATCH": "희망 규모 일치",
    "LARGE_RESEARCH_CAPACITY": "풍부한 연구 인력",
    "EXTENSIVE_COLLABORATION_HISTORY": "풍부한 협력 경험",
    "PRIOR_GRANT_WINS": "정부과제 수행 실적 보유",
}


class PartnerWeights(BaseModel):
    """Maximum points per partner factor."""

    model_config = ConfigDict(frozen=True)

    version: str = "2026.1"
    trl_fit: int = Field(default=35, ge=0, le=100)
    industry: int = Field(default=20, ge=0, le=100)
    technology: int = Field(default=20, ge=0, le=100)
    scale: int = Field(default=12, ge=0, le=100)
    experience: int = Field(default=13, ge=0, le=100)

    @model_validator(mode="after")
    def _check_total(self) -> "PartnerWeights":
        total = sum(getattr(self, name) for name in PARTNER_FACTORS)
        if total != 100:
            raise ConfigurationError(
                f"Partner weights {self.version} sum to {total}, expected 100",
                setting="partner_weights",
            )
        return self


DEFAULT_PARTNER_WEIGHTS = PartnerWeights()


class PartnerBreakdown(BaseModel):
    trl_fit: float = Field(ge=0)
    industry: float = Field(ge=0)
    technology: float = Field(ge=0)
    scale: float = Field(ge=0)
    experience: float = Field(ge=0)


class PartnerCompatibility(BaseModel):
    """Compatibility of a candidate partner as viewed from the requesting organization."""

    organization_id: str
    partner_id: str
    score: float = Field(ge=0, le=100)
    breakdown: PartnerBreakdown
    reasons: List[str] = Field(default_factory=list)
    explanation: str


def _normalize(term: str) -> str:
    return "".join((term or "").split()).lower()


def _terms_match(wanted: str, offered: Iterable[str]) -> bool:
    key = _normalize(wanted)
    if len(key) < 2:
        return False
    for item in offered:
        other = _normalize(item)
        if other and (key in other or other in key):
            return True
    return False


def _diff_ratio(diff: int, exact: float = 1.0, close: float = 0.875, near: float = 0.7) -> float:
    if diff == 0:
        return exact
    if diff == 1:
        return close
    if diff == 2:
        return near
    return 0.0


def _trl_fit(org: Organization, partner: Organization, reasons: List[str]) -> float:
    org_trl = valid_trl(org.technology_readiness_level)
    partner_trl = valid_trl(partner.technology_readiness_level)
    ratio = 0.0

    if org.type is OrganizationType.COMPANY and partner.type in RESEARCH_TYPES:
        wanted = valid_trl(org.target_partner_trl)
        partner_expected = valid_trl(partner.expected_trl_level)
        if wanted is not None and wanted <= 4 and partner_trl is not None and partner_trl <= 4:
            ratio = _diff_ratio(abs(wanted - partner_trl))
        elif wanted is not None and wanted >= 7 and partner_expected is not None and partner_expected >= 7:
            ratio = _diff_ratio(abs(wanted - partner_expected))
        elif org_trl is not None and 4 <= org_trl <= 6 and partner_trl is not None and partner_trl <= 3:
            ratio = 0.8
            reasons.append("TRL_GAP_INNOVATION_OPPORTUNITY")
        elif org_trl is not None and partner_trl is not None:
            gap = abs(org_trl - partner_trl)
            ratio = 0.5 if 3 <= gap <= 5 else 0.375 if gap <= 2 else 0.0

    elif org.type in RESEARCH_TYPES and partner.type is OrganizationType.COMPANY:
        own_expected = valid_trl(org.expected_trl_level)
        partner_wanted = valid_trl(partner.target_partner_trl)
        if org_trl is not None and org_trl <= 4 and partner_trl is not None and partner_trl >= 7:
            ratio = 1.0 if partner_trl - org_trl <= 6 else 0.8
        elif own_expected is not None and own_expected >= 7 and partner_wanted is not None and partner_wanted >= 7:
            ratio = _diff_ratio(abs(own_expected - partner_wanted), exact=0.95, close=0.75, near=0.0)
        elif org_trl is not None and partner_trl is not None:
            gap = abs(org_trl - partner_trl)
            ratio = 0.55 if 3 <= gap <= 5 else 0.3 if gap <= 2 else 0.0

    elif org_trl is not None and partner_trl is not None:
        gap = abs(org_trl - partner_trl)
        ratio = 1.0 if 1 <= gap <= 3 else 0.5 if gap == 0 else NEUTRAL_RATIO

    if ratio >= 0.95:
        reasons.append("PERFECT_TRL_COMPLEMENT")
    elif ratio >= 0.7 and "TRL_GAP_INNOVATION_OPPORTUNITY" not in reasons:
        reasons.append("TRL_COMPLEMENT")

    return ratio if ratio > 0 else NEUTRAL_RATIO


def _industry(org: Organization, partner: Organization, reasons: List[str]) -> float:
    partner_fields = [partner.industry_sector or ""] + list(partner.research_focus_areas)
    if any(_terms_match(wanted, partner_fields) for wanted in org.desired_consortium_fields):
        reasons.append("DESIRED_FIELD_MATCH")
        return 1.0

    if normalize_industry(org.industry_sector) is None or normalize_industry(partner.industry_sector) is None:
        return 0.5

    affinity = DEFAULT_AFFINITY.score(org.industry_sector, partner.industry_sector)
    if affinity >= 1.0:
        reasons.append("SAME_INDUSTRY")
    elif affinity >= 0.5:
        reasons.append("CROSS_INDUSTRY_RELEVANT")
    return affinity


def _technology(org: Organization, partner: Organization, reasons: List[str]) -> float:
    wishes = [term for term in (org.desired_technologies or org.key_technologies) if term and term.strip()]
    offers = (
        list(partner.key_technologies)
        + list(partner.commercialization_capabilities)
        + list(partner.technology_domains_specific)
    )
    if not wishes or not offers:
        return NEUTRAL_RATIO

    matched = sum(1 for wanted in wishes if _terms_match(wanted, offers))
    if matched:
        reasons.append("TECHNOLOGY_MATCH")
    return min(1.0, matched / len(wishes))


def _scale(org: Organization, partner: Organization, reasons: List[str]) -> float:
    if org.target_org_scale is not None and partner.company_scale_type is not None:
        distance = abs(SCALE_ORDER.index(org.target_org_scale) - SCALE_ORDER.index(partner.company_scale_type))
        if distance == 0:
            reasons.append("PERFECT_SCALE_MATCH")
            return 1.0
        return 0.5 if distance == 1 else 0.0

    if org.type is OrganizationType.COMPANY and partner.type in RESEARCH_TYPES and partner.researcher_count:
        if partner.researcher_count >= 50:
            reasons.append("LARGE_RESEARCH_CAPACITY")
            return 1.0
        if partner.researcher_count >= 20:
            return 0.7
        if partner.researcher_count >= 10:
            return 0.5
        return 0.3

    if org.employee_count is not None and partner.employee_count is not None:
        distance = abs(EMPLOYEE_ORDER.index(org.employee_count) - EMPLOYEE_ORDER.index(partner.employee_count))
        if distance == 0:
            return 0.6
        if distance == 1:
            return 0.4

    return 1 / 3


def _experience(org: Organization, partner: Organization, reasons: List[str]) -> float:
    points = 0
    if partner.rd_experience:
        points += 6

    collaborations = partner.collaboration_count or 0
    if collaborations >= 5:
        points += 5
        reasons.append("EXTENSIVE_COLLABORATION_HISTORY")
    elif collaborations >= 3:
        points += 4
    elif collaborations >= 1:
        points += 2

    wins = partner.prior_grant_wins or 0
    if wins >= 1:
        points += 4 if wins >= 3 else 2
        reasons.append("PRIOR_GRANT_WINS")

    if points == 0:
        return 1 / 3
    return min(15, points) / 15


FACTOR_FUNCTIONS = {
    "trl_fit": _trl_fit,
    "industry": _industry,
    "technology": _technology,
    "scale": _scale,
    "experience": _experience,
}


def _explanation(reasons: List[str]) -> str:
    phrases = [REASON_LABELS[code] for code in reasons if code in REASON_LABELS]
    if not phrases:
        return "컨소시엄 파트너로서 적합한 조직입니다."
    return ", ".join(phrases)


def calculate_partner_compatibility(
    organization: Organization,
    partner: Organization,
    weights: Optional[PartnerWeights] = None,
) -> PartnerCompatibility:
    """Compatibility (0-100) of partner as viewed from organization."""
    weights = weights or DEFAULT_PARTNER_WEIGHTS
    reasons: List[str] = []

    points: Dict[str, float] = {}
    for name in PARTNER_FACTORS:
        ratio = max(0.0, min(1.0, FACTOR_FUNCTIONS[name](organization, partner, reasons)))
        points[name] = round(getattr(weights, name) * ratio, 1)

    total = round(min(100.0, sum(points.values())), 1)
    return PartnerCompatibility(
        organization_id=organization.id,
        partner_id=partner.id,
        score=total,
        breakdown=PartnerBreakdown(**points),
        reasons=reasons,
        explanation=_explanation(reasons),
    )


def generate_partner_matches(
    organization: Organization,
    candidates: List[Organization],
    *,
    limit: int = 10,
    weights: Optional[PartnerWeights] = None,
) -> List[PartnerCompatibility]:
    """Rank candidate partners for an organization (self excluded)."""
    matches = [
        calculate_partner_compatibility(organization, candidate, weights)
        for candidate in candidates
        if candidate.id != organization.id
    ]
    matches.sort(key=lambda match: (-match.score, match.partner_id))

    logger.info(
        "Partner matching %s: %d candidates, %d returned",
        organization.id,
        len(candidates),
        min(limit, len(matches)),
    )
    return matches[:limit]
