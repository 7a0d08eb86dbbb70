"""Eligibility gate: pass/fail pre-filter with reason codes.

Every rule is evaluated and its block reason accumulated; a program passes
only when no rule blocked it. The gate never raises on data: unknown or
malformed optional fields count as insufficient evidence and do not block.

Rule order:
1. Title markers (designated, demand survey, institution/hospital only, training)
2. Consolidated announcement (no deadline, start or budget)
3. Organization type
4. Business structure
5. TRL range
6. Hard requirements (known violations only)
7. SME ministry rules (scale, startup-only, regional)
8. Excluded domains
9. Cross-industry affinity with keyword-overlap fallback
10. Status and deadline (only when "now" is supplied)
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from fundmatch.classification.industry import (
    DEFAULT_AFFINITY,
    IndustryAffinity,
    IndustryCategory,
    IndustryClassification,
    classify_industry,
    keyword_overlap,
    normalize_industry,
)
from fundmatch.classification.trl import TRL_MAX, TRL_MIN, format_trl_range, is_valid_trl, valid_trl
from fundmatch.core.constants import (
    KOREAN_TITLE_STOPWORDS,
    METROPOLITAN_REGIONS,
    SME_MINISTRY,
    SME_NON_METRO_KEYWORDS,
    SME_REGIONAL_KEYWORD_MAP,
    SME_STARTUP_ONLY_KEYWORDS,
)
from fundmatch.core.dates import ensure_utc
from fundmatch.core.logging import get_logger
from fundmatch.matching.requirements import RequirementCheck, check_requirements
from fundmatch.matching.title_rules import (
    TITLE_RULES,
    TitleRule,
    matching_rules,
    resolve_application_type,
)
from fundmatch.models import (
    ApplicationType,
    BlockReason,
    CompanyScaleType,
    ConfidenceLevel,
    EligibilityLevel,
    Organization,
    Program,
    ProgramStatus,
)
from fundmatch.settings import settings

logger = get_logger("matching.gate")

# Historical matching widens the TRL window by this many levels each side
HISTORICAL_TRL_RELAXATION = 3


@dataclass(frozen=True)
class GateOptions:
    """Per-call gate options.

    now: enables the status and deadline rules; without it the gate
        does not judge time at all.
    include_expired: historical ("missed opportunity") mode.
    affinity_threshold: None uses settings.cross_industry_affinity_threshold.
    """

    now: Optional[datetime] = None
    include_expired: bool = False
    affinity: IndustryAffinity = field(default_factory=lambda: DEFAULT_AFFINITY)
    affinity_threshold: Optional[float] = None
    title_rules: Tuple[TitleRule, ...] = TITLE_RULES


class GateResult(BaseModel):
    """Outcome of the eligibility gate for one (program, organization) pair."""

    program_id: str
    organization_id: str
    passed: bool
    application_type: ApplicationType = ApplicationType.OPEN_COMPETITION
    block_reasons: List[BlockReason] = Field(default_factory=list)
    eligibility_level: EligibilityLevel = EligibilityLevel.FULLY_ELIGIBLE
    review_notes: List[str] = Field(default_factory=list)
    manual_review_recommended: bool = False


def evaluate_eligibility_gate(
    program: Program,
    organization: Organization,
    options: Optional[GateOptions] = None,
) -> GateResult:
    """Decide whether an organization may apply to a program.

    Args:
        program: Funding announcement
        organization: Applicant profile
        options: GateOptions (defaults: no time rules, current mode)

    Returns:
        GateResult with passed flag, ordered block reasons and application type
    """
    options = options or GateOptions()
    reasons: List[BlockReason] = []

    def block(reason: BlockReason) -> None:
        if reason not in reasons:
            reasons.append(reason)

    # 1. Title markers
    application_types: List[ApplicationType] = []
    for rule in matching_rules(program.title, options.title_rules):
        if rule.application_type is not None:
            application_types.append(rule.application_type)
        if rule.blocks(organization.type):
            block(rule.code)

    # 2. Umbrella announcement without a concrete call
    if _is_consolidated(program):
        application_types.append(ApplicationType.CONSOLIDATED_ANNOUNCEMENT)
        block(BlockReason.CONSOLIDATED_ANNOUNCEMENT)

    application_type = resolve_application_type(application_types)

    # 3. Organization type
    if program.target_type and organization.type not in program.target_type:
        block(BlockReason.ORG_TYPE_MISMATCH)

    # 4. Business structure (unknown structure never blocks)
    if (
        program.allowed_business_structures
        and organization.business_structure is not None
        and organization.business_structure not in program.allowed_business_structures
    ):
        block(BlockReason.BUSINESS_STRUCTURE_MISMATCH)

    # 5. TRL range
    if _trl_out_of_range(program, organization, options.include_expired):
        block(BlockReason.TRL_OUT_OF_RANGE)

    # 6. Hard requirements
    requirements = check_requirements(program, organization, options.now)
    if requirements.level is EligibilityLevel.INELIGIBLE:
        block(BlockReason.HARD_REQUIREMENT_FAILED)

    # 7-9. Ministry / industry rules
    classification = classify_industry(program.title, None, program.ministry)
    general_sme_program = _is_general_sme_program(program, classification)

    if (program.ministry or "").strip() == SME_MINISTRY:
        if organization.company_scale_type is CompanyScaleType.LARGE_ENTERPRISE:
            block(BlockReason.SME_SCALE_BLOCK)
        if general_sme_program:
            for reason in _sme_program_reasons(program, organization):
                block(reason)

    if _is_excluded_domain(classification, organization):
        block(BlockReason.EXCLUDED_DOMAIN)

    if not general_sme_program and not options.include_expired:
        if _industry_mismatch(program, organization, classification, options):
            block(BlockReason.INDUSTRY_MISMATCH)

    # 10. Status and deadline
    if options.now is not None and not options.include_expired:
        if program.status is not ProgramStatus.ACTIVE:
            block(BlockReason.STATUS_INACTIVE)
        if program.deadline is not None and program.deadline < ensure_utc(options.now):
            block(BlockReason.DEADLINE_PASSED)

    result = GateResult(
        program_id=program.id,
        organization_id=organization.id,
        passed=not reasons,
        application_type=application_type,
        block_reasons=reasons,
        eligibility_level=requirements.level,
        review_notes=_review_notes(program, organization, requirements),
        manual_review_recommended=(
            program.eligibility_confidence is ConfidenceLevel.LOW
            or requirements.needs_manual_review
        ),
    )

    if reasons:
        logger.debug(
            "Gate BLOCK: '%s' for %s -> %s",
            program.title[:50],
            organization.id,
            ", ".join(reason.value for reason in reasons),
        )
    return result


def _is_consolidated(program: Program) -> bool:
    return (
        program.deadline is None
        and program.application_start is None
        and program.budget_amount is None
    )


def _program_trl_bounds(program: Program) -> Optional[Tuple[int, int]]:
    """Declared TRL window; a single valid bound is open-ended on the other side."""
    low = program.min_trl if is_valid_trl(program.min_trl) else None
    high = program.max_trl if is_valid_trl(program.max_trl) else None
    if low is None and high is None:
        return None
    low = low if low is not None else TRL_MIN
    high = high if high is not None else TRL_MAX
    if low > high:
        return None
    return low, high


def _organization_trl(organization: Organization) -> Optional[int]:
    return valid_trl(organization.target_research_trl) or valid_trl(organization.technology_readiness_level)


def _trl_out_of_range(program: Program, organization: Organization, include_expired: bool) -> bool:
    org_trl = _organization_trl(organization)
    bounds = _program_trl_bounds(program)
    if org_trl is None or bounds is None:
        return False

    low, high = bounds
    if include_expired:
        low = max(TRL_MIN, low - HISTORICAL_TRL_RELAXATION)
        high = min(TRL_MAX, high + HISTORICAL_TRL_RELAXATION)
    return org_trl < low or org_trl > high


def _is_general_sme_program(program: Program, classification: IndustryClassification) -> bool:
    """SME ministry program without an industry-specific keyword."""
    if (program.ministry or "").strip() != SME_MINISTRY:
        return False
    return (
        classification.industry is IndustryCategory.GENERAL
        or not classification.matched_keywords
    )


def _sme_program_reasons(program: Program, organization: Organization) -> List[BlockReason]:
    reasons: List[BlockReason] = []
    title = program.title
    org_regions = {region.value for region in organization.regions}

    if any(keyword in title for keyword in SME_STARTUP_ONLY_KEYWORDS):
        if organization.company_scale_type is CompanyScaleType.MID_SIZED:
            reasons.append(BlockReason.SME_STARTUP_ONLY)

    # Regional rules need known locations
    if not org_regions:
        return reasons

    if any(keyword in title for keyword in SME_NON_METRO_KEYWORDS):
        if org_regions <= METROPOLITAN_REGIONS:
            reasons.append(BlockReason.SME_REGION_NON_METRO_ONLY)

    for region_keyword, allowed in SME_REGIONAL_KEYWORD_MAP.items():
        if region_keyword in title:
            if not org_regions & set(allowed):
                reasons.append(BlockReason.SME_REGION_MISMATCH)
            break

    return reasons


def _is_excluded_domain(classification: IndustryClassification, organization: Organization) -> bool:
    if classification.industry is IndustryCategory.GENERAL or not organization.excluded_domains:
        return False
    excluded = {normalize_industry(domain) for domain in organization.excluded_domains}
    return classification.industry in excluded


def _program_sector(program: Program, classification: IndustryClassification) -> Optional[IndustryCategory]:
    if classification.industry is not IndustryCategory.GENERAL:
        return classification.industry
    return normalize_industry(program.category)


def program_terms(program: Program) -> List[str]:
    """Program keywords plus informative title words, for literal overlap checks."""
    title_words = [
        word
        for word in program.title.lower().split()
        if len(word) >= 2 and word not in KOREAN_TITLE_STOPWORDS
    ]
    return list(program.keywords) + title_words


def _industry_mismatch(
    program: Program,
    organization: Organization,
    classification: IndustryClassification,
    options: GateOptions,
) -> bool:
    org_sector = normalize_industry(organization.industry_sector)
    program_sector = _program_sector(program, classification)
    if org_sector in (None, IndustryCategory.GENERAL):
        return False
    if program_sector in (None, IndustryCategory.GENERAL):
        return False

    threshold = options.affinity_threshold
    if threshold is None:
        threshold = settings.cross_industry_affinity_threshold

    affinity = options.affinity.score(org_sector, program_sector)
    if affinity >= threshold:
        return False

    org_keywords = organization.capability_keywords
    if not org_keywords:
        return False
    return not keyword_overlap(org_keywords, program_terms(program))


def _review_notes(program: Program, organization: Organization, requirements: RequirementCheck) -> List[str]:
    notes = list(requirements.unverified)
    bounds = _program_trl_bounds(program)
    if bounds is not None and _organization_trl(organization) is None:
        notes.append(f"지원 대상 기술성숙도({format_trl_range(*bounds)}) 충족 여부를 확인할 수 없습니다")
    if program.eligibility_confidence is ConfidenceLevel.LOW:
        notes.append("공고 자격요건 추출 신뢰도가 낮아 원문 확인이 필요합니다")
    return notes
