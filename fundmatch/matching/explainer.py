"""Structured match explanations.

This module decides WHAT an explanation says: which factors become
reasons, which become cautions, the score band and the recommendation
notes. HOW it is phrased is delegated to a Renderer (Korean templates by
default, optionally an LLM rewrite of the template text).
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Protocol

from pydantic import BaseModel, Field

from fundmatch.classification.completeness import calculate_profile_completeness
from fundmatch.core.dates import days_until
from fundmatch.core.exceptions import AIProcessingError
from fundmatch.core.logging import get_logger
from fundmatch.matching.weights import FACTOR_NAMES
from fundmatch.models import ConfidenceLevel, Organization, OrganizationType, Program
from fundmatch.settings import settings

if TYPE_CHECKING:
    from fundmatch.matching.engine import MatchResult

logger = get_logger("matching.explainer")

DEADLINE_NOTICE_DAYS = 30


class MatchExplanation(BaseModel):
    """Fixed-shape explanation attached to a match."""

    summary: str
    reasons: List[str] = Field(default_factory=list)
    cautions: Optional[List[str]] = Field(
        default=None, description="Weak-but-nonzero factors; None when there are none"
    )
    recommendation: str


@dataclass
class ExplanationDraft:
    """Everything a renderer needs; no phrasing decided yet."""

    program_title: str
    addressee: str  # 귀사 / 귀 기관
    score: float
    band: str  # excellent / good / fair / low
    reason_factors: List[str] = field(default_factory=list)
    caution_factors: List[str] = field(default_factory=list)
    include_expired: bool = False
    days_left: Optional[int] = None
    low_confidence: bool = False
    manual_review: bool = False
    completeness_percent: int = 100
    missing_profile_labels: List[str] = field(default_factory=list)
    biz_type: Optional[str] = None
    sport_type: Optional[str] = None


class Renderer(Protocol):
    def render(self, draft: ExplanationDraft) -> MatchExplanation:
        ...


def score_band(score: float) -> str:
    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    if score >= 40:
        return "fair"
    return "low"


def addressee_for(organization: Organization) -> str:
    return "귀사" if organization.type is OrganizationType.COMPANY else "귀 기관"


def build_draft(
    match_result: "MatchResult",
    organization: Organization,
    program: Program,
) -> ExplanationDraft:
    """Select the factors to mention and collect recommendation signals."""
    breakdown = match_result.breakdown
    points = breakdown.factors()

    def counts(name: str) -> bool:
        return breakdown.maxima.get(name, 1) > 0

    # Strongest first; factor order breaks ties
    strong = [
        name
        for name in FACTOR_NAMES
        if counts(name) and breakdown.ratio(name) >= settings.reason_ratio_threshold
    ]
    strong.sort(key=lambda name: -points[name])
    weak = [
        name
        for name in FACTOR_NAMES
        if counts(name) and 0 < breakdown.ratio(name) < settings.caution_ratio_threshold
    ]

    days_left = None
    if program.deadline is not None:
        days_left = days_until(program.deadline, match_result.evaluated_at)

    completeness = calculate_profile_completeness(organization)

    return ExplanationDraft(
        program_title=program.title,
        addressee=addressee_for(organization),
        score=match_result.score,
        band=score_band(match_result.score),
        reason_factors=strong[: settings.max_explanation_reasons],
        caution_factors=weak,
        include_expired=breakdown.include_expired,
        days_left=days_left,
        low_confidence=program.eligibility_confidence is ConfidenceLevel.LOW,
        manual_review=match_result.manual_review_recommended,
        completeness_percent=completeness.percent,
        missing_profile_labels=completeness.missing_labels,
        biz_type=program.biz_type,
        sport_type=program.sport_type,
    )


def explain(
    match_result: "MatchResult",
    organization: Organization,
    program: Program,
    *,
    renderer: Optional[Renderer] = None,
) -> MatchExplanation:
    """Explain a scored match.

    Args:
        match_result: Scored match (breakdown, score, evaluation time)
        organization: Organization the match was computed for
        program: Matched program
        renderer: Phrasing collaborator; Korean templates when None

    Returns:
        MatchExplanation. A failing renderer falls back to the template text.
    """
    from fundmatch.ai.phrasing import TemplateRenderer

    draft = build_draft(match_result, organization, program)
    template = TemplateRenderer()
    if renderer is None or isinstance(renderer, TemplateRenderer):
        return template.render(draft)

    try:
        return renderer.render(draft)
    except AIProcessingError as e:
        logger.warning(
            "Explanation renderer failed for '%s', using templates: %s",
            program.title[:50],
            e.message,
        )
        return template.render(draft)
