"""Match engine: gate, score, rank, explain.

One organization against N programs:
1. Eligibility gate
2. Optional duplicate collapse among gate survivors
3. Scoring
4. Minimum-score filter
5. Ranking (score desc, deadline soonest, id)
6. Top-K
7. Explanations

Duplicate collapse is opt-in (MatchOptions.deduplicate) and only sees
programs that passed the gate.

The engine is synchronous and stateless. "now" is always passed in by
the caller; nothing here reads the wall clock.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from fundmatch.core.dates import ensure_utc
from fundmatch.core.exceptions import ContractViolationError
from fundmatch.core.logging import get_logger
from fundmatch.dedup import collapse_duplicates
from fundmatch.matching.eligibility_gate import GateOptions, GateResult, evaluate_eligibility_gate
from fundmatch.matching.explainer import MatchExplanation, Renderer, explain
from fundmatch.matching.scoring import ScoreBreakdown, score
from fundmatch.matching.weights import ScoringWeights
from fundmatch.models import ApplicationType, Organization, Program
from fundmatch.settings import settings

logger = get_logger("matching.engine")


@dataclass
class MatchOptions:
    """Per-run options. None values fall back to settings."""

    limit: Optional[int] = None
    minimum_score: Optional[float] = None
    include_expired: bool = False
    weights: Optional[ScoringWeights] = None
    deduplicate: bool = False
    renderer: Optional[Renderer] = None


class MatchResult(BaseModel):
    """Scored and explained match for one program."""

    program_id: str
    program_title: str
    score: float = Field(ge=0, le=100)
    breakdown: ScoreBreakdown
    explanation: Optional[MatchExplanation] = None
    application_type: ApplicationType = ApplicationType.OPEN_COMPETITION
    manual_review_recommended: bool = False
    evaluated_at: datetime


def match_program(
    program: Program,
    organization: Organization,
    gate_result: GateResult,
    *,
    now: datetime,
    include_expired: bool = False,
    weights: Optional[ScoringWeights] = None,
) -> MatchResult:
    """Score a program that passed the gate.

    Raises:
        ContractViolationError: gate_result did not pass or belongs to another pair
    """
    if gate_result.program_id != program.id or gate_result.organization_id != organization.id:
        raise ContractViolationError(
            "Gate result belongs to a different program/organization pair",
            program_id=program.id,
            organization_id=organization.id,
            details={
                "gate_program_id": gate_result.program_id,
                "gate_organization_id": gate_result.organization_id,
            },
        )
    if not gate_result.passed:
        raise ContractViolationError(
            "Program did not pass the eligibility gate and must not be scored",
            program_id=program.id,
            organization_id=organization.id,
            details={"block_reasons": [reason.value for reason in gate_result.block_reasons]},
        )

    breakdown = score(
        program,
        organization,
        now=now,
        include_expired=include_expired,
        weights=weights,
    )
    return MatchResult(
        program_id=program.id,
        program_title=program.title,
        score=breakdown.total,
        breakdown=breakdown,
        application_type=gate_result.application_type,
        manual_review_recommended=gate_result.manual_review_recommended,
        evaluated_at=ensure_utc(now),
    )


def _rank_key(result: MatchResult, program: Program):
    deadline = program.deadline
    return (
        -result.score,
        deadline is None,
        deadline.timestamp() if deadline is not None else 0.0,
        result.program_id,
    )


def generate_matches(
    organization: Organization,
    programs: List[Program],
    *,
    now: datetime,
    options: Optional[MatchOptions] = None,
) -> List[MatchResult]:
    """Rank programs for one organization.

    Args:
        organization: Organization profile
        programs: Candidate programs
        now: Reference time (deadline urgency, business age, expiry)
        options: MatchOptions (defaults from settings)

    Returns:
        Top-K explained matches, best first
    """
    options = options or MatchOptions()
    limit = options.limit if options.limit is not None else settings.match_limit
    minimum = options.minimum_score if options.minimum_score is not None else settings.match_minimum_score

    gate_options = GateOptions(now=now, include_expired=options.include_expired)

    passed: List[Tuple[Program, GateResult]] = []
    for program in programs:
        gate_result = evaluate_eligibility_gate(program, organization, gate_options)
        if gate_result.passed:
            passed.append((program, gate_result))
    blocked = len(programs) - len(passed)

    if options.deduplicate and passed:
        kept_ids = {program.id for program in collapse_duplicates([program for program, _ in passed])}
        passed = [(program, gate_result) for program, gate_result in passed if program.id in kept_ids]

    scored: List[MatchResult] = []
    by_id = {}
    below_minimum = 0

    for program, gate_result in passed:
        result = match_program(
            program,
            organization,
            gate_result,
            now=now,
            include_expired=options.include_expired,
            weights=options.weights,
        )
        if result.score < minimum:
            below_minimum += 1
            continue

        scored.append(result)
        by_id[program.id] = program

    scored.sort(key=lambda result: _rank_key(result, by_id[result.program_id]))
    top = scored[:limit]

    explained = [
        result.model_copy(
            update={
                "explanation": explain(
                    result,
                    organization,
                    by_id[result.program_id],
                    renderer=options.renderer,
                )
            }
        )
        for result in top
    ]

    logger.info(
        "Matching %s: %d programs, %d blocked, %d scored, %d below %s, %d returned",
        organization.id,
        len(programs),
        blocked,
        len(passed),
        below_minimum,
        minimum,
        len(explained),
    )
    return explained
