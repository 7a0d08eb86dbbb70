"""Versioned scoring weights.

Factor maxima live in one explicit configuration object so weighting
experiments can swap them per call (or via SCORING_WEIGHTS in the
environment) without touching the scorer.
"""

from typing import Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from fundmatch.core.exceptions import ConfigurationError

# Order used in breakdowns, explanations and tie-breaks
FACTOR_NAMES: Tuple[str, ...] = (
    "company_scale",
    "revenue_range",
    "employee_count",
    "business_age",
    "region",
    "certifications",
    "biz_type",
    "lifecycle",
    "industry_content",
    "deadline",
    "financial_relevance",
    "sport_type",
)

WEIGHTS_TOTAL = 100


class ScoringWeights(BaseModel):
    """Maximum points per scoring factor."""

    model_config = ConfigDict(frozen=True)

    version: str = Field(default="2026.1", description="Identifier stored next to scores")

    # Eligibility fit
    company_scale: int = Field(default=13, ge=0, le=100)
    revenue_range: int = Field(default=10, ge=0, le=100)
    employee_count: int = Field(default=7, ge=0, le=100)
    business_age: int = Field(default=7, ge=0, le=100)
    region: int = Field(default=7, ge=0, le=100)
    certifications: int = Field(default=3, ge=0, le=100)

    # Relevance
    biz_type: int = Field(default=19, ge=0, le=100)
    lifecycle: int = Field(default=1, ge=0, le=100)
    industry_content: int = Field(default=20, ge=0, le=100)
    deadline: int = Field(default=10, ge=0, le=100)
    financial_relevance: int = Field(default=1, ge=0, le=100)
    sport_type: int = Field(default=2, ge=0, le=100)

    @model_validator(mode="after")
    def _check_total(self) -> "ScoringWeights":
        total = sum(getattr(self, name) for name in FACTOR_NAMES)
        if total != WEIGHTS_TOTAL:
            raise ConfigurationError(
                f"Scoring weights {self.version} sum to {total}, expected {WEIGHTS_TOTAL}",
                setting="scoring_weights",
                details=self.as_dict(),
            )
        return self

    def as_dict(self) -> Dict[str, int]:
        """Factor maxima keyed by factor name, in breakdown order."""
        return {name: getattr(self, name) for name in FACTOR_NAMES}


DEFAULT_WEIGHTS = ScoringWeights()
