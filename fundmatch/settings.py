"""Engine settings using Pydantic Settings."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fundmatch.matching.weights import ScoringWeights


class Settings(BaseSettings):
    """Engine configuration with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Scoring
    scoring_weights: ScoringWeights = Field(
        default_factory=ScoringWeights,
        description="Versioned factor maxima (JSON in SCORING_WEIGHTS), must sum to 100",
    )

    # Eligibility gate
    cross_industry_affinity_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Industry affinity below which a literal keyword overlap is required",
    )

    # Match run
    match_limit: int = Field(default=5, ge=1, le=100, description="Top-K matches per run")
    match_minimum_score: int = Field(
        default=40, ge=0, le=100, description="Scores below this are not returned"
    )

    # Explanations
    reason_ratio_threshold: float = Field(
        default=0.7, ge=0.0, le=1.0, description="Factor ratio at or above which a reason is shown"
    )
    caution_ratio_threshold: float = Field(
        default=0.4, ge=0.0, le=1.0, description="Non-zero factor ratio below which a caution is shown"
    )
    max_explanation_reasons: int = Field(default=5, ge=1, le=12)
    completeness_nudge_percent: int = Field(
        default=70, ge=0, le=100, description="Profile completeness below which the recommendation nudges"
    )

    # Duplicate detection
    duplicate_similarity_threshold: float = Field(
        default=0.9, ge=0.5, le=1.0, description="Normalized title similarity for duplicates"
    )

    # OpenAI (optional explanation phrasing)
    openai_api_key: str = Field(default="", description="OpenAI API key")
    ai_model: str = Field(default="gpt-4o-mini", description="LLM model for explanation phrasing")
    ai_temperature: float = Field(
        default=0.3, ge=0.0, le=2.0, description="LLM temperature"
    )
    ai_max_attempts: int = Field(
        default=3, ge=1, le=10, description="Attempts per LLM call including the first"
    )
    ai_max_tokens: int = Field(default=800, ge=100, le=4000)

    # Logging
    log_level: str = Field(
        default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_file: Optional[Path] = Field(
        default=None, description="Optional log file path"
    )
    log_format: str = Field(
        default="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        description="logging.Formatter format string",
    )


settings = Settings()
