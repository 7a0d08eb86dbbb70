"""Classification module - industry taxonomy, TRL stages, profile completeness."""

from fundmatch.classification.industry import (
    TAXONOMY_VERSION,
    IndustryClassification,
    classify_industry,
    normalize_industry,
)
from fundmatch.classification.trl import TRLClassification, classify_trl
from fundmatch.classification.completeness import (
    ProfileCompleteness,
    calculate_profile_completeness,
)

__all__ = [
    "TAXONOMY_VERSION",
    "IndustryClassification",
    "classify_industry",
    "normalize_industry",
    "TRLClassification",
    "classify_trl",
    "ProfileCompleteness",
    "calculate_profile_completeness",
]
