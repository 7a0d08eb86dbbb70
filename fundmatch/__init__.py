"""fundmatch - Eligibility gate, scoring and explanation engine for Korean R&D funding programs."""

__version__ = "0.1.0"
