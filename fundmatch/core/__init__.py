"""Core module - logging, exceptions, and shared constants."""

from fundmatch.core.logging import setup_logging, get_logger
from fundmatch.core.exceptions import (
    FundMatchError,
    ConfigurationError,
    ContractViolationError,
    InvalidTRLRangeError,
    AIProcessingError,
    ParsingError,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "FundMatchError",
    "ConfigurationError",
    "ContractViolationError",
    "InvalidTRLRangeError",
    "AIProcessingError",
    "ParsingError",
]
