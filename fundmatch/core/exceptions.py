"""Exception hierarchy.

The gate and the scorer are total over well-typed input and never raise
on data. The classes below cover configuration mistakes, caller
contract violations, and the optional LLM phrasing step.
"""


class FundMatchError(Exception):
    """Base exception for all fundmatch errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(FundMatchError):
    """Invalid weighting or threshold configuration."""

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.setting = setting


class ContractViolationError(FundMatchError):
    """A caller broke an engine precondition (programming error, not a data condition)."""

    def __init__(
        self,
        message: str,
        program_id: str | None = None,
        organization_id: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.program_id = program_id
        self.organization_id = organization_id


class InvalidTRLRangeError(ContractViolationError):
    """TRL range outside 1..9 or with min > max."""

    def __init__(self, min_trl: int, max_trl: int):
        super().__init__(
            f"Invalid TRL range: {min_trl}-{max_trl}. TRL must be between 1-9.",
            details={"min_trl": min_trl, "max_trl": max_trl},
        )
        self.min_trl = min_trl
        self.max_trl = max_trl


class AIProcessingError(FundMatchError):
    """Error during LLM-backed explanation phrasing."""

    def __init__(
        self,
        message: str,
        model: str | None = None,
        prompt_preview: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.model = model
        self.prompt_preview = prompt_preview[:200] if prompt_preview else None


class ParsingError(AIProcessingError):
    """LLM output could not be parsed into the explanation shape."""

    def __init__(
        self,
        message: str,
        raw_output: str | None = None,
        expected_schema: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details=details)
        self.raw_output = raw_output[:500] if raw_output else None
        self.expected_schema = expected_schema
