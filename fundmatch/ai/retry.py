"""Retry policy for the optional LLM phrasing calls.

The matching engine itself performs no I/O and never retries; only the
LLM renderer talks to the network.
"""

import logging

from openai import APIConnectionError, APITimeoutError, InternalServerError, RateLimitError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from fundmatch.core.logging import get_logger
from fundmatch.settings import settings

logger = get_logger("ai.retry")

# Transient OpenAI failures worth another attempt
RETRYABLE_ERRORS = (
    RateLimitError,
    APITimeoutError,
    APIConnectionError,
    InternalServerError,
)


def build_llm_retry(attempts: int):
    """Retry decorator: exponential backoff 2s..60s, re-raises the last error."""
    return retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=1, min=2, max=60),
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


llm_retry = build_llm_retry(settings.ai_max_attempts)
