"""AI module - optional LLM phrasing of match explanations."""

from fundmatch.ai.phrasing import LLMRenderer, TemplateRenderer, parse_rephrased
from fundmatch.ai.retry import llm_retry

__all__ = [
    "LLMRenderer",
    "TemplateRenderer",
    "parse_rephrased",
    "llm_retry",
]
