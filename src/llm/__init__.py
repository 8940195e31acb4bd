"""Multi-provider LLM abstraction layer."""

from .base import (
    LLMAuthError,
    LLMError,
    LLMProvider,
    LLMRateLimitError,
    LLMTimeoutError,
)
from .factory import create_llm_provider, create_llm_provider_or_none

__all__ = [
    "LLMProvider",
    "create_llm_provider",
    "create_llm_provider_or_none",
    "LLMError",
    "LLMRateLimitError",
    "LLMAuthError",
    "LLMTimeoutError",
]
