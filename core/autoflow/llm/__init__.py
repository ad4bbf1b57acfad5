"""LLM provider abstraction."""

from autoflow.llm.litellm import LiteLLMProvider
from autoflow.llm.mock import MockLLMProvider
from autoflow.llm.provider import (
    LLMAuthenticationError,
    LLMError,
    LLMProvider,
    LLMQuotaError,
    LLMRateLimitError,
    LLMResponse,
)

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "LLMError",
    "LLMAuthenticationError",
    "LLMRateLimitError",
    "LLMQuotaError",
    "LiteLLMProvider",
    "MockLLMProvider",
]
