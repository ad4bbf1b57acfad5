"""LiteLLM-backed provider - one interface for OpenAI, Anthropic and friends."""

import logging
import os
from typing import Any

import litellm

from autoflow.llm.provider import (
    LLMAuthenticationError,
    LLMError,
    LLMProvider,
    LLMQuotaError,
    LLMRateLimitError,
    LLMResponse,
)

logger = logging.getLogger(__name__)

EMPTY_COMPLETION_FALLBACK = "I apologize, but I couldn't generate a response at this time."
DEFAULT_MAX_TOKENS = 1000


def classify_error(error: Exception) -> LLMError:
    """Map a provider exception onto the LLMError family with a user-facing message."""
    text = str(error).lower()

    # OpenAI reports exhausted quota as a 429, so check the text first
    if "quota" in text:
        return LLMQuotaError("API quota exceeded. Please check your provider account.")
    if isinstance(error, litellm.AuthenticationError) or "401" in text:
        return LLMAuthenticationError(
            "Invalid API key. Please check your API key configuration."
        )
    if isinstance(error, litellm.RateLimitError) or "429" in text:
        return LLMRateLimitError("Rate limit exceeded. Please try again in a moment.")
    return LLMError("Failed to generate AI response. Please try again.")


class LiteLLMProvider(LLMProvider):
    """
    LLM provider that routes requests through LiteLLM.

    Example:
        llm = LiteLLMProvider(api_key=os.environ["OPENAI_API_KEY"])
        text = await llm.generate_response(
            [{"role": "user", "content": "Hello"}], model="gpt-4o", temperature=0.3
        )
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout: float = 60.0,
    ):
        """
        Args:
            api_key: Provider API key. Falls back to OPENAI_API_KEY; LiteLLM also
                     reads provider-specific variables on its own.
            api_base: Optional custom endpoint (proxies, self-hosted gateways)
            max_tokens: Default completion length cap
            timeout: Request timeout in seconds
        """
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")
        self.api_base = api_base
        self.max_tokens = max_tokens
        self.timeout = timeout

    async def complete(
        self,
        messages: list[dict[str, Any]],
        model: str,
        temperature: float,
        system: str = "",
        max_tokens: int | None = None,
    ) -> LLMResponse:
        request_messages = list(messages)
        if system:
            request_messages.insert(0, {"role": "system", "content": system})

        kwargs: dict[str, Any] = {
            "model": model,
            "messages": request_messages,
            "temperature": temperature,
            "max_tokens": max_tokens or self.max_tokens,
            "timeout": self.timeout,
        }
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.api_base:
            kwargs["api_base"] = self.api_base

        try:
            response = await litellm.acompletion(**kwargs)
        except Exception as e:
            logger.error(f"LLM request failed: {e}", extra={"model": model})
            raise classify_error(e) from e

        choice = response.choices[0] if response.choices else None
        content = choice.message.content if choice and choice.message else None
        usage = getattr(response, "usage", None)

        return LLMResponse(
            content=content or EMPTY_COMPLETION_FALLBACK,
            model=getattr(response, "model", None) or model,
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            stop_reason=(choice.finish_reason or "") if choice else "",
            raw_response=response,
        )
