"""Text-generation backends used by AI action nodes and the chat fallback."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass
class LLMResponse:
    """One completion, with usage numbers when the backend reports them."""

    content: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    stop_reason: str = ""
    raw_response: Any = None


class LLMError(Exception):
    """Text generation failed. The message is safe to show to end users."""

    pass


class LLMAuthenticationError(LLMError):
    """The provider rejected the configured credentials."""

    pass


class LLMRateLimitError(LLMError):
    """The provider is throttling requests."""

    pass


class LLMQuotaError(LLMError):
    """The account has no remaining quota."""

    pass


class LLMProvider(ABC):
    """
    Chat-completion backend.

    Subclasses implement ``complete``; everything else in the engine talks
    to ``generate_response``. Failures must surface as ``LLMError`` (or a
    subclass) so callers can show the message as-is.
    """

    @abstractmethod
    async def complete(
        self,
        messages: list[dict[str, Any]],
        model: str,
        temperature: float,
        system: str = "",
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """
        Run one chat completion.

        Args:
            messages: ``[{"role": "user" | "assistant", "content": str}, ...]``
            model: Backend model name, e.g. "gpt-4o"
            temperature: Already on the 0-1 scale
            system: Prepended as a system turn when non-empty
            max_tokens: None means the provider's own default

        Raises:
            LLMError: on any backend failure
        """
        pass

    async def generate_response(
        self,
        messages: list[dict[str, Any]],
        model: str,
        temperature: float,
        instructions: str | None = None,
    ) -> str:
        """Reply text for a conversation; ``instructions`` become the system turn."""
        response = await self.complete(
            messages,
            model=model,
            temperature=temperature,
            system=instructions or "",
        )
        return response.content
