"""Deterministic LLM provider for tests and offline dry runs."""

from dataclasses import dataclass, field
from typing import Any

from autoflow.llm.provider import LLMProvider, LLMResponse


@dataclass
class RecordedCall:
    """One request received by MockLLMProvider."""

    messages: list[dict[str, Any]]
    model: str
    temperature: float
    system: str = ""


@dataclass
class MockLLMProvider(LLMProvider):
    """
    Plays back scripted responses and records every request.

    Scripted ``responses`` are consumed in order; once exhausted,
    ``default_response`` is returned. When ``error`` is set every call
    raises it instead.
    """

    responses: list[str] = field(default_factory=list)
    default_response: str = "Mock response"
    error: Exception | None = None
    calls: list[RecordedCall] = field(default_factory=list)

    async def complete(
        self,
        messages: list[dict[str, Any]],
        model: str,
        temperature: float,
        system: str = "",
        max_tokens: int | None = None,
    ) -> LLMResponse:
        self.calls.append(
            RecordedCall(
                messages=[dict(m) for m in messages],
                model=model,
                temperature=temperature,
                system=system,
            )
        )
        if self.error is not None:
            raise self.error

        content = self.responses.pop(0) if self.responses else self.default_response
        return LLMResponse(content=content, model=model, stop_reason="end_turn")

    @property
    def last_call(self) -> RecordedCall | None:
        return self.calls[-1] if self.calls else None
