"""Tests for LiteLLMProvider request shaping and error classification."""

from types import SimpleNamespace

import litellm
import pytest

from autoflow.llm import (
    LiteLLMProvider,
    LLMAuthenticationError,
    LLMError,
    LLMQuotaError,
    LLMRateLimitError,
)
from autoflow.llm.litellm import EMPTY_COMPLETION_FALLBACK, classify_error


def _completion(content, finish_reason="stop"):
    return SimpleNamespace(
        choices=[
            SimpleNamespace(message=SimpleNamespace(content=content), finish_reason=finish_reason)
        ],
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=4),
        model="gpt-4o-2024-08-06",
    )


@pytest.fixture
def fake_acompletion(monkeypatch):
    """Replace litellm.acompletion; returns the list of captured kwargs."""
    calls = []
    state = {"response": _completion("Hello there"), "error": None}

    async def acompletion(**kwargs):
        calls.append(kwargs)
        if state["error"] is not None:
            raise state["error"]
        return state["response"]

    monkeypatch.setattr(litellm, "acompletion", acompletion)
    return SimpleNamespace(calls=calls, state=state)


class TestComplete:
    @pytest.mark.asyncio
    async def test_request_shape(self, fake_acompletion):
        provider = LiteLLMProvider(api_key="sk-test", api_base="https://proxy.local")

        response = await provider.complete(
            [{"role": "user", "content": "Hi"}], model="gpt-4o", temperature=0.3, system="Be nice"
        )

        kwargs = fake_acompletion.calls[0]
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["messages"] == [
            {"role": "system", "content": "Be nice"},
            {"role": "user", "content": "Hi"},
        ]
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_tokens"] == 1000
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["api_base"] == "https://proxy.local"

        assert response.content == "Hello there"
        assert response.model == "gpt-4o-2024-08-06"
        assert response.input_tokens == 12
        assert response.output_tokens == 4
        assert response.stop_reason == "stop"

    @pytest.mark.asyncio
    async def test_no_system_message_without_instructions(self, fake_acompletion):
        provider = LiteLLMProvider(api_key="sk-test")

        text = await provider.generate_response(
            [{"role": "user", "content": "Hi"}], model="gpt-4o", temperature=0.5
        )

        assert text == "Hello there"
        assert fake_acompletion.calls[0]["messages"] == [{"role": "user", "content": "Hi"}]
        assert "api_base" not in fake_acompletion.calls[0]

    @pytest.mark.asyncio
    async def test_instructions_become_system_prompt(self, fake_acompletion):
        provider = LiteLLMProvider(api_key="sk-test")

        await provider.generate_response(
            [{"role": "user", "content": "Hi"}],
            model="gpt-4o",
            temperature=0.5,
            instructions="Answer in French",
        )

        assert fake_acompletion.calls[0]["messages"][0] == {
            "role": "system",
            "content": "Answer in French",
        }

    @pytest.mark.asyncio
    async def test_empty_completion_uses_fallback_text(self, fake_acompletion):
        fake_acompletion.state["response"] = _completion(None)
        provider = LiteLLMProvider(api_key="sk-test")

        response = await provider.complete([], model="gpt-4o", temperature=0.5)

        assert response.content == EMPTY_COMPLETION_FALLBACK

    @pytest.mark.asyncio
    async def test_api_key_falls_back_to_environment(self, fake_acompletion, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        provider = LiteLLMProvider()

        await provider.complete([], model="gpt-4o", temperature=0.5)

        assert fake_acompletion.calls[0]["api_key"] == "sk-env"

    @pytest.mark.asyncio
    async def test_provider_errors_are_classified(self, fake_acompletion):
        fake_acompletion.state["error"] = Exception("Error code: 429 - slow down")
        provider = LiteLLMProvider(api_key="sk-test")

        with pytest.raises(LLMRateLimitError) as exc_info:
            await provider.complete([], model="gpt-4o", temperature=0.5)

        assert isinstance(exc_info.value.__cause__, Exception)
        assert "Rate limit exceeded" in str(exc_info.value)


class TestClassifyError:
    @pytest.mark.parametrize(
        "message, expected",
        [
            ("Error code: 401 - invalid api key", LLMAuthenticationError),
            ("Error code: 429 - Too Many Requests", LLMRateLimitError),
            ("Error code: 429 - You exceeded your current quota", LLMQuotaError),
            ("connection reset by peer", LLMError),
        ],
    )
    def test_message_based_classification(self, message, expected):
        error = classify_error(Exception(message))
        assert type(error) is expected

    def test_user_facing_messages(self):
        assert "Invalid API key" in str(classify_error(Exception("401")))
        assert "quota" in str(classify_error(Exception("insufficient_quota"))).lower()
        assert str(classify_error(Exception("weird"))) == (
            "Failed to generate AI response. Please try again."
        )

    def test_all_classified_errors_are_llm_errors(self):
        for text in ("401", "429", "quota", "other"):
            assert isinstance(classify_error(Exception(text)), LLMError)
