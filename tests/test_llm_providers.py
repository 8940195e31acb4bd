"""Provider adapters as the insight narrator drives them."""

from unittest.mock import MagicMock, patch

import pytest

from llm import LLMAuthError, LLMError, LLMRateLimitError, LLMTimeoutError
from llm.providers.claude import ClaudeProvider
from llm.providers.gemini import GeminiProvider
from llm.providers.openai import OpenAIProvider
from observability import Metrics
from shared_types import InsightSource
from skills_gap import InsightNarrator
from skills_gap.fallback import fallback_envelope
from skills_gap.models import CoverageDataset, DemandDataset, TrendDataset

SYSTEM = "You are a workforce planning analyst."
PROMPT = "Coverage: Python 67%. Demand: Kubernetes on 2 of 3 projects."
MESSAGES = [{"role": "user", "content": PROMPT}]
RESPONSE = (
    "## Insights\n"
    "1. Cloud skills lag project demand.\n"
    "## Recommendations\n"
    "1. Train two engineers on Kubernetes.\n"
)


def _claude(text=RESPONSE):
    client = MagicMock()
    client.messages.create.return_value = MagicMock(content=[MagicMock(text=text)])
    return ClaudeProvider(client=client), client.messages.create


def _openai(text=RESPONSE):
    client = MagicMock()
    client.chat.completions.create.return_value = MagicMock(
        choices=[MagicMock(message=MagicMock(content=text))]
    )
    return OpenAIProvider(client=client), client.chat.completions.create


def _gemini(text=RESPONSE):
    client = MagicMock()
    client.models.generate_content.return_value = MagicMock(text=text)
    return GeminiProvider(client=client), client.models.generate_content


BUILDERS = {"claude": _claude, "openai": _openai, "gemini": _gemini}


def _narrate(provider, metrics=None):
    narrator = InsightNarrator(provider=provider, max_tokens=600, metrics=metrics)
    return narrator.narrate(
        CoverageDataset(), DemandDataset(), TrendDataset(), fallback_envelope().gap_analysis
    )


class TestNarrationRequest:
    @pytest.mark.parametrize("name", sorted(BUILDERS))
    def test_returns_text(self, name):
        provider, create = BUILDERS[name]()

        assert provider.generate(MESSAGES, system=SYSTEM, max_tokens=600) == RESPONSE
        create.assert_called_once()

    def test_claude_request(self):
        provider, create = _claude()
        provider.generate(MESSAGES, system=SYSTEM, max_tokens=600)

        assert create.call_args.kwargs == {
            "model": "claude-haiku-4-5",
            "max_tokens": 600,
            "messages": MESSAGES,
            "system": SYSTEM,
        }

    def test_openai_prepends_system(self):
        provider, create = _openai()
        provider.generate(MESSAGES, system=SYSTEM, max_tokens=600)

        kwargs = create.call_args.kwargs
        assert kwargs["messages"] == [{"role": "system", "content": SYSTEM}, *MESSAGES]
        assert kwargs["max_tokens"] == 600

    def test_gemini_folds_system_into_prompt(self):
        provider, create = _gemini()
        provider.generate(MESSAGES, system=SYSTEM, max_tokens=600)

        kwargs = create.call_args.kwargs
        assert kwargs["contents"] == f"System: {SYSTEM}\n\n{PROMPT}"
        assert kwargs["config"].max_output_tokens == 600


class TestSdkTimeout:
    def test_claude(self):
        with patch("anthropic.Anthropic") as sdk:
            ClaudeProvider(api_key="sk-ant-test", timeout=20.0)
        sdk.assert_called_once_with(api_key="sk-ant-test", timeout=20.0)

    def test_claude_without_timeout(self):
        with patch("anthropic.Anthropic") as sdk:
            ClaudeProvider(api_key="sk-ant-test")
        sdk.assert_called_once_with(api_key="sk-ant-test")

    def test_openai(self):
        with patch("openai.OpenAI") as sdk:
            OpenAIProvider(api_key="sk-test", timeout=7.5)
        sdk.assert_called_once_with(api_key="sk-test", timeout=7.5)

    def test_gemini_takes_milliseconds(self):
        with patch("google.genai.Client") as sdk:
            GeminiProvider(api_key="AIza-test", timeout=2.5)
        assert sdk.call_args.kwargs["http_options"].timeout == 2500

    def test_gemini_without_timeout(self):
        with patch("google.genai.Client") as sdk:
            GeminiProvider(api_key="AIza-test")
        assert sdk.call_args.kwargs["http_options"] is None


class TestErrorMapping:
    def test_claude_timeout(self):
        from anthropic import APITimeoutError

        provider, create = _claude()
        create.side_effect = APITimeoutError(request=MagicMock())

        with pytest.raises(LLMTimeoutError):
            provider.generate(MESSAGES)

    def test_claude_rate_limit(self):
        from anthropic import RateLimitError

        provider, create = _claude()
        create.side_effect = RateLimitError(
            message="slow down", response=MagicMock(status_code=429), body={}
        )

        with pytest.raises(LLMRateLimitError):
            provider.generate(MESSAGES)

    def test_openai_timeout(self):
        from openai import APITimeoutError

        provider, create = _openai()
        create.side_effect = APITimeoutError(request=MagicMock())

        with pytest.raises(LLMTimeoutError):
            provider.generate(MESSAGES)

    def test_openai_auth(self):
        from openai import AuthenticationError

        provider, create = _openai()
        create.side_effect = AuthenticationError(
            message="bad key", response=MagicMock(status_code=401), body={}
        )

        with pytest.raises(LLMAuthError):
            provider.generate(MESSAGES)

    @pytest.mark.parametrize(
        "message, expected",
        [
            ("Deadline Exceeded", LLMTimeoutError),
            ("429 RESOURCE_EXHAUSTED", LLMRateLimitError),
            ("API key not valid", LLMAuthError),
            ("internal error", LLMError),
        ],
    )
    def test_gemini(self, message, expected):
        provider, create = _gemini()
        create.side_effect = Exception(message)

        with pytest.raises(expected):
            provider.generate(MESSAGES)


class TestNarratorIntegration:
    @pytest.mark.parametrize("name", sorted(BUILDERS))
    def test_provider_narration(self, name):
        provider, create = BUILDERS[name]()

        narration = _narrate(provider)

        assert narration.source == InsightSource.PROVIDER
        assert narration.insights == ["Cloud skills lag project demand."]
        assert [r.description for r in narration.recommendations] == [
            "Train two engineers on Kubernetes."
        ]
        create.assert_called_once()

    def test_sdk_timeout_degrades_to_rules(self):
        from anthropic import APITimeoutError

        provider, create = _claude()
        create.side_effect = APITimeoutError(request=MagicMock())
        metrics = Metrics()

        narration = _narrate(provider, metrics)

        assert narration.source == InsightSource.RULES
        assert narration.recommendations
        assert metrics.get("narrator.provider_failure") == 1
