"""Tests for completion providers.

Shared behaviour (retry policy, usage logging) lives in BaseProvider and is
tested once via a lightweight stub. Provider-specific tests cover only what
differs between implementations: how the request segments are sent and how
usage is read back.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from dialectic_core.consensus import PromptSegment, ReviewRequest
from dialectic_core.errors import CompletionError
from dialectic_core.providers.anthropic import AnthropicProvider
from dialectic_core.providers.base import BaseProvider, Completion, TokenUsage, is_retryable
from dialectic_core.providers.openai import OpenAIProvider

REQUEST = ReviewRequest(
    segments=(
        PromptSegment("protocol", cacheable=True),
        PromptSegment("patterns", cacheable=True),
        PromptSegment("guidance", cacheable=True),
        PromptSegment("task", cacheable=False),
    ),
    max_tokens=16000,
)

OK = Completion(text='{"issues": []}', usage=TokenUsage(input_tokens=10, output_tokens=5))


class _ApiError(Exception):
    def __init__(self, status_code=None):
        super().__init__(f"status {status_code}")
        self.status_code = status_code


class _ScriptedProvider(BaseProvider):
    """Raises the queued errors in order, then returns OK."""

    name = "stub"

    def __init__(self, errors=()):
        super().__init__()
        self.errors = list(errors)
        self.calls = 0

    def _call_api(self, request):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return OK


# ---------------------------------------------------------------------------
# Shared behaviour, tested once through the stub
# ---------------------------------------------------------------------------


class TestRetryPolicy:
    @pytest.mark.parametrize("code", [None, 429, 500, 502, 503, 504])
    def test_retryable_codes(self, code):
        assert is_retryable(_ApiError(code)) is True

    @pytest.mark.parametrize("code", [400, 401, 403, 404])
    def test_client_errors_are_not_retryable(self, code):
        assert is_retryable(_ApiError(code)) is False

    def test_retries_on_transient_failure(self):
        provider = _ScriptedProvider([_ApiError(503)])
        with patch("dialectic_core.providers.base.time.sleep") as sleep:
            assert provider.complete(REQUEST) is OK
        assert provider.calls == 2
        sleep.assert_called_once_with(1)

    def test_backoff_is_exponential(self):
        provider = _ScriptedProvider([_ApiError(429), _ApiError(None)])
        with patch("dialectic_core.providers.base.time.sleep") as sleep:
            provider.complete(REQUEST)
        assert [c.args[0] for c in sleep.call_args_list] == [1, 2]

    def test_raises_after_max_retries(self):
        provider = _ScriptedProvider([_ApiError(500)] * 3)
        with patch("dialectic_core.providers.base.time.sleep"):
            with pytest.raises(CompletionError) as exc:
                provider.complete(REQUEST)
        assert provider.calls == 3
        assert exc.value.status_code == 500
        assert exc.value.provider == "stub"
        assert isinstance(exc.value.__cause__, _ApiError)

    def test_auth_error_fails_immediately(self):
        provider = _ScriptedProvider([_ApiError(401)])
        with patch("dialectic_core.providers.base.time.sleep") as sleep:
            with pytest.raises(CompletionError, match="stub API error"):
                provider.complete(REQUEST)
        assert provider.calls == 1
        sleep.assert_not_called()

    def test_model_defaults_to_class_model(self):
        assert AnthropicProvider.MODEL.startswith("claude")
        assert OpenAIProvider.MODEL.startswith("gpt")


class TestTokenUsage:
    def test_total_tokens(self):
        assert TokenUsage(input_tokens=100, output_tokens=20, cache_read_tokens=50).total_tokens == 120


# ---------------------------------------------------------------------------
# Provider-specific: only what differs between Anthropic and OpenAI
# ---------------------------------------------------------------------------


class TestAnthropicProvider:
    def test_raises_import_error_without_sdk(self):
        with patch.dict("sys.modules", {"anthropic": None}):
            with pytest.raises(ImportError, match="dialectic\\[anthropic\\]"):
                AnthropicProvider(api_key="key")

    def test_system_blocks_mark_cacheable_segments(self):
        blocks = AnthropicProvider._system_blocks(REQUEST)
        assert [b["text"] for b in blocks] == ["protocol", "patterns", "guidance"]
        assert all(b["cache_control"] == {"type": "ephemeral"} for b in blocks)

    def test_call_api_sends_task_and_reads_usage(self, mocker):
        from anthropic.types import TextBlock

        client = MagicMock()
        client.messages.create.return_value = SimpleNamespace(
            content=[TextBlock(type="text", text='{"issues": []}')],
            usage=SimpleNamespace(
                input_tokens=1_000_000,
                output_tokens=0,
                cache_read_input_tokens=1_000_000,
                cache_creation_input_tokens=None,
            ),
        )
        mocker.patch("anthropic.Anthropic", return_value=client)

        provider = AnthropicProvider(api_key="key")
        completion = provider._call_api(REQUEST)

        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["messages"] == [{"role": "user", "content": "task"}]
        assert kwargs["max_tokens"] == 16000
        assert kwargs["model"] == "claude-sonnet-4-20250514"
        assert completion.text == '{"issues": []}'
        assert completion.usage.cache_read_tokens == 1_000_000
        assert completion.usage.cache_creation_tokens == 0
        assert completion.usage.cost_usd == pytest.approx(3.30)

    def test_custom_model(self, mocker):
        mocker.patch("anthropic.Anthropic")
        assert AnthropicProvider(api_key="key", model="claude-opus-4-20250514").model == "claude-opus-4-20250514"


class TestOpenAIProvider:
    def test_raises_import_error_without_sdk(self):
        import dialectic_core.providers.openai as openai_mod

        real_openai = openai_mod._OpenAI
        openai_mod._OpenAI = None
        try:
            with pytest.raises(ImportError):
                OpenAIProvider(api_key="key")
        finally:
            openai_mod._OpenAI = real_openai

    def test_call_api_joins_system_segments(self, mocker):
        client = MagicMock()
        client.chat.completions.create.return_value = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=' {"issues": []} '))],
            usage=SimpleNamespace(
                prompt_tokens=1000,
                completion_tokens=200,
                prompt_tokens_details=SimpleNamespace(cached_tokens=600),
            ),
        )
        mocker.patch("dialectic_core.providers.openai._OpenAI", return_value=client)

        completion = OpenAIProvider(api_key="key")._call_api(REQUEST)

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["messages"][0] == {"role": "system", "content": "protocol\n\npatterns\n\nguidance"}
        assert kwargs["messages"][1] == {"role": "user", "content": "task"}
        assert kwargs["response_format"] == {"type": "json_object"}
        assert completion.text == '{"issues": []}'
        assert completion.usage.input_tokens == 400
        assert completion.usage.cache_read_tokens == 600
