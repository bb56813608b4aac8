"""
tests/test_narrative.py

Pytest unit tests for the remote narrative layer: validation, retry,
error mapping and adapter selection. No network access: the OpenAI client
is replaced with a stub.
"""

from __future__ import annotations

from types import SimpleNamespace

import httpx
import openai
import pytest

from analytics.profiles import ROLLOUT_PROFILE, TESTING_PROFILE
from analytics.status import derive_metrics
from app.config import LLMSettings
from llm_synthesis.adapter import (
    BaseLLMAdapter,
    LLMAuthenticationError,
    LLMTimeoutError,
    LLMTransportError,
    MockLLMAdapter,
    OpenAILLMAdapter,
    build_adapter,
)
from llm_synthesis.narrative import NarrativeResult, generate_narrative
from llm_synthesis.prompt_builder import NarrativePromptBuilder
from llm_synthesis.retry import NarrativeRetryExhaustedError, generate_with_retry
from llm_synthesis.validator import (
    MAX_NARRATIVE_CHARS,
    NarrativeValidationError,
    validate_narrative,
)

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


class ScriptedAdapter(BaseLLMAdapter):
    """Returns (or raises) the scripted values in order."""

    def __init__(self, *responses) -> None:
        self._responses = list(responses)
        self.calls = 0

    def generate(self, prompt: str, system: str) -> str:
        self.calls += 1
        value = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(value, Exception):
            raise value
        return value


class _StubCompletions:
    def __init__(self, outcome) -> None:
        self._outcome = outcome
        self.kwargs: dict = {}

    def create(self, **kwargs):
        self.kwargs = kwargs
        if isinstance(self._outcome, Exception):
            raise self._outcome
        return self._outcome


def _openai_adapter(outcome) -> tuple[OpenAILLMAdapter, _StubCompletions]:
    adapter = OpenAILLMAdapter(api_key="sk-test", model="gpt-4o-mini", max_tokens=120)
    completions = _StubCompletions(outcome)
    adapter._client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return adapter, completions


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


# ---------------------------------------------------------------------------
# validate_narrative
# ---------------------------------------------------------------------------


class TestValidateNarrative:
    def test_strips_whitespace(self) -> None:
        assert validate_narrative("  All good.  \n") == "All good."

    def test_strips_markdown_fences(self) -> None:
        assert validate_narrative("```text\nAll good.\n```") == "All good."

    @pytest.mark.parametrize("raw", ["", "   ", "```\n```"])
    def test_rejects_empty(self, raw: str) -> None:
        with pytest.raises(NarrativeValidationError) as exc_info:
            validate_narrative(raw)
        assert exc_info.value.stage == "empty"

    def test_rejects_non_string(self) -> None:
        with pytest.raises(NarrativeValidationError) as exc_info:
            validate_narrative(None)
        assert exc_info.value.stage == "type"

    def test_truncates_at_sentence_boundary(self) -> None:
        sentence = "The rollout is on track. "
        text = sentence * 100
        result = validate_narrative(text)
        assert len(result) <= MAX_NARRATIVE_CHARS
        assert result.endswith("on track.")


# ---------------------------------------------------------------------------
# generate_with_retry
# ---------------------------------------------------------------------------


class TestGenerateWithRetry:
    def test_first_attempt(self) -> None:
        adapter = ScriptedAdapter("Narrative.")
        assert generate_with_retry(adapter, "p", "s", max_retries=1) == "Narrative."
        assert adapter.calls == 1

    def test_retries_on_empty_output(self) -> None:
        adapter = ScriptedAdapter("", "Second try.")
        assert generate_with_retry(adapter, "p", "s", max_retries=1) == "Second try."
        assert adapter.calls == 2

    def test_exhausted(self) -> None:
        adapter = ScriptedAdapter("")
        with pytest.raises(NarrativeRetryExhaustedError) as exc_info:
            generate_with_retry(adapter, "p", "s", max_retries=2)
        assert exc_info.value.attempts == 3
        assert exc_info.value.stages == ["empty", "empty", "empty"]
        assert adapter.calls == 3

    def test_adapter_errors_are_not_retried(self) -> None:
        adapter = ScriptedAdapter(LLMTimeoutError("slow"))
        with pytest.raises(LLMTimeoutError):
            generate_with_retry(adapter, "p", "s", max_retries=3)
        assert adapter.calls == 1


# ---------------------------------------------------------------------------
# generate_narrative
# ---------------------------------------------------------------------------


class TestGenerateNarrative:
    def test_success(self) -> None:
        result = generate_narrative(ScriptedAdapter("Fine."), "p", "s")
        assert result.ok
        assert result.text == "Fine."
        assert result.error is None

    @pytest.mark.parametrize(
        "exc, kind",
        [
            (LLMTimeoutError("slow"), "timeout"),
            (LLMAuthenticationError("bad key"), "auth"),
            (LLMTransportError("503"), "transport"),
        ],
    )
    def test_adapter_failures(self, exc: Exception, kind: str) -> None:
        result = generate_narrative(ScriptedAdapter(exc), "p", "s")
        assert not result.ok
        assert result.error.kind == kind

    def test_malformed(self) -> None:
        result = generate_narrative(ScriptedAdapter("   "), "p", "s", max_retries=1)
        assert not result.ok
        assert result.error.kind == "malformed"

    @pytest.mark.parametrize(
        "exc",
        [
            AttributeError("'NoneType' object has no attribute 'content'"),
            RuntimeError(),
        ],
    )
    def test_unexpected_failure_is_malformed(self, exc: Exception) -> None:
        result = generate_narrative(ScriptedAdapter(exc), "p", "s")
        assert not result.ok
        assert result.error.kind == "malformed"
        assert result.error.message

    def test_result_constructors(self) -> None:
        assert NarrativeResult.success("x").ok
        failure = NarrativeResult.failure("timeout", "late")
        assert not failure.ok
        assert failure.text is None


# ---------------------------------------------------------------------------
# OpenAILLMAdapter
# ---------------------------------------------------------------------------


class TestOpenAIAdapter:
    def test_returns_message_content(self) -> None:
        adapter, completions = _openai_adapter(_completion("Narrative text."))
        assert adapter.generate("prompt", "system") == "Narrative text."
        assert completions.kwargs["model"] == "gpt-4o-mini"
        assert completions.kwargs["max_tokens"] == 120
        assert completions.kwargs["messages"][0] == {"role": "system", "content": "system"}

    def test_empty_choices(self) -> None:
        adapter, _ = _openai_adapter(SimpleNamespace(choices=[]))
        assert adapter.generate("prompt", "system") == ""

    def test_null_content(self) -> None:
        adapter, _ = _openai_adapter(_completion(None))
        assert adapter.generate("prompt", "system") == ""

    def test_missing_message(self) -> None:
        adapter, _ = _openai_adapter(SimpleNamespace(choices=[SimpleNamespace(message=None)]))
        assert adapter.generate("prompt", "system") == ""

    def test_non_string_content(self) -> None:
        adapter, _ = _openai_adapter(_completion(["not", "text"]))
        assert adapter.generate("prompt", "system") == ""

    def test_timeout(self) -> None:
        adapter, _ = _openai_adapter(openai.APITimeoutError(request=_REQUEST))
        with pytest.raises(LLMTimeoutError):
            adapter.generate("prompt", "system")

    def test_authentication(self) -> None:
        error = openai.AuthenticationError(
            "invalid key", response=httpx.Response(401, request=_REQUEST), body=None
        )
        adapter, _ = _openai_adapter(error)
        with pytest.raises(LLMAuthenticationError):
            adapter.generate("prompt", "system")

    def test_connection_error_is_transport(self) -> None:
        adapter, _ = _openai_adapter(openai.APIConnectionError(request=_REQUEST))
        with pytest.raises(LLMTransportError):
            adapter.generate("prompt", "system")


# ---------------------------------------------------------------------------
# build_adapter
# ---------------------------------------------------------------------------


class TestBuildAdapter:
    def test_mock(self) -> None:
        adapter = build_adapter(LLMSettings(adapter="mock"))
        assert isinstance(adapter, MockLLMAdapter)
        assert adapter.generate("p", "s")

    def test_none(self) -> None:
        assert build_adapter(LLMSettings(adapter="none", api_key="sk-test")) is None

    def test_openai_without_key(self) -> None:
        assert build_adapter(LLMSettings(adapter="openai", api_key=None)) is None

    def test_openai_with_key(self) -> None:
        adapter = build_adapter(LLMSettings(adapter="openai", api_key="sk-test"))
        assert isinstance(adapter, OpenAILLMAdapter)


# ---------------------------------------------------------------------------
# NarrativePromptBuilder
# ---------------------------------------------------------------------------


class TestPromptBuilder:
    def test_rollout_prompt_carries_local_numbers(self) -> None:
        metrics = derive_metrics({"Concluído": 85, "Pendente": 15}, 100)
        prompt, system = NarrativePromptBuilder().build(metrics, ROLLOUT_PROFILE)
        assert "100 stores in the rollout" in prompt
        assert "85 migrated (85.0%)" in prompt
        assert "Answer in Brazilian Portuguese" in prompt
        assert system.startswith("Executive consultant specialised in retail")

    def test_language_is_configurable(self) -> None:
        metrics = derive_metrics({"Erro": 6, "Concluído": 30, "Pendente": 4}, 40)
        prompt, _ = NarrativePromptBuilder(language="English").build(metrics, TESTING_PROFILE)
        assert "6 technical failures (15.0%)" in prompt
        assert "Answer in English" in prompt
