"""LLM adapters for narrative generation.

Provides a base interface and concrete adapters for OpenAI-compatible
APIs and a deterministic mock for testing. Transport problems surface as
``LLMAdapterError`` subclasses so callers never depend on SDK exceptions.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

import openai
from openai import OpenAI

from app.config import LLMSettings

logger = logging.getLogger(__name__)


class LLMAdapterError(Exception):
    """Base class for failures talking to the remote model."""


class LLMTimeoutError(LLMAdapterError):
    """The remote call did not answer within the configured timeout."""


class LLMAuthenticationError(LLMAdapterError):
    """The remote endpoint rejected the configured credential."""


class LLMTransportError(LLMAdapterError):
    """Any other network, rate-limit or server-side failure."""


class BaseLLMAdapter(ABC):
    """Abstract base for all LLM adapters."""

    @abstractmethod
    def generate(self, prompt: str, system: str) -> str:
        """Send a prompt to the LLM and return the raw response text.

        Args:
            prompt: The fully formatted user prompt.
            system: System context framing the model's role.

        Returns:
            Raw narrative text from the model.

        Raises:
            LLMAdapterError: On timeout, authentication or transport failure.
        """


class OpenAILLMAdapter(BaseLLMAdapter):
    """Adapter for OpenAI-compatible chat completion APIs.

    The client is built with a bounded timeout and SDK retries disabled;
    retry policy belongs to ``llm_synthesis.retry``.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        max_tokens: int = 200,
        base_url: Optional[str] = None,
        timeout_seconds: float = 20.0,
    ) -> None:
        """Initialise the OpenAI adapter.

        Args:
            api_key: API key for the endpoint.
            model: Model identifier.
            max_tokens: Maximum tokens in the completion.
            base_url: Optional base URL for OpenAI-compatible endpoints.
            timeout_seconds: Upper bound for a single request.
        """
        client_kwargs: dict = {
            "api_key": api_key,
            "timeout": timeout_seconds,
            "max_retries": 0,
        }
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = OpenAI(**client_kwargs)
        self._model = model
        self._max_tokens = max_tokens

    def generate(self, prompt: str, system: str) -> str:
        """Call the OpenAI chat completion API.

        Args:
            prompt: The fully formatted user prompt.
            system: System context framing the model's role.

        Returns:
            Raw string content from the model response.
        """
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=self._max_tokens,
                stream=False,
            )
        except openai.APITimeoutError as exc:
            raise LLMTimeoutError(str(exc)) from exc
        except openai.AuthenticationError as exc:
            raise LLMAuthenticationError(str(exc)) from exc
        except openai.OpenAIError as exc:
            raise LLMTransportError(str(exc)) from exc

        choices = getattr(response, "choices", None)
        if not choices:
            return ""
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        return content if isinstance(content, str) else ""


# ---------------------------------------------------------------------------
# Fixed mock response used for local testing.
# ---------------------------------------------------------------------------
_MOCK_NARRATIVE = (
    "STATUS: mock narrative for testing purposes. "
    "RISK: none, this is a test fixture. "
    "ACTION: verify integration with the analysis pipeline."
)


class MockLLMAdapter(BaseLLMAdapter):
    """Deterministic adapter that returns a fixed narrative.

    Used for local testing and CI pipelines where no LLM API
    is available.
    """

    def generate(self, prompt: str, system: str) -> str:
        """Return a fixed narrative regardless of input.

        Args:
            prompt: Ignored - present only to satisfy the interface.
            system: Ignored - present only to satisfy the interface.

        Returns:
            A non-empty narrative string.
        """
        return _MOCK_NARRATIVE


def build_adapter(settings: LLMSettings) -> Optional[BaseLLMAdapter]:
    """Instantiate the adapter selected by ``settings.adapter``.

    LLM_ADAPTER=mock   -> MockLLMAdapter  (testing, no API key required)
    LLM_ADAPTER=openai -> OpenAILLMAdapter (default, needs a key)
    LLM_ADAPTER=none   -> no remote tier

    Returns ``None`` when the remote tier is unavailable so the analysis
    pipeline goes straight to the local heuristic path.
    """
    if settings.adapter == "mock":
        return MockLLMAdapter()
    if settings.adapter == "none":
        return None
    if not settings.api_key:
        logger.warning("No LLM API key configured; narratives will be generated locally")
        return None

    return OpenAILLMAdapter(
        api_key=settings.api_key,
        model=settings.model,
        max_tokens=settings.max_tokens,
        base_url=settings.base_url,
        timeout_seconds=settings.timeout_seconds,
    )
