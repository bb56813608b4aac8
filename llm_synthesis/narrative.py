"""Remote narrative step with an explicit success/failure result.

``generate_narrative`` never raises for remote problems: every expected
failure becomes a ``RemoteError`` value so the orchestrator can branch on
it as a plain state transition.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Optional

from llm_synthesis.adapter import (
    BaseLLMAdapter,
    LLMAdapterError,
    LLMAuthenticationError,
    LLMTimeoutError,
)
from llm_synthesis.retry import NarrativeRetryExhaustedError, generate_with_retry

logger = logging.getLogger(__name__)

RemoteErrorKind = Literal["timeout", "auth", "transport", "malformed"]


@dataclass(frozen=True)
class RemoteError:
    kind: RemoteErrorKind
    message: str


@dataclass(frozen=True)
class NarrativeResult:
    """Either ``text`` or ``error`` is set, never both."""

    text: Optional[str] = None
    error: Optional[RemoteError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.text is not None

    @classmethod
    def success(cls, text: str) -> "NarrativeResult":
        return cls(text=text)

    @classmethod
    def failure(cls, kind: RemoteErrorKind, message: str) -> "NarrativeResult":
        return cls(error=RemoteError(kind=kind, message=message))


def _error_kind(exc: LLMAdapterError) -> RemoteErrorKind:
    if isinstance(exc, LLMTimeoutError):
        return "timeout"
    if isinstance(exc, LLMAuthenticationError):
        return "auth"
    return "transport"


def generate_narrative(
    adapter: BaseLLMAdapter,
    prompt: str,
    system: str,
    max_retries: int = 1,
) -> NarrativeResult:
    """Ask the remote model for a narrative.

    Args:
        adapter: Configured LLM adapter.
        prompt: Profile-specific prompt.
        system: System context.
        max_retries: Extra attempts on malformed output.

    Returns:
        ``NarrativeResult.success(text)`` or a failure carrying a RemoteError.
    """
    try:
        text = generate_with_retry(adapter, prompt, system, max_retries=max_retries)
    except LLMAdapterError as exc:
        kind = _error_kind(exc)
        logger.warning("Remote narrative call failed (%s): %s", kind, exc)
        return NarrativeResult.failure(kind, str(exc))
    except NarrativeRetryExhaustedError as exc:
        logger.warning("Remote narrative unusable after %d attempt(s)", exc.attempts)
        return NarrativeResult.failure("malformed", str(exc))
    except Exception as exc:
        # unmapped client failures and malformed response objects
        logger.warning("Remote narrative call broke unexpectedly: %r", exc)
        return NarrativeResult.failure("malformed", str(exc) or type(exc).__name__)

    return NarrativeResult.success(text)
