"""Validation layer for raw LLM narrative output.

Cleans the model's text and rejects responses that cannot be shown as a
dashboard summary.
"""

import re
from typing import List

MAX_NARRATIVE_CHARS = 1200


class NarrativeValidationError(Exception):
    """Raised when LLM output cannot be used as a narrative.

    Attributes:
        stage: Which validation step failed ("type" or "empty").
        errors: List of human-readable error descriptions.
        raw_response: The original value that failed validation.
    """

    def __init__(
        self,
        stage: str,
        errors: List[str],
        raw_response: object,
    ) -> None:
        self.stage = stage
        self.errors = errors
        self.raw_response = raw_response
        message = (
            f"LLM narrative validation failed at stage '{stage}': "
            + "; ".join(errors)
        )
        super().__init__(message)


def _strip_markdown_fences(text: str) -> str:
    """Remove optional markdown code fences wrapping the narrative.

    Args:
        text: Raw LLM response string.

    Returns:
        The text with leading/trailing code fences removed, if present.
    """
    stripped = text.strip()
    match = re.match(
        r"^```(?:\w+)?\s*\n?(.*?)\n?\s*```$",
        stripped,
        re.DOTALL,
    )
    if match:
        return match.group(1).strip()
    return stripped


def _truncate_at_sentence(text: str, limit: int) -> str:
    """Cut ``text`` to ``limit`` chars, preferring the last full sentence."""
    if len(text) <= limit:
        return text
    head = text[:limit]
    cut = max(head.rfind(". "), head.rfind("! "), head.rfind("? "))
    if cut > 0:
        return head[: cut + 1].rstrip()
    return head.rstrip()


def validate_narrative(raw_response: object) -> str:
    """Clean and validate a raw LLM narrative.

    Steps:
        1. Require a string.
        2. Strip optional markdown fences and surrounding whitespace.
        3. Reject empty output.
        4. Truncate over-long output at a sentence boundary.

    Args:
        raw_response: The value returned by the LLM adapter.

    Returns:
        The cleaned narrative.

    Raises:
        NarrativeValidationError: If the response is not usable text.
    """
    if not isinstance(raw_response, str):
        raise NarrativeValidationError(
            stage="type",
            errors=[f"expected str, got {type(raw_response).__name__}"],
            raw_response=raw_response,
        )

    cleaned = _strip_markdown_fences(raw_response)
    if not cleaned:
        raise NarrativeValidationError(
            stage="empty",
            errors=["model returned no narrative text"],
            raw_response=raw_response,
        )

    return _truncate_at_sentence(cleaned, MAX_NARRATIVE_CHARS)
