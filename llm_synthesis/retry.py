"""Bounded re-asking of the remote model when its narrative is unusable.

Only ``NarrativeValidationError`` triggers another attempt. Adapter errors
(timeout, auth, transport) propagate on the first occurrence: the single
call timeout is the whole time budget of the remote tier.
"""

import logging
from typing import List

from llm_synthesis.adapter import BaseLLMAdapter
from llm_synthesis.validator import NarrativeValidationError, validate_narrative

logger = logging.getLogger(__name__)


class NarrativeRetryExhaustedError(Exception):
    """Every attempt returned text that failed validation.

    Attributes:
        history: One validation error per attempt, oldest first.
    """

    def __init__(self, history: List[NarrativeValidationError]) -> None:
        self.history = history
        super().__init__(
            f"no usable narrative after {self.attempts} attempt(s); "
            f"stages: {', '.join(self.stages)}"
        )

    @property
    def attempts(self) -> int:
        return len(self.history)

    @property
    def stages(self) -> List[str]:
        return [err.stage for err in self.history]


def generate_with_retry(
    adapter: BaseLLMAdapter,
    prompt: str,
    system: str,
    max_retries: int = 1,
) -> str:
    """Ask for a narrative, re-asking on malformed output.

    Args:
        adapter: Remote narrative adapter.
        prompt: Profile prompt.
        system: System context.
        max_retries: Extra attempts after the first malformed answer;
            negative values count as zero.

    Returns:
        The cleaned narrative.

    Raises:
        LLMAdapterError: Straight from the adapter, never retried.
        NarrativeRetryExhaustedError: When no attempt produced usable text.
    """
    budget = 1 + max(0, max_retries)
    history: List[NarrativeValidationError] = []

    while len(history) < budget:
        try:
            narrative = validate_narrative(adapter.generate(prompt, system))
        except NarrativeValidationError as exc:
            history.append(exc)
            logger.warning(
                "Unusable narrative (%s) on attempt %d of %d",
                exc.stage,
                len(history),
                budget,
            )
            continue

        if history:
            logger.info("Narrative accepted after %d rejected attempt(s)", len(history))
        return narrative

    raise NarrativeRetryExhaustedError(history)
