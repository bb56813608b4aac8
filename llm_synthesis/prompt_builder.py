"""Structured prompt builder for executive narratives."""

from dataclasses import asdict
from typing import Tuple

from analytics.profiles import ProcessProfile
from analytics.status import StatusMetrics

_FORMAT_RULES = """\
MANDATORY FORMAT:
- At most 3 sentences
- Direct executive language
- Focus on the DECISION, not on describing the data
- Use ONLY the numbers provided above; do not compute new ones
- Answer in {language}
"""

_SYSTEM_SUFFIX = " Never invent figures that are not in the prompt."


class NarrativePromptBuilder:
    """Builds a deterministic prompt for the remote narrative call.

    The situation block is the profile's template filled with the
    locally computed counts and rates, so the model only writes prose
    around numbers it was given.
    """

    def __init__(self, language: str = "Brazilian Portuguese") -> None:
        self._language = language

    def build(self, metrics: StatusMetrics, profile: ProcessProfile) -> Tuple[str, str]:
        """Build ``(prompt, system)`` for one snapshot.

        Args:
            metrics: Derived status metrics.
            profile: Process profile supplying the templates.

        Returns:
            The user prompt and the system context.
        """
        situation = profile.prompt_template.format(**asdict(metrics))
        rules = _FORMAT_RULES.format(language=self._language)
        prompt = f"{situation}\n{rules}"
        system = profile.system_context + _SYSTEM_SUFFIX
        return prompt, system
