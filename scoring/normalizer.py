"""
scoring/normalizer.py

Deterministic bounding and rounding helpers for score computation.
"""

import math


class ScoreNormalizer:
    """Provides stateless normalization methods for scoring terms.

    All methods are deterministic and produce bounded float outputs.
    No external dependencies, state, or side effects.
    """

    def headroom(self, rate: float, penalty: float) -> float:
        """Remaining quality after penalizing a 0–100 rate.

        Computes ``100 - penalty * rate`` floored at zero, so a bad
        rate can remove its term's contribution but never go negative.

        Args:
            rate: A percentage in the range [0, 100].
            penalty: Points removed per percentage point of ``rate``.

        Returns:
            A float in the range [0, 100] for rates in [0, 100].
        """
        return max(0.0, 100.0 - penalty * rate)

    def clamp(self, value: float, min_value: float, max_value: float) -> float:
        """Clamp a value to the specified [min_value, max_value] range.

        Args:
            value: The float to clamp.
            min_value: The lower bound of the output range.
            max_value: The upper bound of the output range.

        Returns:
            value if within bounds, otherwise min_value or max_value.
        """
        return max(min_value, min(value, max_value))

    def round_half_up(self, value: float) -> int:
        """Round to the nearest integer with .5 going up.

        Python's ``round`` uses banker's rounding; scores use the
        conventional rule so 92.5 becomes 93.
        """
        return int(math.floor(value + 0.5))
