import math
from typing import Iterable


class MathTools:
    """Provides the small numeric helpers shared by the progress calculators."""

    @staticmethod
    def clamp(value: float, min_value: float, max_value: float) -> float:
        """Clamp ``value`` to the inclusive range [min_value, max_value]."""
        if min_value > max_value:
            raise ValueError("min_value must not exceed max_value")
        return max(min_value, min(value, max_value))

    @staticmethod
    def round_half_up(value: float) -> int:
        """Round to the nearest integer with halves rounded towards +inf.

        Python's ``round`` uses banker's rounding, so ``round(2.5) == 2``.
        Progress values are displayed as whole percentages and ``2.5`` must
        become ``3``.
        """
        if not math.isfinite(value):
            return 0
        return int(math.floor(value + 0.5))

    @classmethod
    def percent(cls, part: float, whole: float, cap: int | None = 100) -> int:
        """Return ``part`` as a rounded percentage of ``whole``.

        A non-positive ``whole`` yields 0. When ``cap`` is given the result is
        clamped to ``[0, cap]``.
        """
        if whole <= 0:
            return 0
        pct = cls.round_half_up(part / whole * 100.0)
        if cap is None:
            return pct
        return int(cls.clamp(pct, 0, cap))

    @classmethod
    def mean(cls, values: Iterable[float]) -> int:
        """Return the rounded arithmetic mean of ``values`` or 0 when empty."""
        data = list(values)
        if not data:
            return 0
        return cls.round_half_up(sum(data) / len(data))

    @staticmethod
    def volume(reps: list[int], weights: list[float]) -> float:
        """Compute training volume as the sum of reps times weight per set.

        A set without a matching weight entry contributes nothing.
        """
        vol = 0.0
        for idx, rep in enumerate(reps):
            weight = weights[idx] if idx < len(weights) else 0.0
            vol += (rep or 0) * (weight or 0.0)
        return vol

    @staticmethod
    def max_weight(weights: list[float]) -> float:
        """Return the heaviest weight of a log or 0 for an empty list."""
        return max(weights) if weights else 0.0
