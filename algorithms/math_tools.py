import math
from typing import Iterable, Optional

import numpy as np


class MathTools:
    """Provides essential mathematical utilities for workout calculations."""

    EPLEY_DIVISOR: int = 30
    PLATE_INCREMENT: float = 2.5
    REP_PERCENTAGES: tuple[tuple[int, int], ...] = (
        (1, 100),
        (2, 95),
        (3, 93),
        (4, 90),
        (5, 87),
        (6, 85),
        (8, 80),
        (10, 75),
        (12, 70),
    )

    @staticmethod
    def clamp(value: float, min_value: float, max_value: float) -> float:
        """Clamp ``value`` to the inclusive range [min_value, max_value]."""
        if min_value > max_value:
            raise ValueError("min_value must not exceed max_value")
        return max(min_value, min(value, max_value))

    @staticmethod
    def round_half_up(value: float) -> int:
        """Round to the nearest integer with halves rounded upwards."""
        return int(math.floor(value + 0.5))

    @classmethod
    def epley_1rm(cls, weight: Optional[float], reps: Optional[int]) -> float:
        """Return the estimated one-rep max using the Epley formula.

        Missing weight or reps count as zero. A single rep is already a
        max and is returned untouched; everything else is rounded to a
        whole kilogram.
        """
        w = float(weight or 0)
        r = int(reps or 0)
        if r == 1:
            return w
        if r == 0 or w == 0:
            return 0.0
        return float(cls.round_half_up(w * (1 + r / cls.EPLEY_DIVISOR)))

    @classmethod
    def round_to_increment(cls, value: float, step: float | None = None) -> float:
        """Round ``value`` to the nearest multiple of ``step`` (plate size)."""
        step = step or cls.PLATE_INCREMENT
        return cls.round_half_up(value / step) * step

    @classmethod
    def ceil_to_increment(cls, value: float, step: float | None = None) -> float:
        """Round ``value`` up to the next multiple of ``step``."""
        step = step or cls.PLATE_INCREMENT
        return math.ceil(value / step) * step

    @staticmethod
    def volume(sets: Iterable[tuple[Optional[int], Optional[float]]]) -> float:
        """Compute training volume as the sum of reps times weight."""
        vol = 0.0
        for reps, weight in sets:
            vol += (reps or 0) * (weight or 0)
        return vol

    @staticmethod
    def mean(values: Iterable[float]) -> float:
        data = list(values)
        if not data:
            return 0.0
        return float(np.mean(np.array(data, dtype=float)))

    @classmethod
    def rep_table(cls, one_rm: float) -> list[dict]:
        """Return target weights for common rep counts given a 1RM."""
        if one_rm <= 0:
            return []
        return [
            {
                "reps": reps,
                "percentage": pct,
                "weight": cls.round_half_up(one_rm * pct / 100),
            }
            for reps, pct in cls.REP_PERCENTAGES
        ]
