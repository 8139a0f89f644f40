"""Rounding helpers shared by the scorers and aggregators.

Dashboard figures round half away from zero for positive values (the
dashboard's historical behaviour), not Python's banker's rounding.
"""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounding toward +infinity."""
    return int(math.floor(value + 0.5))


def safe_ratio(numerator: float, denominator: float) -> float:
    """Return numerator / denominator, or 0.0 when the denominator is zero."""
    if denominator == 0:
        return 0.0
    return numerator / denominator


def percent_fraction(numerator: float, denominator: float) -> float:
    """Ratio rounded to the nearest whole percent, expressed as a fraction.

    ``percent_fraction(1, 3) == 0.33``. A zero denominator yields 0.0.
    """
    if denominator == 0:
        return 0.0
    return round_half_up(numerator / denominator * 100) / 100
