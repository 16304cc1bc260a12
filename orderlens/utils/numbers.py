"""Rounding helpers shared by percentage metrics and forecasts."""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward positive infinity."""
    return int(math.floor(float(value) + 0.5))


def percent(part: float, whole: float) -> int:
    """Whole-number percentage of part in whole; 0 when whole is 0."""
    if whole == 0:
        return 0
    return round_half_up(part / whole * 100)
