"""Numeric helpers shared by every engine component"""

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

CENT = Decimal("0.01")


def finite_or_zero(value: Any) -> float:
    """Coerce a record value to a finite float, treating None/NaN/inf/garbage as 0"""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def non_negative(value: Any) -> float:
    return max(finite_or_zero(value), 0.0)


def round_currency(value: Any) -> float:
    """
    Round to cents, half away from zero.

    Goes through str() so that binary float noise (e.g. 1.005 stored as
    1.00499999...) does not flip the rounding direction.
    """
    number = finite_or_zero(value)
    rounded = float(Decimal(str(number)).quantize(CENT, rounding=ROUND_HALF_UP))
    # Avoid -0.0 leaking into JSON output
    return rounded + 0.0


def round_whole(value: Any) -> int:
    """Round to an integer, half away from zero"""
    number = finite_or_zero(value)
    return int(Decimal(str(number)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def clamp(value: float, lower: float, upper: float) -> float:
    return min(upper, max(lower, value))


def clamp_percent(value: Any) -> float:
    return clamp(finite_or_zero(value), 0.0, 100.0)


def safe_ratio(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Divide with an explicit zero guard"""
    if denominator == 0:
        return default
    return numerator / denominator
