"""Cadence normalizer - converts recurring amounts to monthly equivalents"""

from typing import Any, Optional

from finance_engine.domain.models import Cadence, CustomUnit, RecurringAmount
from finance_engine.utils.money import finite_or_zero

DAYS_PER_YEAR = 365.2425


def coerce_cadence(value: Any) -> Optional[Cadence]:
    """Map a raw cadence string to the enum; None for unknown values"""
    if isinstance(value, Cadence):
        return value
    try:
        return Cadence(value)
    except ValueError:
        return None


def coerce_custom_unit(value: Any) -> Optional[CustomUnit]:
    if isinstance(value, CustomUnit):
        return value
    try:
        return CustomUnit(value)
    except ValueError:
        return None


def to_monthly_amount(
    amount: Any,
    cadence: Any,
    custom_interval: Any = None,
    custom_unit: Any = None,
) -> float:
    """
    Convert an amount paid every `cadence` into its monthly equivalent.

    Rules:
    - weekly x 52/12, biweekly x 26/12, monthly x 1, quarterly / 3, yearly / 12
    - one_time contributes nothing to a monthly run rate
    - custom needs a positive interval and a unit, otherwise 0
    - non-finite or negative amounts are treated as 0; never raises

    Example:
        to_monthly_amount(1200, "yearly") -> 100.0
        to_monthly_amount(10, "custom", 14, "days") -> 10 * 365.2425 / 168
    """
    value = finite_or_zero(amount)
    if value <= 0:
        return 0.0

    resolved = coerce_cadence(cadence)
    if resolved is None:
        # Unknown cadences are read as already-monthly amounts
        return value

    if resolved is Cadence.WEEKLY:
        return value * 52 / 12
    if resolved is Cadence.BIWEEKLY:
        return value * 26 / 12
    if resolved is Cadence.MONTHLY:
        return value
    if resolved is Cadence.QUARTERLY:
        return value / 3
    if resolved is Cadence.YEARLY:
        return value / 12
    if resolved is Cadence.ONE_TIME:
        return 0.0

    interval = finite_or_zero(custom_interval)
    unit = coerce_custom_unit(custom_unit)
    if interval <= 0 or unit is None:
        return 0.0
    if unit is CustomUnit.DAYS:
        return value * DAYS_PER_YEAR / (interval * 12)
    if unit is CustomUnit.WEEKS:
        return value * DAYS_PER_YEAR / (interval * 7 * 12)
    if unit is CustomUnit.MONTHS:
        return value / interval
    return value / (interval * 12)


def monthly_occurrences(cadence: Any, custom_interval: Any = None, custom_unit: Any = None) -> float:
    """How many times per month a payment on this cadence falls due"""
    return to_monthly_amount(1, cadence, custom_interval, custom_unit)


def to_monthly(recurring: RecurringAmount) -> float:
    return to_monthly_amount(
        recurring.amount,
        recurring.cadence,
        recurring.custom_interval,
        recurring.custom_unit,
    )
