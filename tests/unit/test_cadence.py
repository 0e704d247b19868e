"""Unit tests for cadence normalization"""

import pytest
from finance_engine.domain.cadence import DAYS_PER_YEAR, to_monthly, to_monthly_amount
from finance_engine.domain.models import Cadence, CustomUnit, RecurringAmount


@pytest.mark.parametrize(
    "cadence,expected",
    [
        ("weekly", 100 * 52 / 12),
        ("biweekly", 100 * 26 / 12),
        ("monthly", 100),
        ("quarterly", 100 / 3),
        ("yearly", 100 / 12),
        ("one_time", 0),
    ],
)
def test_fixed_cadences(cadence, expected):
    """Test each fixed cadence factor"""
    assert to_monthly_amount(100, cadence) == pytest.approx(expected)


def test_yearly_example():
    """Test 1200 a year is 100 a month"""
    assert to_monthly_amount(1200, Cadence.YEARLY) == pytest.approx(100.0)


def test_custom_days_uses_mean_year():
    """Test every 14 days converts through 365.2425 days per year"""
    result = to_monthly_amount(10, "custom", 14, "days")
    assert result == pytest.approx(10 * DAYS_PER_YEAR / 168)


def test_custom_weeks_and_months():
    """Test custom week and month intervals"""
    assert to_monthly_amount(70, "custom", 2, CustomUnit.WEEKS) == pytest.approx(70 * DAYS_PER_YEAR / 168)
    assert to_monthly_amount(300, "custom", 3, CustomUnit.MONTHS) == pytest.approx(100.0)
    assert to_monthly_amount(2400, "custom", 2, CustomUnit.YEARS) == pytest.approx(100.0)


@pytest.mark.parametrize(
    "interval,unit",
    [(None, "days"), (0, "weeks"), (-3, "months"), (2, None), (2, "fortnights")],
)
def test_custom_without_valid_interval_is_zero(interval, unit):
    """Test custom cadence needs a positive interval and a known unit"""
    assert to_monthly_amount(100, "custom", interval, unit) == 0.0


@pytest.mark.parametrize("amount", [0, -50, None, float("nan"), float("inf"), "abc"])
def test_non_positive_or_garbage_amount_is_zero(amount):
    """Test bad amounts never raise"""
    assert to_monthly_amount(amount, "weekly") == 0.0


def test_unknown_cadence_reads_as_monthly():
    """Test unrecognized cadence strings pass the amount through"""
    assert to_monthly_amount(42, "every-other-tuesday") == 42


def test_to_monthly_on_record():
    """Test record wrapper forwards every field"""
    record = RecurringAmount(amount=26, cadence=Cadence.CUSTOM, custom_interval=1, custom_unit=CustomUnit.YEARS)
    assert to_monthly(record) == pytest.approx(26 / 12)


@pytest.mark.parametrize("cadence", ["weekly", "biweekly", "monthly", "quarterly", "yearly"])
def test_conversion_is_linear(cadence):
    """Test doubling the amount doubles the monthly equivalent"""
    assert to_monthly_amount(200, cadence) == pytest.approx(2 * to_monthly_amount(100, cadence))
