"""Unit tests for month arithmetic helpers"""

from datetime import date
from finance_engine.utils.date_utils import (
    add_months_keeping_day,
    clamped_day,
    days_between,
    month_key,
    month_key_offset,
)


def test_clamped_day_caps_at_month_end():
    """Test day 31 falls back to the last day of short months"""
    assert clamped_day(2024, 2, 31) == date(2024, 2, 29)
    assert clamped_day(2023, 2, 31) == date(2023, 2, 28)
    assert clamped_day(2024, 4, 31) == date(2024, 4, 30)
    assert clamped_day(2024, 5, 0) == date(2024, 5, 1)


def test_add_months_keeps_requested_day():
    """Test stepping months pins the due day, not the starting day"""
    assert add_months_keeping_day(date(2024, 1, 31), 1, 31) == date(2024, 2, 29)
    assert add_months_keeping_day(date(2024, 2, 29), 1, 31) == date(2024, 3, 31)
    assert add_months_keeping_day(date(2024, 5, 15), 1, 21) == date(2024, 6, 21)


def test_add_months_crosses_year_boundaries():
    """Test negative and multi-year offsets"""
    assert add_months_keeping_day(date(2024, 11, 10), 3, 10) == date(2025, 2, 10)
    assert add_months_keeping_day(date(2024, 1, 10), -1, 10) == date(2023, 12, 10)
    assert add_months_keeping_day(date(2024, 5, 15), 24, 15) == date(2026, 5, 15)


def test_month_keys():
    """Test month key formatting and offsets"""
    assert month_key(date(2024, 5, 15)) == "2024-05"
    assert month_key_offset(0, date(2024, 5, 31)) == "2024-05"
    assert month_key_offset(9, date(2024, 5, 31)) == "2025-02"
    assert month_key_offset(-5, date(2024, 5, 31)) == "2023-12"


def test_days_between_is_signed():
    assert days_between(date(2024, 5, 15), date(2024, 5, 20)) == 5
    assert days_between(date(2024, 5, 20), date(2024, 5, 15)) == -5
