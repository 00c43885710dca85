from datetime import date

import pytest

from ravito.core.activity_utils import (
    calculate_evolution,
    days_in_month,
    days_in_year,
    format_currency,
    get_month_name,
    is_leap_year,
    month_bounds,
    previous_month,
    year_bounds,
)


def test_format_currency():
    assert format_currency(1250000) == '1 250 000 FCFA'
    assert format_currency(999.6) == '1 000 FCFA'
    assert format_currency(-15000) == '-15 000 FCFA'
    assert format_currency(0) == '0 FCFA'
    assert format_currency(45000, with_symbol=False) == '45 000'


def test_leap_years():
    assert is_leap_year(2024)
    assert is_leap_year(2000)
    assert not is_leap_year(1900)
    assert not is_leap_year(2025)
    assert days_in_year(2024) == 366
    assert days_in_year(2025) == 365
    assert days_in_month(2024, 2) == 29
    assert days_in_month(2025, 2) == 28


def test_month_names():
    assert get_month_name(1) == 'janvier'
    assert get_month_name(8) == 'août'
    assert get_month_name(12) == 'décembre'
    with pytest.raises(ValueError):
        get_month_name(13)


def test_bounds_are_half_open():
    assert year_bounds(2025) == (date(2025, 1, 1), date(2026, 1, 1))
    assert month_bounds(2025, 3) == (date(2025, 3, 1), date(2025, 4, 1))
    assert month_bounds(2025, 12) == (date(2025, 12, 1), date(2026, 1, 1))
    assert previous_month(2025, 1) == (2024, 12)
    assert previous_month(2025, 7) == (2025, 6)


def test_evolution():
    assert calculate_evolution(100, None) is None
    assert calculate_evolution(100, 0) is None
    up = calculate_evolution(150, 100)
    assert up.value == pytest.approx(50)
    assert up.is_positive
    down = calculate_evolution(75, 100)
    assert down.value == pytest.approx(25)
    assert not down.is_positive
