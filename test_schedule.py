from datetime import date

import pytest

from academics.schedule import class_dates, month_bounds, months_between, parse_break_dates


def test_class_dates_skip_breaks_and_unscheduled_days():
    dates = class_dates('2024-01-01', '2024-01-14', ['Monday', 'Wednesday'], ['2024-01-08'])
    assert dates == [date(2024, 1, 1), date(2024, 1, 3), date(2024, 1, 10)]


def test_class_dates_never_include_weekends():
    assert class_dates(date(2024, 1, 1), date(2024, 1, 31), ['Saturday', 'Sunday']) == []


def test_class_dates_without_schedule_or_with_reversed_range():
    assert class_dates('2024-01-01', '2024-01-14', []) == []
    assert class_dates('2024-01-14', '2024-01-01', ['Monday']) == []


def test_class_dates_single_day_range():
    assert class_dates('2024-01-03', '2024-01-03', ['Wednesday']) == [date(2024, 1, 3)]


def test_parse_break_dates_sorts_and_deduplicates():
    assert parse_break_dates('2024-01-10, 2024-01-08,2024-01-10, ') == ['2024-01-08', '2024-01-10']
    assert parse_break_dates('') == []


def test_parse_break_dates_rejects_bad_values():
    with pytest.raises(ValueError):
        parse_break_dates('2024-13-01')


def test_months_between_crosses_year_boundary():
    assert months_between(date(2024, 11, 15), date(2025, 2, 1)) == ['2024-11', '2024-12', '2025-01', '2025-02']


def test_month_bounds_handles_leap_year():
    assert month_bounds('2024-02') == (date(2024, 2, 1), date(2024, 2, 29))
