from datetime import date, datetime

import pandas as pd
import pytest

from household_budget.lib.common import (
    format_date,
    format_date_for_input,
    get_relative_date_string,
    is_today,
    optional_date,
    parse_date_from_input,
    to_date,
)


def test_to_date_drops_time_of_day():
    assert to_date(datetime(2026, 1, 15, 23, 59)) == date(2026, 1, 15)
    assert to_date(pd.Timestamp('2026-01-15 08:30')) == date(2026, 1, 15)
    assert to_date('2026-01-15') == date(2026, 1, 15)
    assert to_date('2026-01-15T10:00:00Z') == date(2026, 1, 15)


def test_to_date_rejects_other_types():
    with pytest.raises(TypeError):
        to_date(20260115)


def test_optional_date_passes_missing_values_through():
    assert optional_date(None) is None
    assert optional_date('') is None
    assert optional_date('2026-02-01') == date(2026, 2, 1)


def test_format_date_for_display_and_input():
    assert format_date(date(2026, 1, 5)) == 'Jan 5, 2026'
    assert format_date_for_input(datetime(2026, 1, 5, 12)) == '2026-01-05'


def test_parse_date_from_input_keeps_calendar_day():
    assert parse_date_from_input('2026-03-01') == date(2026, 3, 1)


def test_relative_date_strings():
    today = date(2026, 1, 10)
    assert is_today(date(2026, 1, 10), today)
    assert not is_today(date(2026, 1, 11), today)
    assert get_relative_date_string(date(2026, 1, 10), today) == 'today'
    assert get_relative_date_string(date(2026, 1, 11), today) == 'tomorrow'
    assert get_relative_date_string(date(2026, 1, 9), today) == 'yesterday'
    assert get_relative_date_string(date(2026, 1, 13), today) == 'in 3 days'
    assert get_relative_date_string(date(2026, 1, 8), today) == '2 days ago'
