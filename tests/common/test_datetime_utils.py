from __future__ import annotations

from datetime import date, time

import pytest

from src.shift_planner.shift_planner.common.datetime_utils import (
    month_window,
    parse_hhmm,
    parse_iso_date,
    working_days,
)
from src.shift_planner.shift_planner.core.exceptions import InvalidRequestError


def test_month_window_runs_to_end_of_last_month():
    assert month_window(date(2025, 6, 15), 3) == (date(2025, 6, 1), date(2025, 8, 31))
    assert month_window(date(2025, 11, 30), 3) == (date(2025, 11, 1), date(2026, 1, 31))
    assert month_window(date(2024, 2, 10), 1) == (date(2024, 2, 1), date(2024, 2, 29))


def test_working_days_skip_weekends_only_for_ranges():
    assert working_days(date(2025, 6, 13), date(2025, 6, 16)) == [date(2025, 6, 13), date(2025, 6, 16)]
    assert working_days(date(2025, 6, 14), date(2025, 6, 14)) == [date(2025, 6, 14)]
    assert working_days(date(2025, 6, 14), date(2025, 6, 15)) == []


def test_time_and_date_parsing():
    assert parse_hhmm("09:30") == time(9, 30)
    assert parse_hhmm("09:30:00") == time(9, 30)
    assert parse_hhmm("") is None
    assert parse_iso_date(" 2025-06-10 ") == date(2025, 6, 10)

    with pytest.raises(InvalidRequestError):
        parse_hhmm("9h30")
    with pytest.raises(InvalidRequestError):
        parse_iso_date("2025-13-01")
