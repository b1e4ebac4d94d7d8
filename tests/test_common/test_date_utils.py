# tests/test_common/test_date_utils.py

from datetime import date, datetime

import pytest

from src.common.utils.date_utils import add_months, format_date_for_db, parse_date


@pytest.mark.parametrize(
    "start, months, expected",
    [
        (date(2025, 1, 31), 1, date(2025, 3, 3)),
        (date(2024, 1, 31), 1, date(2024, 3, 2)),
        (date(2025, 3, 15), 12, date(2026, 3, 15)),
        (date(2025, 11, 30), 3, date(2026, 3, 2)),
        (date(2025, 6, 1), 0, date(2025, 6, 1)),
    ],
)
def test_add_months_lets_day_overflow_roll_forward(start, months, expected) -> None:
    assert add_months(start, months) == expected


def test_parse_date_accepts_dates_strings_and_datetimes() -> None:
    assert parse_date("2025-06-01") == date(2025, 6, 1)
    assert parse_date("2025-06-01T10:30:00Z") == date(2025, 6, 1)
    assert parse_date(datetime(2025, 6, 1, 23, 59)) == date(2025, 6, 1)
    assert parse_date(None) is None
    assert parse_date("") is None


def test_format_date_for_db() -> None:
    assert format_date_for_db(date(2025, 6, 1)) == "2025-06-01"
    assert format_date_for_db("not a date") is None
    assert format_date_for_db(None) is None
