from datetime import date
from unittest.mock import MagicMock

import pytest

from butler.nlu.dates import (
    parse_booking_party_size,
    parse_booking_time,
    parse_relative_date,
    parse_time,
    resolve_date_keywords,
)
from butler.nlu.models import DateResolution

# A Wednesday
TODAY = date(2024, 1, 3)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("today", "2024-01-03"),
        ("tomorrow", "2024-01-04"),
        ("tom", "2024-01-04"),
        ("friday", "2024-01-05"),
        ("Friday", "2024-01-05"),
        ("next friday", "2024-01-12"),
        ("monday", "2024-01-08"),
        ("wednesday", "2024-01-10"),
        ("this wednesday", "2024-01-03"),
        ("next sunday", "2024-01-07"),
        ("2024-12-25", "2024-12-25"),
    ],
)
def test_resolve_date_keywords(text, expected):
    assert resolve_date_keywords(text, TODAY) == expected


def test_unknown_expression_is_none():
    assert resolve_date_keywords("the day after my birthday", TODAY) is None


def test_parse_relative_date_keeps_raw_text():
    assert parse_relative_date("sometime soon", today=TODAY) == "sometime soon"


def test_parse_relative_date_prefers_confident_interpreter():
    interpreter = MagicMock()
    interpreter.parse_date.return_value = DateResolution(date="2024-02-14", confidence=0.9)

    assert parse_relative_date("valentine's day", interpreter, TODAY) == "2024-02-14"


def test_parse_relative_date_ignores_unsure_interpreter():
    interpreter = MagicMock()
    interpreter.parse_date.return_value = DateResolution(date="2024-02-14", confidence=0.3)

    assert parse_relative_date("tomorrow", interpreter, TODAY) == "2024-01-04"


class TestTimeParsing:
    def test_pm(self):
        assert parse_time("7pm") == "19:00"
        assert parse_time("7:30 PM") == "19:30"

    def test_24_hour(self):
        assert parse_time("19:00") == "19:00"

    def test_midnight(self):
        assert parse_time("12am") == "00:00"

    def test_noon(self):
        assert parse_time("12pm") == "12:00"

    def test_unparseable(self):
        assert parse_time("whenever") is None
        assert parse_booking_time("whenever") == "whenever"


class TestPartySize:
    def test_first_number(self):
        assert parse_booking_party_size("we are 4 adults") == 4

    def test_fallback(self):
        assert parse_booking_party_size("a few of us", fallback=3) == 3

    def test_default(self):
        assert parse_booking_party_size("not sure") == 2
