from datetime import date, datetime, timedelta, timezone

import pytest

from pomodoro_api.utils import day_window, elapsed_minutes, parse_calendar_date, to_utc

from .helpers import utc


class TestParseCalendarDate:
    def test_valid(self):
        assert parse_calendar_date("2024-02-29") == date(2024, 2, 29)
        assert parse_calendar_date(" 2024-01-01 ") == date(2024, 1, 1)

    @pytest.mark.parametrize(
        "value",
        [None, "", "2023-02-29", "2024-13-01", "2024-01-32", "20240101", "2024-1-1", "01/02/2024", "2024-01-01T00:00"],
    )
    def test_invalid(self, value):
        assert parse_calendar_date(value) is None


class TestTimeHelpers:
    def test_to_utc_naive_is_utc(self):
        assert to_utc(datetime(2024, 1, 1, 9, 0)) == utc(2024, 1, 1, 9, 0)

    def test_to_utc_converts_offsets(self):
        plus_two = timezone(timedelta(hours=2))
        converted = to_utc(datetime(2024, 1, 2, 1, 30, tzinfo=plus_two))
        assert converted == utc(2024, 1, 1, 23, 30)
        assert converted.tzinfo == timezone.utc

    def test_day_window_single_day(self):
        assert day_window(date(2024, 1, 1)) == (utc(2024, 1, 1), utc(2024, 1, 2))

    def test_day_window_range_end_exclusive(self):
        assert day_window(date(2024, 1, 30), date(2024, 2, 1)) == (utc(2024, 1, 30), utc(2024, 2, 2))

    def test_day_window_open_ended_at_last_day(self):
        assert day_window(date.max) == (utc(9999, 12, 31), None)
        assert day_window(date(9999, 12, 30), date.max) == (utc(9999, 12, 30), None)

    def test_to_utc_out_of_range_is_value_error(self):
        plus_two = timezone(timedelta(hours=2))
        with pytest.raises(ValueError, match="timestamp out of range"):
            to_utc(datetime(1, 1, 1, 0, 30, tzinfo=plus_two))

    def test_elapsed_minutes_truncates(self):
        start = utc(2024, 1, 1, 9, 0)
        assert elapsed_minutes(start, start + timedelta(minutes=10, seconds=59)) == 10
        assert elapsed_minutes(start, start + timedelta(seconds=59)) == 0
        assert elapsed_minutes(start, start) == 0
