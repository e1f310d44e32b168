"""Tests for the calendar-day helpers."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from lockin.utils import dates


def test_day_key_pads_month_and_day() -> None:
    assert dates.day_key(datetime(2024, 3, 7, 23, 59, 59)) == "2024-03-07"


def test_day_key_uses_local_calendar_for_aware_datetimes() -> None:
    moment = datetime(2024, 1, 1, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    local = moment.astimezone()
    assert dates.day_key(moment) == local.strftime("%Y-%m-%d")


def test_day_key_accepts_posix_timestamps() -> None:
    moment = datetime(2024, 6, 15, 12, 0).astimezone()
    assert dates.day_key(moment.timestamp()) == "2024-06-15"


@pytest.mark.parametrize(
    ("moment", "expected"),
    [
        (datetime(2024, 1, 6, 10), True),   # Saturday
        (datetime(2024, 1, 7, 10), True),   # Sunday
        (datetime(2024, 1, 8, 10), False),  # Monday
    ],
)
def test_is_weekend(moment: datetime, expected: bool) -> None:
    assert dates.is_weekend(moment) is expected


def test_day_of_week_is_full_english_name() -> None:
    assert dates.day_of_week("2024-01-01") == "Monday"
    assert dates.day_of_week("2024-01-07") == "Sunday"


def test_parse_day_key_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        dates.parse_day_key("2024-13-40")


def test_round_hours_rounds_half_up() -> None:
    assert dates.round_hours(3600) == 1.0
    assert dates.round_hours(5400) == 1.5
    assert dates.round_hours(18) == 0.01  # 0.005 h rounds up
    assert dates.round_hours(0) == 0.0


def test_format_hms() -> None:
    assert dates.format_hms(0) == "00:00:00"
    assert dates.format_hms(3725) == "01:02:05"
    assert dates.format_hms(100 * 3600) == "100:00:00"


def test_today_helpers_follow_the_clock() -> None:
    def clock() -> datetime:
        return datetime(2024, 2, 29, 8, 0)

    assert dates.today_key(clock) == "2024-02-29"
    assert dates.is_today("2024-02-29", clock)
    assert dates.days_ago(1, clock) == datetime(2024, 2, 28, 8, 0)


def test_utcnow_is_timezone_aware() -> None:
    assert dates.utcnow().tzinfo is UTC
