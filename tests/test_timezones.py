from datetime import UTC, date, datetime, time

import pytest

from app.core.exceptions import InvalidTimeInputError
from app.core.intervals import overlaps, overlaps_any
from app.core.timezones import (
    format_time_label,
    instant_to_zoned_minutes,
    minutes_to_time,
    time_to_minutes,
    utc_offset_minutes,
    zoned_datetime_to_instant,
)


def test_winter_wall_clock_equals_utc_in_london():
    assert zoned_datetime_to_instant("2025-01-06", "09:00:00", "Europe/London") == datetime(
        2025, 1, 6, 9, 0, tzinfo=UTC
    )


def test_summer_wall_clock_is_one_hour_ahead_in_london():
    assert zoned_datetime_to_instant(date(2025, 6, 2), time(9, 0), "Europe/London") == datetime(
        2025, 6, 2, 8, 0, tzinfo=UTC
    )


@pytest.mark.parametrize(
    "tz, before, after, before_utc_hour, after_utc_hour",
    [
        ("Europe/London", date(2025, 3, 29), date(2025, 3, 31), 9, 8),
        ("Europe/London", date(2025, 10, 25), date(2025, 10, 27), 8, 9),
        ("America/New_York", date(2025, 3, 8), date(2025, 3, 10), 14, 13),
    ],
)
def test_nine_am_shifts_by_one_hour_across_dst(tz, before, after, before_utc_hour, after_utc_hour):
    first = zoned_datetime_to_instant(before, "09:00", tz)
    second = zoned_datetime_to_instant(after, "09:00", tz)
    assert first.hour == before_utc_hour
    assert second.hour == after_utc_hour
    assert abs(first.hour - second.hour) == 1


def test_offset_reads_zone_not_host():
    assert utc_offset_minutes(datetime(2025, 6, 2, 12, tzinfo=UTC), "Europe/London") == 60
    assert utc_offset_minutes(datetime(2025, 1, 6, 12, tzinfo=UTC), "Asia/Kolkata") == 330
    assert utc_offset_minutes(datetime(2025, 1, 6, 12), "America/New_York") == -300


def test_instant_to_zoned_minutes_same_day():
    assert instant_to_zoned_minutes(datetime(2025, 6, 2, 9, 30, tzinfo=UTC), "2025-06-02", "Europe/London") == 630


def test_instant_to_zoned_minutes_previous_day_is_negative():
    assert instant_to_zoned_minutes(datetime(2025, 6, 1, 22, 0, tzinfo=UTC), date(2025, 6, 2), "Europe/London") == -60


def test_instant_to_zoned_minutes_reads_wall_clock_after_spring_forward():
    # 12:00Z on 2025-03-30 is 13:00 BST, although only 720 minutes have elapsed.
    assert instant_to_zoned_minutes(datetime(2025, 3, 30, 12, tzinfo=UTC), "2025-03-30", "Europe/London") == 780


def test_instant_to_zoned_minutes_reads_wall_clock_after_fall_back():
    assert instant_to_zoned_minutes(datetime(2025, 10, 26, 0, 30, tzinfo=UTC), "2025-10-26", "Europe/London") == 90
    assert instant_to_zoned_minutes(datetime(2025, 10, 26, 12, tzinfo=UTC), "2025-10-26", "Europe/London") == 720


def test_instant_to_zoned_minutes_round_up_covers_partial_minute():
    instant = datetime(2025, 1, 6, 9, 30, 30, tzinfo=UTC)
    assert instant_to_zoned_minutes(instant, "2025-01-06", "Europe/London") == 570
    assert instant_to_zoned_minutes(instant, "2025-01-06", "Europe/London", round_up=True) == 571
    assert instant_to_zoned_minutes(datetime(2025, 1, 6, 9, 30, tzinfo=UTC), "2025-01-06", "Europe/London", round_up=True) == 570


def test_format_time_label_uses_named_zone():
    instant = datetime(2025, 6, 2, 8, 0, tzinfo=UTC)
    assert format_time_label(instant, "Europe/London") == "09:00"
    assert format_time_label(instant, "America/New_York") == "04:00"
    assert format_time_label(datetime(2025, 1, 6, 17, 5, tzinfo=UTC), "Europe/London") == "17:05"


def test_time_to_minutes_truncates_seconds():
    assert time_to_minutes("09:30:59") == 570
    assert time_to_minutes(time(23, 59)) == 1439
    assert minutes_to_time(570) == time(9, 30)


@pytest.mark.parametrize(
    "args",
    [
        ("2025-01-06", "09:00", "Mars/Olympus_Mons"),
        ("2025-02-30", "09:00", "Europe/London"),
        ("06/01/2025", "09:00", "Europe/London"),
        ("20250106", "09:00", "Europe/London"),
        ("2025W021", "09:00", "Europe/London"),
        ("2025-01-06", "9 o'clock", "Europe/London"),
        ("2025-01-06", "25:00", "Europe/London"),
    ],
)
def test_invalid_inputs_raise_invalid_time_input(args):
    with pytest.raises(InvalidTimeInputError):
        zoned_datetime_to_instant(*args)


def test_minutes_outside_a_day_rejected():
    with pytest.raises(InvalidTimeInputError):
        minutes_to_time(24 * 60)


def test_overlaps_is_half_open():
    assert overlaps(540, 600, 570, 630)
    assert overlaps(540, 600, 500, 700)
    assert not overlaps(540, 600, 600, 660)
    assert not overlaps(600, 660, 540, 600)
    assert overlaps(540, 600, 599, 600)


def test_overlaps_any():
    busy = [(600, 660), (720, 780)]
    assert not overlaps_any(540, 600, busy)
    assert overlaps_any(650, 710, busy)
    assert not overlaps_any(540, 600, [])
