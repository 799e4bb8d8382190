"""Wall-clock <-> instant conversion for a named timezone.

Everything here takes the timezone name explicitly; nothing reads the
process-local timezone. Instants are timezone-aware UTC datetimes.
"""
import re
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.exceptions import InvalidTimeInputError

MINUTES_PER_DAY = 24 * 60
_ONE_MINUTE = timedelta(minutes=1)
_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)


def get_zone(timezone_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError, TypeError) as e:
        raise InvalidTimeInputError(f"Unknown timezone: {timezone_name!r}") from e


def parse_date(value: date | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _ISO_DATE.fullmatch(value):
        raise InvalidTimeInputError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise InvalidTimeInputError(f"Invalid date: {value!r} (expected YYYY-MM-DD)") from e


def parse_time(value: time | str) -> time:
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise InvalidTimeInputError(f"Invalid time of day: {value!r} (expected HH:MM[:SS])") from e


def time_to_minutes(value: time | str) -> int:
    """Minutes since midnight; seconds are truncated."""
    t = parse_time(value)
    return t.hour * 60 + t.minute + t.second // 60


def minutes_to_time(minutes: int) -> time:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidTimeInputError(f"Minutes out of range for a single day: {minutes}")
    return time(minutes // 60, minutes % 60)


def _as_utc(instant: datetime) -> datetime:
    # Naive datetimes are taken to be UTC already.
    if instant.tzinfo is None:
        return instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC)


def utc_offset_minutes(instant: datetime, timezone_name: str) -> int:
    """Offset of the named zone from UTC at `instant`, by comparing wall-clock fields."""
    zone = get_zone(timezone_name)
    instant = _as_utc(instant)
    wall = instant.astimezone(zone).replace(tzinfo=UTC)
    return (wall - instant) // _ONE_MINUTE


def zoned_datetime_to_instant(
    day: date | str, time_of_day: time | str, timezone_name: str
) -> datetime:
    """Instant at which the clock in `timezone_name` reads `day` `time_of_day`.

    First pass pretends the wall clock is UTC; the offset observed at that
    approximate instant then shifts it onto the real instant. The offset is
    looked up for the specific date, so DST is handled.
    """
    d = parse_date(day)
    t = parse_time(time_of_day)
    approx = datetime(d.year, d.month, d.day, t.hour, t.minute, t.second, tzinfo=UTC)
    offset = utc_offset_minutes(approx, timezone_name)
    return approx - timedelta(minutes=offset)


def instant_to_zoned_minutes(
    instant: datetime, reference_date: date | str, timezone_name: str, round_up: bool = False
) -> int:
    """Position of `instant` on the wall-clock minute axis of `reference_date`.

    Reads the clock in `timezone_name`, so it lines up with rule and booking
    times even on DST changeover days. Instants on neighbouring days fall
    outside 0..1439. Seconds are dropped unless `round_up` is set.
    """
    ref = parse_date(reference_date)
    local = _as_utc(instant).astimezone(get_zone(timezone_name))
    minutes = (local.date() - ref).days * MINUTES_PER_DAY + local.hour * 60 + local.minute
    if round_up and (local.second or local.microsecond):
        minutes += 1
    return minutes


def format_time_label(instant: datetime, timezone_name: str) -> str:
    """24-hour HH:MM as read on a clock in `timezone_name`."""
    return _as_utc(instant).astimezone(get_zone(timezone_name)).strftime("%H:%M")
