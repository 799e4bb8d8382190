import logging
import math
from collections.abc import Iterable
from datetime import date, timedelta
from enum import Enum

from app.core.intervals import overlaps_any
from app.core.timezones import (
    format_time_label,
    instant_to_zoned_minutes,
    minutes_to_time,
    time_to_minutes,
    zoned_datetime_to_instant,
)
from app.models.availability import AvailabilityRule, BlockedDate, Booking, BusyWindow, Slot

logger = logging.getLogger(__name__)

Interval = tuple[int, int]  # [start, end) in minutes since local midnight


class DayBlock(Enum):
    ALL_DAY_BLOCKED = "all_day_blocked"


ALL_DAY_BLOCKED = DayBlock.ALL_DAY_BLOCKED

BusyResult = list[Interval] | DayBlock


def weekday_index(d: date) -> int:
    """0 = Sunday .. 6 = Saturday."""
    return d.isoweekday() % 7


def open_intervals_for(day_of_week: int, rules: Iterable[AvailabilityRule]) -> list[Interval]:
    """Active rules for the weekday as minute intervals, in the order given.

    Overlapping rules are not merged; each is walked on its own.
    """
    return [
        (time_to_minutes(rule.start_time), time_to_minutes(rule.end_time))
        for rule in rules
        if rule.is_active and rule.day_of_week == day_of_week
    ]


def booking_interval(booking: Booking) -> Interval:
    start = time_to_minutes(booking.session_time)
    return start, start + booking.duration


def external_interval(window: BusyWindow, target_date: date, timezone_name: str) -> Interval:
    """Project a calendar busy window onto the wall-clock minute axis of `target_date`.

    Never shorter than the real elapsed length, so a window inside the
    repeated hour of an autumn changeover still blocks time.
    """
    start = instant_to_zoned_minutes(window.start, target_date, timezone_name)
    end = instant_to_zoned_minutes(window.end, target_date, timezone_name, round_up=True)
    elapsed = math.ceil((window.end - window.start).total_seconds() / 60)
    return start, max(end, start + elapsed)


def aggregate_busy_windows(
    blocked_dates: Iterable[BlockedDate],
    bookings: Iterable[Booking],
    external_busy: Iterable[BusyWindow],
    target_date: date,
    timezone_name: str,
) -> BusyResult:
    """Merge every busy source for `target_date` onto the local minute axis.

    A matching blocked date short-circuits to ALL_DAY_BLOCKED.
    """
    if any(b.blocked_on == target_date for b in blocked_dates):
        return ALL_DAY_BLOCKED

    busy = [booking_interval(b) for b in bookings if not b.is_cancelled]
    busy.extend(external_interval(w, target_date, timezone_name) for w in external_busy)
    busy.sort()
    return busy


def _make_slot(
    target_date: date,
    start_minutes: int,
    duration_minutes: int,
    timezone_name: str,
    timezone_label: str,
) -> Slot:
    start = zoned_datetime_to_instant(target_date, minutes_to_time(start_minutes), timezone_name)
    return Slot(
        start=start,
        end=start + timedelta(minutes=duration_minutes),
        label=format_time_label(start, timezone_name),
        timezone_label=timezone_label,
    )


def generate_slots(
    open_intervals: Iterable[Interval],
    busy: BusyResult,
    duration_minutes: int,
    step_minutes: int,
    target_date: date,
    timezone_name: str,
    timezone_label: str = "",
) -> list[Slot]:
    """Walk each open interval at a fixed step and keep conflict-free candidates.

    A candidate is offered at every step boundary where the whole duration
    fits inside the interval. Output follows interval order, then time.
    """
    if busy is ALL_DAY_BLOCKED:
        return []
    if duration_minutes <= 0 or step_minutes <= 0:
        raise ValueError("duration_minutes and step_minutes must be positive")

    slots: list[Slot] = []
    for open_start, open_end in open_intervals:
        candidate = open_start
        while candidate + duration_minutes <= open_end:
            candidate_end = candidate + duration_minutes
            if not overlaps_any(candidate, candidate_end, busy):
                slots.append(
                    _make_slot(target_date, candidate, duration_minutes, timezone_name, timezone_label)
                )
            candidate += step_minutes
    return slots
