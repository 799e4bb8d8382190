import asyncio
import logging
from datetime import date
from typing import Protocol

from app.core.exceptions import AvailabilityUnavailableError, InvalidRequestError, InvalidTimeInputError
from app.core.timezones import get_zone, parse_date
from app.models.availability import AvailabilityRule, BlockedDate, Booking, BusyWindow, Slot
from app.services.slot_service import (
    ALL_DAY_BLOCKED,
    aggregate_busy_windows,
    generate_slots,
    open_intervals_for,
    weekday_index,
)

logger = logging.getLogger(__name__)


class AvailabilitySource(Protocol):
    async def list_rules(self, day_of_week: int) -> list[AvailabilityRule]: ...

    async def list_blocked_dates(self, d: date) -> list[BlockedDate]: ...

    async def list_bookings(self, d: date) -> list[Booking]: ...


class BusyWindowProvider(Protocol):
    async def fetch_busy_windows(self, d: date) -> list[BusyWindow]: ...


def dedupe_by_start(slots: list[Slot]) -> list[Slot]:
    seen = set()
    out: list[Slot] = []
    for slot in slots:
        if slot.start in seen:
            continue
        seen.add(slot.start)
        out.append(slot)
    return out


class AvailabilityService:
    """Computes bookable slots for one date from the stores and the external calendar.

    Stateless between calls: every request re-reads all sources.
    """

    def __init__(
        self,
        store: AvailabilitySource,
        calendar: BusyWindowProvider,
        timezone_name: str,
        slot_step_minutes: int,
        timezone_label: str = "",
        dedupe_slot_starts: bool = True,
    ) -> None:
        if slot_step_minutes <= 0:
            raise ValueError("slot_step_minutes must be positive")
        get_zone(timezone_name)
        self.store = store
        self.calendar = calendar
        self.timezone_name = timezone_name
        self.slot_step_minutes = slot_step_minutes
        self.timezone_label = timezone_label
        self.dedupe_slot_starts = dedupe_slot_starts

    async def _fetch_busy_windows(self, d: date) -> list[BusyWindow]:
        try:
            return await self.calendar.fetch_busy_windows(d)
        except Exception as e:
            logger.exception("External calendar busy query failed for %s", d)
            raise AvailabilityUnavailableError("External calendar is unavailable") from e

    async def compute_availability(self, date_str: date | str, duration_minutes: int) -> list[Slot]:
        try:
            target = parse_date(date_str)
        except InvalidTimeInputError as e:
            raise InvalidRequestError(str(e)) from e
        if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int) or duration_minutes <= 0:
            raise InvalidRequestError(f"duration must be a positive whole number of minutes, got {duration_minutes!r}")

        day_of_week = weekday_index(target)
        # The calendar is always consulted: a provider failure fails the request
        # even on days that turn out to be closed.
        rules, blocked, bookings, external_busy = await asyncio.gather(
            self.store.list_rules(day_of_week),
            self.store.list_blocked_dates(target),
            self.store.list_bookings(target),
            self._fetch_busy_windows(target),
        )

        open_intervals = open_intervals_for(day_of_week, rules)
        if not open_intervals:
            logger.debug("No active availability rule for %s (weekday %d)", target, day_of_week)
            return []

        busy = aggregate_busy_windows(blocked, bookings, external_busy, target, self.timezone_name)
        if busy is ALL_DAY_BLOCKED:
            logger.debug("%s is a blocked date", target)
            return []

        slots = generate_slots(
            open_intervals,
            busy,
            duration_minutes,
            self.slot_step_minutes,
            target,
            self.timezone_name,
            self.timezone_label,
        )
        if self.dedupe_slot_starts:
            slots = dedupe_by_start(slots)
        slots.sort(key=lambda s: s.start)
        return slots
