"""Shared fakes and builders for availability tests."""
import asyncio
from datetime import date, time

from app.models.availability import AvailabilityRule, BlockedDate, Booking, BusyWindow

MONDAY = date(2025, 1, 6)
TIMEZONE = "Europe/London"


class FakeStore:
    def __init__(self, rules=None, blocked=None, bookings=None):
        self.rules = list(rules or [])
        self.blocked = list(blocked or [])
        self.bookings = list(bookings or [])
        self.calls: list[tuple[str, object]] = []

    async def list_rules(self, day_of_week: int) -> list[AvailabilityRule]:
        self.calls.append(("rules", day_of_week))
        return [r for r in self.rules if r.is_active and r.day_of_week == day_of_week]

    async def list_blocked_dates(self, d: date) -> list[BlockedDate]:
        self.calls.append(("blocked", d))
        return [b for b in self.blocked if b.blocked_on == d]

    async def list_bookings(self, d: date) -> list[Booking]:
        self.calls.append(("bookings", d))
        return [b for b in self.bookings if b.session_date == d]


class FakeCalendar:
    def __init__(self, windows=None, error: Exception | None = None):
        self.windows = list(windows or [])
        self.error = error
        self.calls: list[date] = []

    async def fetch_busy_windows(self, d: date) -> list[BusyWindow]:
        self.calls.append(d)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.windows


def rule(day_of_week: int, start: str, end: str, active: bool = True) -> AvailabilityRule:
    return AvailabilityRule(
        day_of_week=day_of_week,
        start_time=time.fromisoformat(start),
        end_time=time.fromisoformat(end),
        is_active=active,
    )


def booking(d: date, start: str, duration: int = 60, status: str = "confirmed") -> Booking:
    return Booking(session_date=d, session_time=time.fromisoformat(start), duration=duration, status=status)


