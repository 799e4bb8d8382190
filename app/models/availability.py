from datetime import UTC, date, datetime, time

from sqlalchemy import Column, Date
from sqlmodel import Field, SQLModel

BOOKING_STATUS_CANCELLED = "cancelled"


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class AvailabilityRule(SQLModel, table=True):
    """One recurring weekly open window, authored in the operating timezone."""

    __tablename__ = "availability_slots"
    id: int | None = Field(default=None, primary_key=True)
    day_of_week: int = Field(index=True, ge=0, le=6)  # 0 = Sunday
    start_time: time
    end_time: time
    is_active: bool = True
    created_at: datetime = Field(default_factory=_utc_naive_now)
    updated_at: datetime = Field(default_factory=_utc_naive_now)


class BlockedDate(SQLModel, table=True):
    __tablename__ = "blocked_dates"
    id: int | None = Field(default=None, primary_key=True)
    blocked_on: date = Field(sa_column=Column("date", Date, nullable=False, index=True))
    reason: str | None = None
    created_at: datetime = Field(default_factory=_utc_naive_now)
    updated_at: datetime = Field(default_factory=_utc_naive_now)


class Booking(SQLModel, table=True):
    __tablename__ = "bookings"
    id: int | None = Field(default=None, primary_key=True)
    session_date: date = Field(index=True)
    session_time: time  # local wall clock, operating timezone
    duration: int  # minutes
    status: str = "pending"
    payment_status: str = "pending"
    service_type: str = "single"
    notes: str | None = None
    google_calendar_event_id: str | None = None
    created_at: datetime = Field(default_factory=_utc_naive_now)
    updated_at: datetime = Field(default_factory=_utc_naive_now)

    @property
    def is_cancelled(self) -> bool:
        return (self.status or "").lower() == BOOKING_STATUS_CANCELLED


class BusyWindow(SQLModel):
    """A busy range reported by the external calendar, as UTC instants."""

    start: datetime
    end: datetime


class Slot(SQLModel):
    start: datetime
    end: datetime
    label: str
    timezone_label: str
