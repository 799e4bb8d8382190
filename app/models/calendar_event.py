from datetime import datetime

from sqlmodel import Field, SQLModel

MetadataValue = str | int | bool


class EventAttendee(SQLModel):
    email: str
    display_name: str | None = None


class CalendarEventCreate(SQLModel):
    """A session to mirror into the business calendar."""

    summary: str
    description: str | None = None
    start: datetime
    end: datetime
    timezone: str | None = None  # defaults to the operating timezone
    attendees: list[EventAttendee] | None = None
    metadata: dict[str, MetadataValue] | None = None  # stored as private extended properties


class CalendarEventUpdate(SQLModel):
    """Partial update; fields left as None keep the calendar's current value."""

    summary: str | None = None
    description: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    timezone: str | None = None
    attendees: list[EventAttendee] | None = None
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)
