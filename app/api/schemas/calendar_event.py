from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.calendar_event import MetadataValue


class AttendeeIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str
    display_name: str | None = Field(None, alias="displayName")


class EventRequest(BaseModel):
    """Body for create and update. Required fields are checked in the route so
    a missing one is a 400 with a readable message."""

    model_config = ConfigDict(populate_by_name=True)

    event_id: str | None = Field(None, alias="eventId")
    summary: str | None = None
    description: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    timezone: str | None = None
    attendees: list[AttendeeIn] | None = None
    metadata: dict[str, MetadataValue] | None = None


class EventResponse(BaseModel):
    event: dict


class EventDeletedResponse(BaseModel):
    deleted: bool
