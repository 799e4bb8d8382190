from datetime import datetime

from pydantic import BaseModel


class SlotInfo(BaseModel):
    start: datetime
    end: datetime
    label: str  # HH:MM in the operating timezone
    timezone_label: str


class AvailabilityResponse(BaseModel):
    date: str  # YYYY-MM-DD
    timezone: str
    duration_minutes: int
    slots: list[SlotInfo]


class CalendarConnectedResponse(BaseModel):
    connected: bool
