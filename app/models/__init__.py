from app.models.availability import (
    BOOKING_STATUS_CANCELLED,
    AvailabilityRule,
    BlockedDate,
    Booking,
    BusyWindow,
    Slot,
)
from app.models.calendar_event import CalendarEventCreate, CalendarEventUpdate, EventAttendee
from app.models.integration_token import IntegrationToken

__all__ = [
    "BOOKING_STATUS_CANCELLED",
    "AvailabilityRule",
    "BlockedDate",
    "Booking",
    "BusyWindow",
    "Slot",
    "CalendarEventCreate",
    "CalendarEventUpdate",
    "EventAttendee",
    "IntegrationToken",
]
