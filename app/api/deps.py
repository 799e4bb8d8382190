from app.core.config import settings
from app.core.db import async_session_maker
from app.services.availability_service import AvailabilityService
from app.services.availability_store import AvailabilityStore
from app.services.google_calendar_service import GoogleCalendarClient, IntegrationTokenStore


def get_token_store() -> IntegrationTokenStore:
    return IntegrationTokenStore(async_session_maker)


def get_calendar_client() -> GoogleCalendarClient:
    return GoogleCalendarClient(
        token_store=get_token_store(),
        timezone_name=settings.operating_timezone,
        calendar_id=settings.google_calendar_id,
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret,
        timeout=settings.google_request_timeout_seconds,
    )


def get_availability_service() -> AvailabilityService:
    return AvailabilityService(
        store=AvailabilityStore(async_session_maker),
        calendar=get_calendar_client(),
        timezone_name=settings.operating_timezone,
        slot_step_minutes=settings.slot_step_minutes,
        timezone_label=settings.timezone_label,
        dedupe_slot_starts=settings.dedupe_slot_starts,
    )
