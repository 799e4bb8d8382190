import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import RedirectResponse

from app.api.deps import get_calendar_client, get_token_store
from app.api.schemas.availability import CalendarConnectedResponse
from app.api.schemas.calendar_event import EventDeletedResponse, EventRequest, EventResponse
from app.core.config import settings
from app.core.exceptions import CalendarNotConnectedError, CalendarProviderError
from app.models.calendar_event import CalendarEventCreate, CalendarEventUpdate, EventAttendee
from app.services.google_calendar_service import (
    GoogleCalendarClient,
    IntegrationTokenStore,
    exchange_code_for_tokens,
    get_calendar_authorization_url,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/calendar", tags=["calendar"])


@router.get("/auth")
async def calendar_auth(
    redirect_uri: str | None = Query(None),
    state: str | None = Query(None),
    response_format: str | None = Query(None, alias="format"),
):
    """Start the Google Calendar OAuth consent flow."""
    if not settings.calendar_configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Google Calendar OAuth is not configured",
        )
    url = get_calendar_authorization_url(state=state, redirect_uri=redirect_uri)
    if response_format == "json":
        return {"authorization_url": url}
    return RedirectResponse(url=url, status_code=302)


@router.get("/callback", response_model=CalendarConnectedResponse)
async def calendar_callback(
    code: str | None = Query(None),
    redirect_uri: str | None = Query(None),
    token_store: IntegrationTokenStore = Depends(get_token_store),
) -> CalendarConnectedResponse:
    if not code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing OAuth code.")
    try:
        await exchange_code_for_tokens(code, token_store, redirect_uri=redirect_uri)
    except CalendarNotConnectedError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e
    except CalendarProviderError as e:
        logger.warning("Google OAuth callback error: %s", e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Unable to complete Google OAuth flow.",
        ) from e
    return CalendarConnectedResponse(connected=True)


def _attendees(body: EventRequest) -> list[EventAttendee] | None:
    if body.attendees is None:
        return None
    return [EventAttendee(email=a.email, display_name=a.display_name) for a in body.attendees]


def _provider_failure(action: str, e: CalendarProviderError) -> HTTPException:
    if isinstance(e, CalendarNotConnectedError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    logger.warning("Failed to %s calendar event: %s", action, e)
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Unable to {action} event.")


@router.post("/events", response_model=EventResponse)
async def create_calendar_event(
    body: EventRequest,
    calendar: GoogleCalendarClient = Depends(get_calendar_client),
) -> EventResponse:
    if not body.summary or body.start is None or body.end is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing summary/start/end.")
    event = CalendarEventCreate(
        summary=body.summary,
        description=body.description,
        start=body.start,
        end=body.end,
        timezone=body.timezone,
        attendees=_attendees(body),
        metadata=body.metadata,
    )
    try:
        created = await calendar.create_event(event)
    except CalendarProviderError as e:
        raise _provider_failure("create", e) from e
    return EventResponse(event=created)


@router.put("/events", response_model=EventResponse)
async def update_calendar_event(
    body: EventRequest,
    calendar: GoogleCalendarClient = Depends(get_calendar_client),
) -> EventResponse:
    if not body.event_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="eventId is required.")
    update = CalendarEventUpdate(
        summary=body.summary,
        description=body.description,
        start=body.start,
        end=body.end,
        timezone=body.timezone,
        attendees=_attendees(body),
        metadata=body.metadata or {},
    )
    try:
        updated = await calendar.update_event(body.event_id, update)
    except CalendarProviderError as e:
        raise _provider_failure("update", e) from e
    return EventResponse(event=updated)


@router.delete("/events", response_model=EventDeletedResponse)
async def delete_calendar_event(
    event_id: str | None = Query(None, alias="eventId"),
    calendar: GoogleCalendarClient = Depends(get_calendar_client),
) -> EventDeletedResponse:
    if not event_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="eventId is required.")
    try:
        await calendar.delete_event(event_id)
    except CalendarProviderError as e:
        raise _provider_failure("delete", e) from e
    return EventDeletedResponse(deleted=True)
