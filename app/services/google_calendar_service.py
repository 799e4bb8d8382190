import logging
from datetime import UTC, date, datetime, time, timedelta
from urllib.parse import quote, urlencode

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.exceptions import CalendarNotConnectedError, CalendarProviderError
from app.core.timezones import zoned_datetime_to_instant
from app.models.availability import BusyWindow
from app.models.calendar_event import CalendarEventCreate, CalendarEventUpdate, EventAttendee
from app.models.integration_token import IntegrationToken

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"
GOOGLE_SCOPES = (
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/calendar.events",
)
PROVIDER_KEY = "google-calendar"
TOKEN_TYPE = "oauth"
# Refresh a little early so the token does not expire mid-request
EXPIRY_LEEWAY = timedelta(seconds=60)


def _utc_naive_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class IntegrationTokenStore:
    """Loads and persists the single Google Calendar OAuth token row."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    async def _load(self, session: AsyncSession) -> IntegrationToken | None:
        result = await session.execute(
            select(IntegrationToken).where(
                IntegrationToken.provider == PROVIDER_KEY,
                IntegrationToken.token_type == TOKEN_TYPE,
            )
        )
        return result.scalar_one_or_none()

    async def get(self) -> IntegrationToken | None:
        async with self._session_maker() as session:
            return await self._load(session)

    async def save(self, tokens: dict) -> IntegrationToken:
        """Upsert from a Google token response; a missing refresh_token keeps the stored one."""
        now = _utc_naive_now()
        async with self._session_maker() as session:
            try:
                row = await self._load(session)
                if row is None:
                    row = IntegrationToken(provider=PROVIDER_KEY, token_type=TOKEN_TYPE, created_at=now)
                row.access_token = tokens.get("access_token") or row.access_token
                row.refresh_token = tokens.get("refresh_token") or row.refresh_token
                expires_in = tokens.get("expires_in")
                if expires_in:
                    row.expires_at = now + timedelta(seconds=int(expires_in))
                row.updated_at = now
                session.add(row)
                await session.commit()
                await session.refresh(row)
                return row
            except Exception:
                await session.rollback()
                raise


def get_calendar_authorization_url(state: str | None = None, redirect_uri: str | None = None) -> str:
    params = {
        "client_id": settings.google_client_id,
        "redirect_uri": redirect_uri or settings.google_redirect_uri,
        "response_type": "code",
        "scope": " ".join(GOOGLE_SCOPES),
        "access_type": "offline",
        "prompt": "consent",
    }
    if state:
        params["state"] = state
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


async def exchange_code_for_tokens(
    code: str,
    token_store: IntegrationTokenStore,
    redirect_uri: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> IntegrationToken:
    if not settings.calendar_configured:
        raise CalendarNotConnectedError("Google OAuth client is not configured")
    async with httpx.AsyncClient(
        timeout=settings.google_request_timeout_seconds, transport=transport
    ) as client:
        try:
            resp = await client.post(
                GOOGLE_TOKEN_URL,
                data={
                    "code": code,
                    "client_id": settings.google_client_id,
                    "client_secret": settings.google_client_secret,
                    "redirect_uri": redirect_uri or settings.google_redirect_uri,
                    "grant_type": "authorization_code",
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as e:
            raise CalendarProviderError(f"Google token exchange failed: {e}") from e
    if resp.status_code != 200:
        logger.warning(
            "Google token exchange failed: status=%s body=%s", resp.status_code, resp.text[:500]
        )
        raise CalendarProviderError(f"Google token exchange returned {resp.status_code}")
    row = await token_store.save(resp.json())
    logger.info("Google Calendar connected (refresh token stored: %s)", bool(row.refresh_token))
    return row


def _metadata_strings(metadata: dict | None) -> dict[str, str]:
    """Google stores private extended properties as strings only."""
    out: dict[str, str] = {}
    for key, value in (metadata or {}).items():
        out[key] = ("true" if value else "false") if isinstance(value, bool) else str(value)
    return out


def _attendees_payload(attendees: list[EventAttendee] | None) -> list[dict] | None:
    if attendees is None:
        return None
    return [
        {"email": a.email, "displayName": a.display_name} if a.display_name else {"email": a.email}
        for a in attendees
    ]


class GoogleCalendarClient:
    """Google Calendar access for the business calendar.

    Owns the access-token refresh. Busy windows feed availability; events
    mirror bookings into the calendar. Any failure surfaces as
    CalendarProviderError.
    """

    def __init__(
        self,
        token_store: IntegrationTokenStore,
        timezone_name: str,
        calendar_id: str = "primary",
        client_id: str = "",
        client_secret: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.token_store = token_store
        self.timezone_name = timezone_name
        self.calendar_id = calendar_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self._transport = transport

    @property
    def _events_url(self) -> str:
        return f"{GOOGLE_CALENDAR_API}/calendars/{quote(self.calendar_id, safe='')}/events"

    async def _request(
        self, method: str, url: str, action: str, ok: tuple[int, ...] = (200,), **kwargs
    ) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            access_token = await self._get_access_token(client)
            try:
                resp = await client.request(
                    method, url, headers={"Authorization": f"Bearer {access_token}"}, **kwargs
                )
            except httpx.HTTPError as e:
                raise CalendarProviderError(f"Google {action} request failed: {e}") from e
        if resp.status_code not in ok:
            raise CalendarProviderError(f"Google {action} returned {resp.status_code}: {resp.text[:200]}")
        return resp

    async def fetch_busy_windows(self, d: date) -> list[BusyWindow]:
        day_start = zoned_datetime_to_instant(d, time(0, 0), self.timezone_name)
        day_end = zoned_datetime_to_instant(d + timedelta(days=1), time(0, 0), self.timezone_name)
        resp = await self._request(
            "POST",
            f"{GOOGLE_CALENDAR_API}/freeBusy",
            "free/busy",
            json={
                "timeMin": day_start.isoformat(),
                "timeMax": day_end.isoformat(),
                "timeZone": self.timezone_name,
                "items": [{"id": self.calendar_id}],
            },
        )
        return self._parse_busy(resp.json())

    def _parse_busy(self, payload: dict) -> list[BusyWindow]:
        calendar = (payload.get("calendars") or {}).get(self.calendar_id)
        if calendar is None:
            raise CalendarProviderError(f"Calendar {self.calendar_id!r} missing from free/busy response")
        if calendar.get("errors"):
            raise CalendarProviderError(f"Google free/busy errors: {calendar['errors']}")
        try:
            return [
                BusyWindow(
                    start=datetime.fromisoformat(period["start"]),
                    end=datetime.fromisoformat(period["end"]),
                )
                for period in calendar.get("busy", [])
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise CalendarProviderError(f"Malformed busy period in free/busy response: {e}") from e

    async def create_event(self, event: CalendarEventCreate) -> dict:
        tz = event.timezone or self.timezone_name
        body = {
            "summary": event.summary,
            "description": event.description,
            "start": {"dateTime": event.start.isoformat(), "timeZone": tz},
            "end": {"dateTime": event.end.isoformat(), "timeZone": tz},
            "attendees": _attendees_payload(event.attendees),
        }
        if event.metadata:
            body["extendedProperties"] = {"private": _metadata_strings(event.metadata)}
        body = {k: v for k, v in body.items() if v is not None}
        resp = await self._request("POST", self._events_url, "event create", ok=(200, 201), json=body)
        created = resp.json()
        logger.info("Google Calendar event created: %s", created.get("id"))
        return created

    async def get_event(self, event_id: str) -> dict:
        resp = await self._request("GET", f"{self._events_url}/{quote(event_id, safe='')}", "event fetch")
        return resp.json()

    def _merged_time(self, existing: dict | None, value: datetime | None, timezone: str | None) -> dict | None:
        if value is None and timezone is None:
            return existing
        existing = existing or {}
        return {
            "dateTime": value.isoformat() if value is not None else existing.get("dateTime"),
            "timeZone": timezone or existing.get("timeZone") or self.timezone_name,
        }

    async def update_event(self, event_id: str, update: CalendarEventUpdate) -> dict:
        """Read-modify-write: untouched fields keep their calendar values, metadata is merged."""
        existing = await self.get_event(event_id)
        private = dict((existing.get("extendedProperties") or {}).get("private") or {})
        private.update(_metadata_strings(update.metadata))
        attendees = _attendees_payload(update.attendees)
        body = {
            **existing,
            "summary": update.summary if update.summary is not None else existing.get("summary"),
            "description": (
                update.description if update.description is not None else existing.get("description")
            ),
            "start": self._merged_time(existing.get("start"), update.start, update.timezone),
            "end": self._merged_time(existing.get("end"), update.end, update.timezone),
            "attendees": attendees if attendees is not None else existing.get("attendees"),
            "extendedProperties": {"private": private},
        }
        body = {k: v for k, v in body.items() if v is not None}
        resp = await self._request(
            "PUT", f"{self._events_url}/{quote(event_id, safe='')}", "event update", json=body
        )
        logger.info("Google Calendar event updated: %s", event_id)
        return resp.json()

    async def delete_event(self, event_id: str) -> None:
        await self._request(
            "DELETE", f"{self._events_url}/{quote(event_id, safe='')}", "event delete", ok=(200, 204)
        )
        logger.info("Google Calendar event deleted: %s", event_id)

    async def _get_access_token(self, client: httpx.AsyncClient) -> str:
        token = await self.token_store.get()
        if token is None or not token.refresh_token:
            raise CalendarNotConnectedError(
                "Missing Google Calendar refresh token. Please complete the OAuth connection."
            )
        if (
            token.access_token
            and token.expires_at is not None
            and token.expires_at > _utc_naive_now() + EXPIRY_LEEWAY
        ):
            return token.access_token
        return await self._refresh_access_token(client, token.refresh_token)

    async def _refresh_access_token(self, client: httpx.AsyncClient, refresh_token: str) -> str:
        if not self.client_id or not self.client_secret:
            raise CalendarNotConnectedError("Google OAuth client is not configured")
        logger.info("Google Calendar access token expired, refreshing")
        try:
            resp = await client.post(
                GOOGLE_TOKEN_URL,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "refresh_token": refresh_token,
                    "grant_type": "refresh_token",
                },
            )
        except httpx.HTTPError as e:
            raise CalendarProviderError(f"Google token refresh failed: {e}") from e
        if resp.status_code != 200:
            logger.warning("Google token refresh failed: status=%s body=%s", resp.status_code, resp.text[:500])
            raise CalendarProviderError(f"Google token refresh returned {resp.status_code}")
        tokens = resp.json()
        access_token = tokens.get("access_token")
        if not access_token:
            raise CalendarProviderError("No access token in Google refresh response")
        await self.token_store.save(tokens)
        return access_token
