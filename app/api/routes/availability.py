import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.deps import get_availability_service
from app.api.schemas.availability import AvailabilityResponse, SlotInfo
from app.core.config import settings
from app.core.exceptions import AvailabilityUnavailableError, InvalidRequestError
from app.core.timezones import parse_date
from app.services.availability_service import AvailabilityService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/calendar", tags=["availability"])


def _parse_duration(raw: str | None) -> int:
    if raw is None or raw == "":
        return settings.default_duration_minutes
    try:
        return int(raw)
    except ValueError as e:
        raise InvalidRequestError(f"Invalid duration: {raw!r}") from e


@router.get("/availability", response_model=AvailabilityResponse)
async def availability(
    date_param: str = Query(..., alias="date"),
    duration: str | None = Query(None),
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    """Bookable slots for `date` (YYYY-MM-DD, operating timezone) of `duration` minutes."""
    logger.info("Availability requested: date=%s duration=%s", date_param, duration)
    try:
        duration_minutes = _parse_duration(duration)
        slots = await service.compute_availability(date_param, duration_minutes)
    except InvalidRequestError as e:
        logger.info("Rejected availability request: %s", e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except AvailabilityUnavailableError as e:
        logger.error("Availability unavailable for %s: %s", date_param, e.__cause__ or e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Unable to fetch availability.",
        ) from e
    return AvailabilityResponse(
        date=parse_date(date_param).isoformat(),
        timezone=service.timezone_name,
        duration_minutes=duration_minutes,
        slots=[
            SlotInfo(start=s.start, end=s.end, label=s.label, timezone_label=s.timezone_label)
            for s in slots
        ],
    )
