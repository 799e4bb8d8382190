class AvailabilityError(Exception):
    """Base class for failures surfaced by availability computation."""


class InvalidTimeInputError(AvailabilityError, ValueError):
    """Unknown timezone name or a date/time string that does not parse."""


class InvalidRequestError(AvailabilityError, ValueError):
    """Caller supplied a bad date or a non-positive duration."""


class AvailabilityUnavailableError(AvailabilityError):
    """The external calendar could not be consulted, so no slots can be trusted."""


class CalendarProviderError(Exception):
    """Google Calendar returned an error, an unexpected payload, or was unreachable."""


class CalendarNotConnectedError(CalendarProviderError):
    """No OAuth client or stored refresh token for the calendar integration."""
