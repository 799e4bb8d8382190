from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.availability import (
    BOOKING_STATUS_CANCELLED,
    AvailabilityRule,
    BlockedDate,
    Booking,
)


class AvailabilityStore:
    """Read-only queries behind availability computation.

    Each query opens its own session so callers may run them concurrently;
    a single AsyncSession must not be shared between concurrent awaits.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    async def list_rules(self, day_of_week: int) -> list[AvailabilityRule]:
        async with self._session_maker() as session:
            result = await session.execute(
                select(AvailabilityRule)
                .where(
                    AvailabilityRule.is_active.is_(True),
                    AvailabilityRule.day_of_week == day_of_week,
                )
                .order_by(AvailabilityRule.start_time, AvailabilityRule.id)
            )
            return list(result.scalars().all())

    async def list_blocked_dates(self, d: date) -> list[BlockedDate]:
        async with self._session_maker() as session:
            result = await session.execute(select(BlockedDate).where(BlockedDate.blocked_on == d))
            return list(result.scalars().all())

    async def list_bookings(self, d: date) -> list[Booking]:
        async with self._session_maker() as session:
            result = await session.execute(
                select(Booking).where(
                    Booking.session_date == d,
                    func.lower(Booking.status) != BOOKING_STATUS_CANCELLED,
                )
            )
            return list(result.scalars().all())
