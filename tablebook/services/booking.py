"""
Reservation writer.

Creates reservations without double-booking a table. The availability check
and the insert share one transaction, and the partial unique index on
(table_id, reservation_date, reservation_time) over active statuses makes the
database reject the loser of a race. A rejected insert is rolled back and the
whole check-assign-insert sequence is retried; a second loss is reported to
the caller as "unavailable". Any other integrity failure propagates as is.
"""

from datetime import date, datetime, time
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tablebook.config import settings
from tablebook.errors import (
    ConflictError,
    NotFoundError,
    OutOfHoursError,
    UnavailableError,
    ValidationError,
)
from tablebook.models.reservation import ACTIVE_SLOT_INDEX, Reservation
from tablebook.models.restaurant import Restaurant
from tablebook.services import availability
from tablebook.services.clock import SystemClock
from tablebook.services.lifecycle import INITIAL_STATUSES
from tablebook.services.notifications import CeleryNotifier

logger = structlog.get_logger()

# SQLite names the columns rather than the index in its message
_SQLITE_SLOT_COLUMNS = (
    "reservations.table_id, reservations.reservation_date, reservations.reservation_time"
)


def is_slot_conflict(error: IntegrityError) -> bool:
    """Whether the insert broke the one-active-reservation-per-slot index"""
    message = str(error.orig)
    return ACTIVE_SLOT_INDEX in message or _SQLITE_SLOT_COLUMNS in message


class BookingService:
    """Validates booking requests and assigns a table atomically"""

    def __init__(
        self,
        db: AsyncSession,
        clock: SystemClock,
        notifier: CeleryNotifier,
        initial_status: Optional[str] = None,
        conflict_retries: Optional[int] = None,
    ):
        self.db = db
        self.clock = clock
        self.notifier = notifier
        self.initial_status = initial_status or settings.reservation_initial_status
        self.conflict_retries = (
            settings.booking_conflict_retries if conflict_retries is None else conflict_retries
        )
        if self.initial_status not in INITIAL_STATUSES:
            raise ValueError(f"Unsupported initial reservation status: {self.initial_status}")

    async def create_reservation(
        self,
        customer_id: int,
        restaurant_id: int,
        reservation_date: date,
        reservation_time: time,
        party_size: int,
        special_request: Optional[str] = None,
    ) -> Reservation:
        """
        Book the smallest free table that seats the party.

        Raises ValidationError, NotFoundError, UnavailableError or
        OutOfHoursError. ConflictError never escapes: it is retried and then
        reported as UnavailableError.
        """
        reservation_time = availability.normalize_time(reservation_time)
        self._validate(reservation_date, reservation_time, party_size)

        for attempt in range(self.conflict_retries + 1):
            try:
                reservation = await self._book(
                    customer_id,
                    restaurant_id,
                    reservation_date,
                    reservation_time,
                    party_size,
                    special_request,
                )
            except ConflictError:
                logger.info(
                    "Booking lost a race, retrying",
                    restaurant_id=restaurant_id,
                    reservation_date=reservation_date.isoformat(),
                    reservation_time=reservation_time.isoformat(),
                    attempt=attempt + 1,
                )
                continue

            logger.info(
                "Reservation created",
                reservation_id=reservation.id,
                restaurant_id=restaurant_id,
                table_id=reservation.table_id,
                party_size=party_size,
                status=reservation.status,
            )
            self.notifier.reservation_event(reservation.id, "created")
            return reservation

        raise UnavailableError("No table available for that time")

    def _validate(self, reservation_date: date, reservation_time: time, party_size: int) -> None:
        if party_size is None or party_size < 1:
            raise ValidationError("Party size must be a positive number")
        if datetime.combine(reservation_date, reservation_time) < self.clock.now():
            raise ValidationError("Reservations must be made for a future date and time")

    async def _book(
        self,
        customer_id: int,
        restaurant_id: int,
        reservation_date: date,
        reservation_time: time,
        party_size: int,
        special_request: Optional[str],
    ) -> Reservation:
        restaurant = await self.db.scalar(select(Restaurant).where(Restaurant.id == restaurant_id))
        if restaurant is None or not restaurant.is_approved:
            raise NotFoundError("Restaurant not found")

        if not await availability.has_table_for(self.db, restaurant_id, party_size):
            raise UnavailableError(f"No table can seat a party of {party_size}")

        tables = await availability.free_tables(
            self.db, restaurant_id, reservation_date, reservation_time, party_size
        )
        if not tables:
            raise UnavailableError("No table available for that time")

        if not await availability.is_open(self.db, restaurant_id, reservation_date, reservation_time):
            raise OutOfHoursError("The restaurant is closed at the requested time")

        reservation = Reservation(
            customer_id=customer_id,
            restaurant_id=restaurant_id,
            table_id=tables[0].id,
            reservation_date=reservation_date,
            reservation_time=reservation_time,
            party_size=party_size,
            special_request=special_request,
            status=self.initial_status,
        )
        self.db.add(reservation)

        try:
            await self.db.flush()
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if not is_slot_conflict(e):
                raise
            raise ConflictError("The table was booked by another request")

        await self.db.refresh(reservation)
        return reservation
