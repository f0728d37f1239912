"""
Availability query engine.

Answers which tables of a restaurant can seat a party at a given slot and
whether the restaurant is open then. All queries are pure reads; an unknown
or unapproved restaurant simply produces an empty result.

A table is free at a slot when no pending or confirmed reservation holds it
at exactly that date and time. There is no seating-duration model, so two
bookings a minute apart do not collide.
"""

from dataclasses import dataclass, field
from datetime import date, time
from typing import List, Optional

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from tablebook.errors import ValidationError
from tablebook.models.reservation import Reservation, ACTIVE_STATUSES
from tablebook.models.restaurant import DAY_NAMES, OperatingHours, Restaurant, RestaurantTable


@dataclass
class AvailabilityResult:
    """Outcome of an availability lookup for one restaurant and date"""
    restaurant_id: int
    date: date
    day_of_week: str
    is_open: bool = False
    available_times: List[str] = field(default_factory=list)
    candidate_tables: List[RestaurantTable] = field(default_factory=list)

    @property
    def has_availability(self) -> bool:
        return self.is_open and bool(self.candidate_tables)


def day_name(value: date) -> str:
    """Weekday name used by operating hours, derived only from the date"""
    return DAY_NAMES[value.weekday()]


def normalize_time(value: time) -> time:
    """Truncate to the minute and drop tzinfo; slots match on HH:MM"""
    return value.replace(second=0, microsecond=0, tzinfo=None)


def slot_taken(table_id, reservation_date: date, reservation_time: time):
    """EXISTS clause: an active reservation holds the table at this exact slot"""
    return exists().where(
        Reservation.table_id == table_id,
        Reservation.reservation_date == reservation_date,
        Reservation.reservation_time == reservation_time,
        Reservation.status.in_(ACTIVE_STATUSES),
    )


def free_table_exists(restaurant_id, reservation_date: date, reservation_time: time, party_size: int):
    """EXISTS clause: the restaurant has a free table seating the party"""
    return exists().where(
        RestaurantTable.restaurant_id == restaurant_id,
        RestaurantTable.capacity >= party_size,
        ~slot_taken(RestaurantTable.id, reservation_date, reservation_time),
    )


def open_at(restaurant_id, reservation_date: date, reservation_time: time):
    """EXISTS clause: opening_time <= time <= closing_time on the date's weekday"""
    return exists().where(
        OperatingHours.restaurant_id == restaurant_id,
        OperatingHours.day_of_week == day_name(reservation_date),
        OperatingHours.opening_time <= reservation_time,
        OperatingHours.closing_time >= reservation_time,
    )


def _check_party_size(party_size: Optional[int]) -> None:
    if party_size is not None and party_size < 1:
        raise ValidationError("Party size must be a positive number")


async def opening_times(db: AsyncSession, restaurant_id: int, reservation_date: date) -> List[str]:
    """Distinct opening times for the date's weekday, ascending, as HH:MM"""
    result = await db.execute(
        select(OperatingHours.opening_time)
        .where(
            OperatingHours.restaurant_id == restaurant_id,
            OperatingHours.day_of_week == day_name(reservation_date),
        )
        .distinct()
        .order_by(OperatingHours.opening_time)
    )
    return [value.strftime("%H:%M") for value in result.scalars().all()]


async def is_open(db: AsyncSession, restaurant_id: int, reservation_date: date, reservation_time: time) -> bool:
    result = await db.execute(
        select(open_at(restaurant_id, reservation_date, normalize_time(reservation_time)))
    )
    return bool(result.scalar())


async def has_table_for(db: AsyncSession, restaurant_id: int, party_size: int) -> bool:
    """Whether any table, booked or not, can seat the party"""
    result = await db.execute(
        select(
            exists().where(
                RestaurantTable.restaurant_id == restaurant_id,
                RestaurantTable.capacity >= party_size,
            )
        )
    )
    return bool(result.scalar())


async def candidate_tables(
    db: AsyncSession,
    restaurant_id: int,
    party_size: Optional[int] = None,
) -> List[RestaurantTable]:
    """Tables large enough for the party, without checking any slot"""
    _check_party_size(party_size)
    query = select(RestaurantTable).where(RestaurantTable.restaurant_id == restaurant_id)
    if party_size is not None:
        query = query.where(RestaurantTable.capacity >= party_size)
    result = await db.execute(query.order_by(RestaurantTable.capacity, RestaurantTable.id))
    return list(result.scalars().all())


async def free_tables(
    db: AsyncSession,
    restaurant_id: int,
    reservation_date: date,
    reservation_time: time,
    party_size: int,
) -> List[RestaurantTable]:
    """
    Free tables seating the party at the slot.

    Ordered by capacity then id: the first entry is the table the booking
    flow assigns.
    """
    _check_party_size(party_size)
    reservation_time = normalize_time(reservation_time)
    result = await db.execute(
        select(RestaurantTable)
        .where(
            RestaurantTable.restaurant_id == restaurant_id,
            RestaurantTable.capacity >= party_size,
            ~slot_taken(RestaurantTable.id, reservation_date, reservation_time),
        )
        .order_by(RestaurantTable.capacity, RestaurantTable.id)
    )
    return list(result.scalars().all())


async def find_availability(
    db: AsyncSession,
    restaurant_id: int,
    reservation_date: date,
    reservation_time: Optional[time] = None,
    party_size: Optional[int] = None,
) -> AvailabilityResult:
    """
    Availability of a restaurant on a date.

    With a time, ``is_open`` reflects the operating-hours check and
    ``candidate_tables`` lists the free tables seating the party (party size
    defaults to 1). Without a time, ``is_open`` only says whether the
    restaurant opens that weekday and the tables are filtered by capacity
    alone.
    """
    _check_party_size(party_size)
    availability = AvailabilityResult(
        restaurant_id=restaurant_id,
        date=reservation_date,
        day_of_week=day_name(reservation_date),
    )

    found = await db.scalar(
        select(Restaurant.id).where(Restaurant.id == restaurant_id, Restaurant.is_approved.is_(True))
    )
    if found is None:
        return availability

    availability.available_times = await opening_times(db, restaurant_id, reservation_date)

    if reservation_time is None:
        availability.is_open = bool(availability.available_times)
        availability.candidate_tables = await candidate_tables(db, restaurant_id, party_size)
        return availability

    availability.is_open = await is_open(db, restaurant_id, reservation_date, reservation_time)
    if availability.is_open:
        availability.candidate_tables = await free_tables(
            db, restaurant_id, reservation_date, reservation_time, party_size or 1
        )
    return availability
