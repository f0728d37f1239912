"""Restaurant search composed with the availability predicate"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, time
from typing import Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tablebook.models.reservation import Reservation, ACTIVE_STATUSES
from tablebook.models.restaurant import OperatingHours, Restaurant
from tablebook.models.review import Review
from tablebook.services.availability import day_name, free_table_exists, normalize_time, open_at


@dataclass
class SearchFilters:
    location: Optional[str] = None
    cuisine_type: Optional[str] = None
    price_range: Optional[int] = None
    rating: Optional[float] = None
    date: Optional[date] = None
    time: Optional[time] = None
    party_size: Optional[int] = None

    @property
    def checks_availability(self) -> bool:
        return self.time is not None and self.party_size is not None


@dataclass
class SearchHit:
    restaurant: Restaurant
    reviews_count: int = 0
    average_rating: Optional[float] = None
    bookings_today: int = 0
    available_times: List[str] = field(default_factory=list)


async def search_restaurants(db: AsyncSession, filters: SearchFilters, today: date) -> List[SearchHit]:
    """
    Approved restaurants matching the filters, sorted by name.

    When both time and party size are given, only restaurants that are open
    then and have a free table seating the party are returned. The date
    defaults to ``today``.
    """
    on_date = filters.date or today

    review_stats = (
        select(
            Review.restaurant_id.label("restaurant_id"),
            func.count(Review.id).label("reviews_count"),
            func.avg(Review.rating).label("average_rating"),
        )
        .group_by(Review.restaurant_id)
        .subquery()
    )
    bookings = (
        select(
            Reservation.restaurant_id.label("restaurant_id"),
            func.count(Reservation.id).label("bookings_today"),
        )
        .where(
            Reservation.reservation_date == on_date,
            Reservation.status.in_(ACTIVE_STATUSES),
        )
        .group_by(Reservation.restaurant_id)
        .subquery()
    )

    query = (
        select(
            Restaurant,
            func.coalesce(review_stats.c.reviews_count, 0),
            review_stats.c.average_rating,
            func.coalesce(bookings.c.bookings_today, 0),
        )
        .outerjoin(review_stats, review_stats.c.restaurant_id == Restaurant.id)
        .outerjoin(bookings, bookings.c.restaurant_id == Restaurant.id)
        .where(Restaurant.is_approved.is_(True))
    )

    if filters.location:
        pattern = f"%{filters.location}%"
        query = query.where(or_(Restaurant.city.ilike(pattern), Restaurant.zip_code.ilike(pattern)))
    if filters.cuisine_type:
        query = query.where(Restaurant.cuisine_type == filters.cuisine_type)
    if filters.price_range is not None:
        query = query.where(Restaurant.cost_rating <= filters.price_range)
    if filters.rating is not None:
        query = query.where(review_stats.c.average_rating >= filters.rating)
    if filters.checks_availability:
        slot_time = normalize_time(filters.time)
        query = query.where(
            free_table_exists(Restaurant.id, on_date, slot_time, filters.party_size),
            open_at(Restaurant.id, on_date, slot_time),
        )

    result = await db.execute(query.order_by(Restaurant.name, Restaurant.id))
    hits = [
        SearchHit(
            restaurant=restaurant,
            reviews_count=int(reviews_count),
            average_rating=round(float(average_rating), 2) if average_rating is not None else None,
            bookings_today=int(bookings_today),
        )
        for restaurant, reviews_count, average_rating, bookings_today in result.all()
    ]

    times = await _opening_times_by_restaurant(db, [hit.restaurant.id for hit in hits], on_date)
    for hit in hits:
        hit.available_times = times.get(hit.restaurant.id, [])
    return hits


async def _opening_times_by_restaurant(
    db: AsyncSession,
    restaurant_ids: List[int],
    on_date: date,
) -> Dict[int, List[str]]:
    if not restaurant_ids:
        return {}
    result = await db.execute(
        select(OperatingHours.restaurant_id, OperatingHours.opening_time)
        .where(
            OperatingHours.restaurant_id.in_(restaurant_ids),
            OperatingHours.day_of_week == day_name(on_date),
        )
        .distinct()
        .order_by(OperatingHours.restaurant_id, OperatingHours.opening_time)
    )
    times = defaultdict(list)
    for restaurant_id, opening_time in result.all():
        times[restaurant_id].append(opening_time.strftime("%H:%M"))
    return times
