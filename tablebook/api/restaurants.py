"""Restaurant listing, search and management API endpoints"""

from datetime import date, time
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
import structlog

from tablebook.database import get_db
from tablebook.errors import ForbiddenError, NotFoundError
from tablebook.models.restaurant import DAY_NAMES, OperatingHours, Restaurant, RestaurantTable
from tablebook.models.review import Review
from tablebook.models.user import UserRole
from tablebook.schemas.restaurant import (
    RestaurantCreate,
    RestaurantUpdate,
    RestaurantResponse,
    RestaurantSummaryResponse,
    RestaurantDetailResponse,
    OperatingHoursResponse,
    ReviewCreate,
    ReviewResponse,
)
from tablebook.schemas.table import TableResponse
from tablebook.services.clock import SystemClock, get_clock
from tablebook.services.lifecycle import Identity
from tablebook.services.notifications import CeleryNotifier, get_notifier
from tablebook.services.search import SearchFilters, SearchHit, search_restaurants
from tablebook.api.auth import get_identity, require_role

router = APIRouter()
logger = structlog.get_logger()


async def get_restaurant_or_404(db: AsyncSession, restaurant_id: int) -> Restaurant:
    restaurant = await db.scalar(select(Restaurant).where(Restaurant.id == restaurant_id))
    if restaurant is None:
        raise NotFoundError("Restaurant not found")
    return restaurant


def verify_restaurant_access(restaurant: Restaurant, actor: Identity) -> None:
    """Only the managing user or an admin may change a restaurant"""
    if actor.role == UserRole.ADMIN.value:
        return
    if restaurant.manager_id != actor.user_id:
        raise ForbiddenError("Not authorized to manage this restaurant")


def _summary(hit: SearchHit) -> RestaurantSummaryResponse:
    base = RestaurantResponse.model_validate(hit.restaurant).model_dump()
    return RestaurantSummaryResponse(
        **base,
        reviews_count=hit.reviews_count,
        average_rating=hit.average_rating,
        bookings_today=hit.bookings_today,
        available_times=hit.available_times,
    )


def _hours_from(restaurant_id: int, hours) -> List[OperatingHours]:
    return [
        OperatingHours(
            restaurant_id=restaurant_id,
            day_of_week=h.day_of_week,
            opening_time=h.opening_time,
            closing_time=h.closing_time,
        )
        for h in hours
    ]


@router.get("", response_model=List[RestaurantSummaryResponse])
async def list_restaurants(
    db: AsyncSession = Depends(get_db),
    clock: SystemClock = Depends(get_clock),
):
    """List approved restaurants"""
    hits = await search_restaurants(db, SearchFilters(), today=clock.now().date())
    return [_summary(hit) for hit in hits]


@router.get("/search", response_model=List[RestaurantSummaryResponse])
async def search(
    search_date: Optional[date] = Query(None, alias="date"),
    search_time: Optional[time] = Query(None, alias="time"),
    party_size: Optional[int] = Query(None, ge=1),
    location: Optional[str] = None,
    cuisine_type: Optional[str] = None,
    price_range: Optional[int] = Query(None, ge=1, le=4),
    rating: Optional[float] = Query(None, ge=0, le=5),
    day_of_week: Optional[str] = None,  # accepted for older clients; derived from date
    db: AsyncSession = Depends(get_db),
    clock: SystemClock = Depends(get_clock),
):
    """Search approved restaurants, optionally only those with a free table"""
    filters = SearchFilters(
        location=location,
        cuisine_type=cuisine_type,
        price_range=price_range,
        rating=rating,
        date=search_date,
        time=search_time,
        party_size=party_size,
    )
    hits = await search_restaurants(db, filters, today=clock.now().date())
    return [_summary(hit) for hit in hits]


@router.get("/manager/list", response_model=List[RestaurantResponse])
async def list_my_restaurants(
    actor: Identity = Depends(require_role(UserRole.RESTAURANT_MANAGER)),
    db: AsyncSession = Depends(get_db),
):
    """Restaurants managed by the current user"""
    result = await db.execute(
        select(Restaurant)
        .where(Restaurant.manager_id == actor.user_id)
        .order_by(Restaurant.name)
    )
    return result.scalars().all()


@router.get("/pending", response_model=List[RestaurantResponse])
async def list_pending_restaurants(
    actor: Identity = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Restaurants awaiting approval (Admin only)"""
    result = await db.execute(
        select(Restaurant)
        .where(Restaurant.is_approved.is_(False))
        .order_by(Restaurant.created_at.desc())
    )
    return result.scalars().all()


@router.get("/{restaurant_id}", response_model=RestaurantDetailResponse)
async def get_restaurant(
    restaurant_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Restaurant details with operating hours, tables and latest reviews"""
    restaurant = await db.scalar(
        select(Restaurant)
        .where(Restaurant.id == restaurant_id)
        .options(selectinload(Restaurant.operating_hours), selectinload(Restaurant.tables))
    )
    if restaurant is None:
        raise NotFoundError("Restaurant not found")

    stats = await db.execute(
        select(func.count(Review.id), func.avg(Review.rating)).where(
            Review.restaurant_id == restaurant_id
        )
    )
    reviews_count, average_rating = stats.one()

    reviews = await db.execute(
        select(Review)
        .where(Review.restaurant_id == restaurant_id)
        .order_by(Review.created_at.desc())
        .limit(10)
    )

    hours = sorted(restaurant.operating_hours, key=lambda h: DAY_NAMES.index(h.day_of_week))

    return RestaurantDetailResponse(
        **RestaurantResponse.model_validate(restaurant).model_dump(),
        reviews_count=reviews_count or 0,
        average_rating=round(float(average_rating), 2) if average_rating is not None else None,
        operating_hours=[OperatingHoursResponse.model_validate(h) for h in hours],
        tables=[TableResponse.model_validate(t) for t in restaurant.tables],
        reviews=[ReviewResponse.model_validate(r) for r in reviews.scalars().all()],
    )


@router.post("", response_model=RestaurantResponse, status_code=status.HTTP_201_CREATED)
async def create_restaurant(
    restaurant_data: RestaurantCreate,
    actor: Identity = Depends(require_role(UserRole.RESTAURANT_MANAGER)),
    db: AsyncSession = Depends(get_db),
):
    """Create a restaurant; it stays hidden from search until approved"""
    restaurant = Restaurant(
        **restaurant_data.model_dump(exclude={"operating_hours"}),
        manager_id=actor.user_id,
        is_approved=False,
    )
    db.add(restaurant)
    await db.flush()

    db.add_all(_hours_from(restaurant.id, restaurant_data.operating_hours))
    await db.commit()
    await db.refresh(restaurant)

    logger.info("Restaurant created", restaurant_id=restaurant.id, manager_id=actor.user_id)
    return restaurant


@router.put("/{restaurant_id}", response_model=RestaurantResponse)
async def update_restaurant(
    restaurant_id: int,
    restaurant_data: RestaurantUpdate,
    actor: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    """Update restaurant details; supplied operating hours replace existing ones"""
    restaurant = await get_restaurant_or_404(db, restaurant_id)
    verify_restaurant_access(restaurant, actor)

    updates = restaurant_data.model_dump(exclude_unset=True, exclude={"operating_hours"})
    for field, value in updates.items():
        setattr(restaurant, field, value)

    if restaurant_data.operating_hours is not None:
        await db.execute(
            delete(OperatingHours).where(OperatingHours.restaurant_id == restaurant_id)
        )
        db.add_all(_hours_from(restaurant_id, restaurant_data.operating_hours))

    await db.commit()
    await db.refresh(restaurant)

    return restaurant


@router.delete("/{restaurant_id}")
async def delete_restaurant(
    restaurant_id: int,
    actor: Identity = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Delete a restaurant with its tables, hours, reservations and reviews (Admin only)"""
    restaurant = await get_restaurant_or_404(db, restaurant_id)
    await db.delete(restaurant)
    await db.commit()

    logger.info("Restaurant deleted", restaurant_id=restaurant_id, admin_id=actor.user_id)
    return {"message": "Restaurant deleted successfully"}


@router.put("/{restaurant_id}/approve", response_model=RestaurantResponse)
async def approve_restaurant(
    restaurant_id: int,
    actor: Identity = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
    notifier: CeleryNotifier = Depends(get_notifier),
):
    """Approve a restaurant so it appears in search (Admin only)"""
    restaurant = await get_restaurant_or_404(db, restaurant_id)
    restaurant.is_approved = True
    await db.commit()
    await db.refresh(restaurant)

    logger.info("Restaurant approved", restaurant_id=restaurant_id, admin_id=actor.user_id)
    notifier.restaurant_approved(restaurant_id)
    return restaurant


@router.get("/{restaurant_id}/tables", response_model=List[TableResponse])
async def list_restaurant_tables(
    restaurant_id: int,
    actor: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    """Tables of a restaurant, ordered by table number"""
    restaurant = await get_restaurant_or_404(db, restaurant_id)
    verify_restaurant_access(restaurant, actor)

    result = await db.execute(
        select(RestaurantTable)
        .where(RestaurantTable.restaurant_id == restaurant_id)
        .order_by(RestaurantTable.table_number)
    )
    return result.scalars().all()


@router.get("/{restaurant_id}/reviews", response_model=List[ReviewResponse])
async def list_reviews(
    restaurant_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Reviews of a restaurant, newest first"""
    await get_restaurant_or_404(db, restaurant_id)
    result = await db.execute(
        select(Review)
        .where(Review.restaurant_id == restaurant_id)
        .order_by(Review.created_at.desc())
    )
    return result.scalars().all()


@router.post(
    "/{restaurant_id}/reviews",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_review(
    restaurant_id: int,
    review_data: ReviewCreate,
    actor: Identity = Depends(require_role(UserRole.CUSTOMER)),
    db: AsyncSession = Depends(get_db),
):
    """Rate a restaurant"""
    restaurant = await get_restaurant_or_404(db, restaurant_id)
    if not restaurant.is_approved:
        raise NotFoundError("Restaurant not found")

    review = Review(
        restaurant_id=restaurant_id,
        customer_id=actor.user_id,
        rating=review_data.rating,
        comment=review_data.comment,
    )
    db.add(review)
    await db.commit()
    await db.refresh(review)

    return review
