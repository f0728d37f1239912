"""Reservation booking and management API endpoints"""

from datetime import date, time
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tablebook.database import get_db
from tablebook.errors import ValidationError
from tablebook.models.reservation import Reservation
from tablebook.models.user import UserRole
from tablebook.schemas.reservation import (
    ReservationCreate,
    ReservationUpdate,
    ReservationResponse,
    ReservationListResponse,
    ReservationStatsResponse,
    StatusCount,
    AvailabilityResponse,
)
from tablebook.schemas.table import TableResponse
from tablebook.services.availability import find_availability
from tablebook.services.booking import BookingService
from tablebook.services.clock import SystemClock, get_clock
from tablebook.services.lifecycle import Identity, LifecycleService
from tablebook.services.notifications import CeleryNotifier, get_notifier
from tablebook.api.auth import get_identity, require_role
from tablebook.api.restaurants import get_restaurant_or_404, verify_restaurant_access

router = APIRouter()


def get_booking_service(
    db: AsyncSession = Depends(get_db),
    clock: SystemClock = Depends(get_clock),
    notifier: CeleryNotifier = Depends(get_notifier),
) -> BookingService:
    return BookingService(db, clock, notifier)


def get_lifecycle_service(
    db: AsyncSession = Depends(get_db),
    clock: SystemClock = Depends(get_clock),
    notifier: CeleryNotifier = Depends(get_notifier),
) -> LifecycleService:
    return LifecycleService(db, clock, notifier)


@router.get("/availability", response_model=AvailabilityResponse)
async def check_availability(
    restaurant_id: int,
    availability_date: date = Query(..., alias="date"),
    availability_time: Optional[time] = Query(None, alias="time"),
    party_size: Optional[int] = Query(None, ge=1),
    day_of_week: Optional[str] = None,  # accepted for older clients; derived from date
    db: AsyncSession = Depends(get_db),
):
    """Opening times and candidate tables of a restaurant on a date"""
    result = await find_availability(
        db, restaurant_id, availability_date, availability_time, party_size
    )
    return AvailabilityResponse(
        restaurant_id=result.restaurant_id,
        date=result.date,
        day_of_week=result.day_of_week,
        time=availability_time,
        party_size=party_size,
        is_open=result.is_open,
        available=result.has_availability,
        available_times=result.available_times,
        candidate_tables=[TableResponse.model_validate(t) for t in result.candidate_tables],
    )


@router.post("", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    reservation_data: ReservationCreate,
    actor: Identity = Depends(require_role(UserRole.CUSTOMER)),
    booking: BookingService = Depends(get_booking_service),
):
    """Book the smallest free table that seats the party"""
    return await booking.create_reservation(
        customer_id=actor.user_id,
        restaurant_id=reservation_data.restaurant_id,
        reservation_date=reservation_data.reservation_date,
        reservation_time=reservation_data.reservation_time,
        party_size=reservation_data.party_size,
        special_request=reservation_data.special_request,
    )


@router.get("/me", response_model=List[ReservationResponse])
async def list_my_reservations(
    actor: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    """Reservations made by the current user, latest slot first"""
    result = await db.execute(
        select(Reservation)
        .where(Reservation.customer_id == actor.user_id)
        .order_by(Reservation.reservation_date.desc(), Reservation.reservation_time.desc())
    )
    return result.scalars().all()


@router.get("/restaurant/{restaurant_id}", response_model=ReservationListResponse)
async def list_restaurant_reservations(
    restaurant_id: int,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    reservation_date: Optional[date] = Query(None, alias="date"),
    status: Optional[str] = None,
    actor: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    """List reservations of a restaurant with pagination"""
    restaurant = await get_restaurant_or_404(db, restaurant_id)
    verify_restaurant_access(restaurant, actor)

    query = select(Reservation).where(Reservation.restaurant_id == restaurant_id)
    count_query = select(func.count(Reservation.id)).where(Reservation.restaurant_id == restaurant_id)

    if reservation_date:
        query = query.where(Reservation.reservation_date == reservation_date)
        count_query = count_query.where(Reservation.reservation_date == reservation_date)

    if status:
        query = query.where(Reservation.status == status)
        count_query = count_query.where(Reservation.status == status)

    total = await db.scalar(count_query)

    offset = (page - 1) * page_size
    query = (
        query.order_by(
            Reservation.reservation_date,
            Reservation.reservation_time,
            Reservation.id,
        )
        .offset(offset)
        .limit(page_size)
    )
    result = await db.execute(query)

    return ReservationListResponse(
        items=result.scalars().all(),
        total=total or 0,
        page=page,
        page_size=page_size,
    )


@router.get("/restaurant/{restaurant_id}/stats", response_model=ReservationStatsResponse)
async def get_reservation_stats(
    restaurant_id: int,
    actor: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    """Reservation counts by status"""
    restaurant = await get_restaurant_or_404(db, restaurant_id)
    verify_restaurant_access(restaurant, actor)

    result = await db.execute(
        select(Reservation.status, func.count(Reservation.id))
        .where(Reservation.restaurant_id == restaurant_id)
        .group_by(Reservation.status)
        .order_by(Reservation.status)
    )
    by_status = [StatusCount(status=s, count=c) for s, c in result.all()]

    return ReservationStatsResponse(
        restaurant_id=restaurant_id,
        total=sum(item.count for item in by_status),
        by_status=by_status,
    )


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: int,
    actor: Identity = Depends(get_identity),
    lifecycle: LifecycleService = Depends(get_lifecycle_service),
):
    """Get reservation details"""
    return await lifecycle.get_reservation(reservation_id, actor)


@router.patch("/{reservation_id}", response_model=ReservationResponse)
async def update_reservation(
    reservation_id: int,
    update_data: ReservationUpdate,
    actor: Identity = Depends(get_identity),
    lifecycle: LifecycleService = Depends(get_lifecycle_service),
):
    """Change the status of a reservation and/or its manager notes"""
    fields = update_data.model_dump(exclude_unset=True)

    if update_data.status is not None:
        return await lifecycle.transition(
            reservation_id, actor, update_data.status, notes=fields.get("notes")
        )
    if "notes" in fields:
        return await lifecycle.update_notes(reservation_id, actor, fields["notes"])

    raise ValidationError("Nothing to update")


@router.delete("/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_reservation(
    reservation_id: int,
    actor: Identity = Depends(get_identity),
    lifecycle: LifecycleService = Depends(get_lifecycle_service),
):
    """Cancel a reservation; its table is free again immediately"""
    await lifecycle.cancel(reservation_id, actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
