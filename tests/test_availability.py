"""Tests for the availability query engine"""

from datetime import date, time

import pytest
from sqlalchemy import select

from tablebook.errors import ValidationError
from tablebook.models.reservation import Reservation
from tablebook.models.restaurant import OperatingHours, RestaurantTable
from tablebook.services import availability


MONDAY = date(2025, 6, 2)
TUESDAY = date(2025, 6, 3)


@pytest.fixture
async def dining_room(test_db, bistro):
    """Adds a 2-seat and a second 4-seat table to the Bistro"""
    test_db.add_all([
        RestaurantTable(restaurant_id=bistro.id, table_number="T2", capacity=2),
        RestaurantTable(restaurant_id=bistro.id, table_number="T3", capacity=4),
    ])
    await test_db.commit()
    return bistro


async def _book(db, customer_id, table_id, restaurant_id, day, at, status="pending"):
    db.add(
        Reservation(
            customer_id=customer_id,
            restaurant_id=restaurant_id,
            table_id=table_id,
            reservation_date=day,
            reservation_time=at,
            party_size=2,
            status=status,
        )
    )
    await db.commit()


def test_day_name_is_derived_from_date():
    assert availability.day_name(MONDAY) == "Monday"
    assert availability.day_name(date(2025, 6, 8)) == "Sunday"


def test_normalize_time_truncates_to_minute():
    assert availability.normalize_time(time(19, 0, 0, 123456)) == time(19, 0)
    assert availability.normalize_time(time(19, 0, 30)) == time(19, 0)


@pytest.mark.asyncio
async def test_free_tables_ordered_by_capacity_then_id(test_db, dining_room):
    tables = await availability.free_tables(test_db, dining_room.id, MONDAY, time(19, 0), 2)

    assert [t.table_number for t in tables] == ["T2", "T1", "T3"]


@pytest.mark.asyncio
async def test_free_tables_filters_by_capacity(test_db, dining_room):
    tables = await availability.free_tables(test_db, dining_room.id, MONDAY, time(19, 0), 3)

    assert [t.table_number for t in tables] == ["T1", "T3"]


@pytest.mark.asyncio
async def test_active_reservation_takes_table_at_exact_slot(test_db, dining_room, customer):
    t1 = await test_db.scalar(
        select(RestaurantTable.id).where(
            RestaurantTable.restaurant_id == dining_room.id,
            RestaurantTable.table_number == "T1",
        )
    )
    await _book(test_db, customer.id, t1, dining_room.id, MONDAY, time(19, 0), status="confirmed")

    at_slot = await availability.free_tables(test_db, dining_room.id, MONDAY, time(19, 0), 4)
    minute_later = await availability.free_tables(test_db, dining_room.id, MONDAY, time(19, 1), 4)

    assert [t.table_number for t in at_slot] == ["T3"]
    assert [t.table_number for t in minute_later] == ["T1", "T3"]


@pytest.mark.asyncio
async def test_inactive_reservations_do_not_take_table(test_db, bistro, bistro_table, customer):
    table_id = bistro_table.id
    await _book(test_db, customer.id, table_id, bistro.id, MONDAY, time(19, 0), status="cancelled")
    await _book(test_db, customer.id, table_id, bistro.id, MONDAY, time(19, 0), status="completed")

    tables = await availability.free_tables(test_db, bistro.id, MONDAY, time(19, 0), 4)

    assert [t.id for t in tables] == [table_id]


@pytest.mark.asyncio
async def test_is_open_is_inclusive_at_both_ends(test_db, bistro):
    assert await availability.is_open(test_db, bistro.id, MONDAY, time(9, 0))
    assert await availability.is_open(test_db, bistro.id, MONDAY, time(22, 0))
    assert not await availability.is_open(test_db, bistro.id, MONDAY, time(8, 59))
    assert not await availability.is_open(test_db, bistro.id, MONDAY, time(22, 1))


@pytest.mark.asyncio
async def test_is_open_false_without_hours_for_weekday(test_db, bistro):
    assert not await availability.is_open(test_db, bistro.id, TUESDAY, time(12, 0))


@pytest.mark.asyncio
async def test_find_availability_with_time(test_db, bistro):
    result = await availability.find_availability(test_db, bistro.id, MONDAY, time(19, 0), 4)

    assert result.day_of_week == "Monday"
    assert result.is_open is True
    assert result.available_times == ["09:00"]
    assert [t.table_number for t in result.candidate_tables] == ["T1"]
    assert result.has_availability


@pytest.mark.asyncio
async def test_find_availability_closed_at_time(test_db, bistro):
    result = await availability.find_availability(test_db, bistro.id, MONDAY, time(23, 0), 2)

    assert result.is_open is False
    assert result.candidate_tables == []
    assert not result.has_availability


@pytest.mark.asyncio
async def test_find_availability_without_time(test_db, dining_room):
    result = await availability.find_availability(test_db, dining_room.id, MONDAY, party_size=3)

    assert result.is_open is True
    assert [t.table_number for t in result.candidate_tables] == ["T1", "T3"]


@pytest.mark.asyncio
async def test_find_availability_closed_weekday(test_db, bistro):
    result = await availability.find_availability(test_db, bistro.id, TUESDAY)

    assert result.day_of_week == "Tuesday"
    assert result.is_open is False
    assert result.available_times == []


@pytest.mark.asyncio
async def test_find_availability_unknown_restaurant(test_db):
    result = await availability.find_availability(test_db, 9999, MONDAY, time(19, 0), 2)

    assert result.is_open is False
    assert result.candidate_tables == []
    assert result.available_times == []


@pytest.mark.asyncio
async def test_opening_times_sorted_and_formatted(test_db, bistro):
    test_db.add(
        OperatingHours(
            restaurant_id=bistro.id,
            day_of_week="Sunday",
            opening_time=time(7, 30),
            closing_time=time(14, 0),
        )
    )
    await test_db.commit()

    assert await availability.opening_times(test_db, bistro.id, date(2025, 6, 8)) == ["07:30"]


@pytest.mark.asyncio
async def test_party_size_must_be_positive(test_db, bistro):
    with pytest.raises(ValidationError):
        await availability.find_availability(test_db, bistro.id, MONDAY, time(19, 0), 0)


@pytest.mark.asyncio
async def test_find_availability_hides_unapproved_restaurant(test_db, bistro):
    bistro.is_approved = False
    await test_db.commit()

    result = await availability.find_availability(test_db, bistro.id, MONDAY, time(19, 0), 2)

    assert result.is_open is False
    assert result.available_times == []
    assert result.candidate_tables == []
