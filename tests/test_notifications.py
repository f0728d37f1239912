"""Tests for notification tasks and the Celery notifier"""

from datetime import date, datetime, time

import pytest
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from tablebook.jobs import tasks
from tablebook.models.reservation import Reservation
from tablebook.services.notifications import CeleryNotifier


MONDAY = date(2025, 6, 2)


async def _reservation(db, customer_id, restaurant_id, table_id, at, status="confirmed", day=MONDAY):
    reservation = Reservation(
        customer_id=customer_id,
        restaurant_id=restaurant_id,
        table_id=table_id,
        reservation_date=day,
        reservation_time=at,
        party_size=2,
        status=status,
    )
    db.add(reservation)
    await db.commit()
    return reservation.id


@pytest.mark.asyncio
async def test_reservation_message_names_restaurant_and_slot(test_db, bistro, bistro_table, customer):
    reservation_id = await _reservation(test_db, customer.id, bistro.id, bistro_table.id, time(19, 30))
    reservation = await test_db.scalar(
        select(Reservation)
        .where(Reservation.id == reservation_id)
        .options(selectinload(Reservation.restaurant))
    )

    message = tasks.build_reservation_message(reservation, "confirmed")

    assert message == (
        "Your reservation at Bistro is confirmed! 2 guests on Monday, June 02 at 07:30 PM."
    )


@pytest.mark.asyncio
async def test_due_reminders_fall_inside_window(test_db, bistro, bistro_table, customer):
    ids = dict(customer_id=customer.id, restaurant_id=bistro.id, table_id=bistro_table.id)
    soon = await _reservation(test_db, at=time(12, 0), **ids)
    await _reservation(test_db, at=time(8, 0), **ids)  # already started
    await _reservation(test_db, at=time(16, 0), **ids)  # beyond window
    await _reservation(test_db, at=time(11, 0), status="pending", **ids)
    reminded = await _reservation(test_db, at=time(12, 30), **ids)

    already = await test_db.get(Reservation, reminded)
    already.reminder_sent = datetime(2025, 6, 2, 8, 0)
    await test_db.commit()

    due = await tasks.find_due_reminders(test_db, datetime(2025, 6, 2, 9, 0), window_hours=4)

    assert [r.id for r in due] == [soon]
    assert due[0].customer.phone == "+15551234567"


@pytest.mark.asyncio
async def test_due_reminders_cross_midnight(test_db, bistro, bistro_table, customer):
    ids = dict(customer_id=customer.id, restaurant_id=bistro.id, table_id=bistro_table.id)
    early = await _reservation(test_db, at=time(0, 30), day=date(2025, 6, 3), **ids)

    due = await tasks.find_due_reminders(test_db, datetime(2025, 6, 2, 22, 0), window_hours=4)

    assert [r.id for r in due] == [early]


def test_enqueue_failure_is_swallowed(monkeypatch):
    def broker_down(*args, **kwargs):
        raise ConnectionError("redis unreachable")

    monkeypatch.setattr(tasks.send_reservation_notification, "delay", broker_down)
    monkeypatch.setattr(tasks.send_restaurant_approval_notification, "delay", broker_down)

    notifier = CeleryNotifier()
    notifier.reservation_event(1, "created")
    notifier.restaurant_approved(1)


def test_notifier_enqueues_task(monkeypatch):
    sent = []
    monkeypatch.setattr(tasks.send_reservation_notification, "delay", lambda *args: sent.append(args))

    CeleryNotifier().reservation_event(7, "cancelled")

    assert sent == [(7, "cancelled")]


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
