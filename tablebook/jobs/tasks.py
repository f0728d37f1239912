"""Background job tasks"""

from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import List
import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import selectinload
from sqlalchemy.pool import NullPool
import structlog

from tablebook.jobs.celery_app import celery_app
from tablebook.config import settings
from tablebook.models.reservation import Reservation

logger = structlog.get_logger()


MESSAGES = {
    "created": "Your reservation request at {restaurant} for {party_size} guests on {when} "
               "has been received.",
    "confirmed": "Your reservation at {restaurant} is confirmed! {party_size} guests on {when}.",
    "cancelled": "Your reservation at {restaurant} on {when} has been cancelled.",
    "reminder": "Reminder: Your reservation at {restaurant} is coming up! "
                "{party_size} guests on {when}. See you soon!",
}


def run_async(coro):
    """Helper to run async functions in sync context"""
    return asyncio.run(coro)


@asynccontextmanager
async def task_session():
    """Session on a throwaway engine; each task runs on its own event loop"""
    engine = create_async_engine(settings.database_url, poolclass=NullPool)
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            yield session
    finally:
        await engine.dispose()


def format_slot(reservation: Reservation) -> str:
    starts_at = datetime.combine(reservation.reservation_date, reservation.reservation_time)
    return starts_at.strftime("%A, %B %d at %I:%M %p")


def build_reservation_message(reservation: Reservation, event: str) -> str:
    """SMS body for a reservation event (created, confirmed, cancelled, reminder)"""
    return MESSAGES[event].format(
        restaurant=reservation.restaurant.name,
        party_size=reservation.party_size,
        when=format_slot(reservation),
    )


def send_sms(to: str, body: str) -> None:
    from twilio.rest import Client as TwilioClient

    client = TwilioClient(settings.twilio_account_sid, settings.twilio_auth_token)
    client.messages.create(
        body=body,
        from_=settings.twilio_phone_number,
        to=to,
    )


async def find_due_reminders(
    db: AsyncSession,
    now: datetime,
    window_hours: int,
) -> List[Reservation]:
    """Confirmed, not yet reminded reservations starting within the window"""
    window_end = now + timedelta(hours=window_hours)

    result = await db.execute(
        select(Reservation)
        .where(
            Reservation.status == "confirmed",
            Reservation.reminder_sent.is_(None),
            Reservation.reservation_date >= now.date(),
            Reservation.reservation_date <= window_end.date(),
        )
        .options(selectinload(Reservation.customer), selectinload(Reservation.restaurant))
        .order_by(Reservation.reservation_date, Reservation.reservation_time)
    )

    due = []
    for reservation in result.scalars().all():
        starts_at = datetime.combine(reservation.reservation_date, reservation.reservation_time)
        if now < starts_at <= window_end:
            due.append(reservation)
    return due


@celery_app.task(name="send_reservation_notification")
def send_reservation_notification(reservation_id: int, event: str):
    """Text the customer about a created, confirmed or cancelled reservation"""
    logger.info("Sending reservation notification", reservation_id=reservation_id, notification_event=event)

    async def _send():
        async with task_session() as db:
            reservation = await db.scalar(
                select(Reservation)
                .where(Reservation.id == reservation_id)
                .options(selectinload(Reservation.customer), selectinload(Reservation.restaurant))
            )
            if not reservation or not reservation.customer.phone:
                return

            send_sms(reservation.customer.phone, build_reservation_message(reservation, event))

    try:
        run_async(_send())
    except Exception as e:
        logger.error(
            "Failed to send reservation notification",
            reservation_id=reservation_id,
            notification_event=event,
            error=str(e),
        )


@celery_app.task(name="send_restaurant_approval_notification")
def send_restaurant_approval_notification(restaurant_id: int):
    """Text the manager that their restaurant is now listed"""
    logger.info("Sending approval notification", restaurant_id=restaurant_id)

    async def _send():
        from tablebook.models.restaurant import Restaurant

        async with task_session() as db:
            restaurant = await db.scalar(
                select(Restaurant)
                .where(Restaurant.id == restaurant_id)
                .options(selectinload(Restaurant.manager))
            )
            if not restaurant or not restaurant.manager.phone:
                return

            send_sms(
                restaurant.manager.phone,
                f"{restaurant.name} has been approved and is now open for reservations.",
            )

    try:
        run_async(_send())
    except Exception as e:
        logger.error(
            "Failed to send approval notification",
            restaurant_id=restaurant_id,
            error=str(e),
        )


@celery_app.task(name="send_reservation_reminders")
def send_reservation_reminders():
    """Send reminders for upcoming reservations"""
    logger.info("Sending reservation reminders")

    async def _send_reminders():
        async with task_session() as db:
            reservations = await find_due_reminders(
                db, datetime.now(), settings.reminder_window_hours
            )

            for reservation in reservations:
                if not reservation.customer.phone:
                    continue
                try:
                    send_sms(
                        reservation.customer.phone,
                        build_reservation_message(reservation, "reminder"),
                    )

                    reservation.reminder_sent = datetime.utcnow()
                    await db.commit()

                    logger.info("Sent reservation reminder", reservation_id=reservation.id)

                except Exception as e:
                    logger.error(
                        "Failed to send reservation reminder",
                        reservation_id=reservation.id,
                        error=str(e),
                    )

    run_async(_send_reminders())
