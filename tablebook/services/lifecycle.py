"""
Reservation lifecycle.

    pending   -> confirmed | cancelled   (manager, admin, system)
    confirmed -> completed | cancelled   (manager, admin)

Customers may only cancel their own reservations, and only before the
reserved date and time. Completed and cancelled are terminal; cancelling a
cancelled reservation is accepted as a no-op. Cancelling frees the table at
once because availability is computed from the current status.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tablebook.errors import (
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from tablebook.models.reservation import Reservation
from tablebook.models.user import UserRole
from tablebook.services.clock import SystemClock
from tablebook.services.notifications import CeleryNotifier

logger = structlog.get_logger()


ALLOWED_TRANSITIONS = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}

STATUSES = tuple(ALLOWED_TRANSITIONS)
TERMINAL_STATUSES = ("completed", "cancelled")
INITIAL_STATUSES = ("pending", "confirmed")

# Actor used by automated jobs; may only settle pending reservations
SYSTEM_ROLE = "system"

NOTIFY_ON = ("confirmed", "cancelled")


@dataclass(frozen=True)
class Identity:
    """Caller identity as issued by the auth layer"""
    user_id: Optional[int]
    role: str


class LifecycleService:
    """Status transitions and access rules for existing reservations"""

    def __init__(self, db: AsyncSession, clock: SystemClock, notifier: CeleryNotifier):
        self.db = db
        self.clock = clock
        self.notifier = notifier

    async def get_reservation(self, reservation_id: int, actor: Identity) -> Reservation:
        """Fetch a reservation visible to the actor"""
        reservation = await self._load(reservation_id)
        if not (self._is_staff_for(reservation, actor) or self._is_owner(reservation, actor)):
            raise ForbiddenError("Not authorized to view this reservation")
        return reservation

    async def transition(
        self,
        reservation_id: int,
        actor: Identity,
        new_status: str,
        notes: Optional[str] = None,
    ) -> Reservation:
        if new_status not in STATUSES:
            raise ValidationError(f"Unknown reservation status: {new_status}")

        reservation = await self._load(reservation_id, lock=True)
        self._authorize(reservation, actor, new_status)

        current = reservation.status
        if current == "cancelled" and new_status == "cancelled":
            # Nothing to write; end the transaction to release the row lock
            await self.db.commit()
            return reservation

        if new_status not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransitionError(
                f"Cannot change a {current} reservation to {new_status}"
            )
        if actor.role == SYSTEM_ROLE and current != "pending":
            raise InvalidTransitionError("Automated transitions only apply to pending reservations")
        if actor.role == UserRole.CUSTOMER.value and self._has_started(reservation):
            raise InvalidTransitionError("Past reservations cannot be cancelled")

        reservation.status = new_status
        if notes is not None:
            reservation.notes = notes
        await self.db.commit()
        await self.db.refresh(reservation)

        logger.info(
            "Reservation status changed",
            reservation_id=reservation.id,
            from_status=current,
            to_status=new_status,
            actor_id=actor.user_id,
            actor_role=actor.role,
        )
        if new_status in NOTIFY_ON:
            self.notifier.reservation_event(reservation.id, new_status)
        return reservation

    async def cancel(self, reservation_id: int, actor: Identity) -> Reservation:
        return await self.transition(reservation_id, actor, "cancelled")

    async def update_notes(self, reservation_id: int, actor: Identity, notes: Optional[str]) -> Reservation:
        """Manager notes only; status is left untouched"""
        reservation = await self._load(reservation_id, lock=True)
        if not self._is_staff_for(reservation, actor):
            raise ForbiddenError("Only the restaurant manager can edit notes")
        reservation.notes = notes
        await self.db.commit()
        await self.db.refresh(reservation)
        return reservation

    async def _load(self, reservation_id: int, lock: bool = False) -> Reservation:
        query = (
            select(Reservation)
            .where(Reservation.id == reservation_id)
            .options(selectinload(Reservation.restaurant))
        )
        if lock:
            query = query.with_for_update(of=Reservation)
        reservation = await self.db.scalar(query)
        if reservation is None:
            raise NotFoundError("Reservation not found")
        return reservation

    def _authorize(self, reservation: Reservation, actor: Identity, new_status: str) -> None:
        if actor.role == SYSTEM_ROLE:
            return
        if actor.role == UserRole.CUSTOMER.value:
            if not self._is_owner(reservation, actor):
                raise ForbiddenError("Not authorized to modify this reservation")
            if new_status != "cancelled":
                raise ForbiddenError("Customers can only cancel reservations")
            return
        if not self._is_staff_for(reservation, actor):
            raise ForbiddenError("Not authorized to modify this reservation")

    @staticmethod
    def _is_owner(reservation: Reservation, actor: Identity) -> bool:
        return actor.role == UserRole.CUSTOMER.value and reservation.customer_id == actor.user_id

    @staticmethod
    def _is_staff_for(reservation: Reservation, actor: Identity) -> bool:
        if actor.role == UserRole.ADMIN.value:
            return True
        return (
            actor.role == UserRole.RESTAURANT_MANAGER.value
            and reservation.restaurant.manager_id == actor.user_id
        )

    def _has_started(self, reservation: Reservation) -> bool:
        starts_at = datetime.combine(reservation.reservation_date, reservation.reservation_time)
        return starts_at <= self.clock.now()
