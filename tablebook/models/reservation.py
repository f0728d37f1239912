"""Reservation model"""

from datetime import datetime
from sqlalchemy import Column, String, Integer, Date, Time, DateTime, ForeignKey, Text, Index, text
from sqlalchemy.orm import relationship

from tablebook.database import Base


# Statuses that hold a table; must match the index predicate below
ACTIVE_STATUSES = ("pending", "confirmed")

_ACTIVE_PREDICATE = text("status IN ('pending', 'confirmed')")

ACTIVE_SLOT_INDEX = "uq_reservations_active_slot"


class Reservation(Base):
    """Table reservations"""
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    restaurant_id = Column(
        Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False
    )
    table_id = Column(Integer, ForeignKey("tables.id", ondelete="CASCADE"), nullable=False)

    # Slot
    reservation_date = Column(Date, nullable=False)
    reservation_time = Column(Time, nullable=False)
    party_size = Column(Integer, nullable=False)

    # Status
    status = Column(String(20), default="pending", nullable=False)  # pending, confirmed, completed, cancelled

    # Notes
    special_request = Column(Text)
    notes = Column(Text)  # Manager notes

    # SMS reminder
    reminder_sent = Column(DateTime)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    customer = relationship("User", back_populates="reservations")
    restaurant = relationship("Restaurant", back_populates="reservations")
    table = relationship("RestaurantTable", back_populates="reservations")

    __table_args__ = (
        # At most one active reservation per table and slot
        Index(
            ACTIVE_SLOT_INDEX,
            "table_id",
            "reservation_date",
            "reservation_time",
            unique=True,
            postgresql_where=_ACTIVE_PREDICATE,
            sqlite_where=_ACTIVE_PREDICATE,
        ),
        Index("idx_reservations_restaurant_date", "restaurant_id", "reservation_date"),
    )
