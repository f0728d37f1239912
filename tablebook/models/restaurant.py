"""Restaurant, operating hours and dining table models"""

from datetime import datetime
from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    Time,
    Numeric,
    ForeignKey,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from tablebook.database import Base


DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


class Restaurant(Base):
    """Restaurant listing owned by a manager, visible once approved"""
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    manager_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    name = Column(String(255), nullable=False)
    description = Column(Text)
    cuisine_type = Column(String(100))

    # Location
    address_line1 = Column(String(255))
    address_line2 = Column(String(255))
    city = Column(String(100))
    state = Column(String(50))
    zip_code = Column(String(20))
    latitude = Column(Numeric(10, 7))
    longitude = Column(Numeric(10, 7))

    # Contact
    phone = Column(String(20))
    email = Column(String(255))
    website = Column(String(255))

    cost_rating = Column(Integer, default=2)  # 1 ($) to 4 ($$$$)

    # Owned by the admin approval workflow
    is_approved = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    manager = relationship("User", back_populates="restaurants")
    operating_hours = relationship(
        "OperatingHours", back_populates="restaurant", cascade="all, delete-orphan"
    )
    tables = relationship(
        "RestaurantTable",
        back_populates="restaurant",
        cascade="all, delete-orphan",
        order_by="RestaurantTable.table_number",
    )
    reservations = relationship(
        "Reservation", back_populates="restaurant", cascade="all, delete-orphan"
    )
    reviews = relationship("Review", back_populates="restaurant", cascade="all, delete-orphan")


class OperatingHours(Base):
    """
    Weekly opening interval, one row per day of week.
    Closing past midnight is not supported.
    """
    __tablename__ = "operating_hours"

    id = Column(Integer, primary_key=True, autoincrement=True)
    restaurant_id = Column(
        Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False
    )
    day_of_week = Column(String(10), nullable=False)  # "Monday" .. "Sunday"
    opening_time = Column(Time, nullable=False)
    closing_time = Column(Time, nullable=False)

    restaurant = relationship("Restaurant", back_populates="operating_hours")

    __table_args__ = (
        UniqueConstraint("restaurant_id", "day_of_week", name="uq_operating_hours_restaurant_day"),
    )


class RestaurantTable(Base):
    """Bookable dining table"""
    __tablename__ = "tables"

    id = Column(Integer, primary_key=True, autoincrement=True)
    restaurant_id = Column(
        Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False
    )
    table_number = Column(String(20), nullable=False)
    capacity = Column(Integer, nullable=False)

    restaurant = relationship("Restaurant", back_populates="tables")
    reservations = relationship(
        "Reservation", back_populates="table", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("restaurant_id", "table_number", name="uq_tables_restaurant_number"),
    )
