"""Restaurant, operating hours and review schemas"""

from datetime import datetime, time
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from tablebook.schemas.table import TableResponse


DayName = Literal["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


class OperatingHoursIn(BaseModel):
    """Opening interval for one weekday"""
    day_of_week: DayName
    opening_time: time
    closing_time: time

    @model_validator(mode="after")
    def check_interval(self):
        if self.opening_time >= self.closing_time:
            raise ValueError("opening_time must be earlier than closing_time")
        return self


class OperatingHoursResponse(BaseModel):
    day_of_week: str
    opening_time: time
    closing_time: time

    class Config:
        from_attributes = True


def _unique_days(hours: Optional[List[OperatingHoursIn]]) -> Optional[List[OperatingHoursIn]]:
    if hours is None:
        return hours
    days = [h.day_of_week for h in hours]
    if len(days) != len(set(days)):
        raise ValueError("operating_hours may list each day only once")
    return hours


class RestaurantCreate(BaseModel):
    """Create restaurant request"""
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    cuisine_type: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    cost_rating: int = Field(default=2, ge=1, le=4)
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    operating_hours: List[OperatingHoursIn] = []

    @field_validator("operating_hours")
    @classmethod
    def check_unique_days(cls, hours):
        return _unique_days(hours)


class RestaurantUpdate(BaseModel):
    """Update restaurant request; operating_hours, when given, replace all hours"""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    cuisine_type: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    cost_rating: Optional[int] = Field(default=None, ge=1, le=4)
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    operating_hours: Optional[List[OperatingHoursIn]] = None

    @field_validator("operating_hours")
    @classmethod
    def check_unique_days(cls, hours):
        return _unique_days(hours)

    @field_validator("name")
    @classmethod
    def name_not_null(cls, value):
        # Omit the field to keep the current name
        if value is None:
            raise ValueError("name cannot be null")
        return value


class RestaurantResponse(BaseModel):
    """Restaurant response"""
    id: int
    manager_id: int
    name: str
    description: Optional[str]
    cuisine_type: Optional[str]
    address_line1: Optional[str]
    address_line2: Optional[str]
    city: Optional[str]
    state: Optional[str]
    zip_code: Optional[str]
    phone: Optional[str]
    email: Optional[str]
    website: Optional[str]
    cost_rating: Optional[int]
    latitude: Optional[Decimal]
    longitude: Optional[Decimal]
    is_approved: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RestaurantSummaryResponse(RestaurantResponse):
    """Listing entry with review and booking aggregates"""
    reviews_count: int = 0
    average_rating: Optional[float] = None
    bookings_today: int = 0
    available_times: List[str] = []


class ReviewCreate(BaseModel):
    """Create review request"""
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None


class ReviewResponse(BaseModel):
    """Review response"""
    id: int
    restaurant_id: int
    customer_id: int
    rating: int
    comment: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class RestaurantDetailResponse(RestaurantResponse):
    """Restaurant with hours, tables and latest reviews"""
    reviews_count: int = 0
    average_rating: Optional[float] = None
    operating_hours: List[OperatingHoursResponse] = []
    tables: List[TableResponse] = []
    reviews: List[ReviewResponse] = []
