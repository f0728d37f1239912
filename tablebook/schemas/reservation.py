"""Reservation schemas"""

from datetime import date as date_type, datetime, time as time_type
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from tablebook.schemas.table import TableResponse


ReservationStatus = Literal["pending", "confirmed", "completed", "cancelled"]


class ReservationCreate(BaseModel):
    """Create reservation request"""
    restaurant_id: int
    reservation_date: date_type
    reservation_time: time_type
    party_size: int = Field(ge=1)
    special_request: Optional[str] = None


class ReservationUpdate(BaseModel):
    """Status transition and/or manager notes"""
    status: Optional[ReservationStatus] = None
    notes: Optional[str] = None


class ReservationResponse(BaseModel):
    """Reservation response"""
    id: int
    customer_id: int
    restaurant_id: int
    table_id: int
    reservation_date: date_type
    reservation_time: time_type
    party_size: int
    status: str
    special_request: Optional[str]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ReservationListResponse(BaseModel):
    """Paginated reservation list"""
    items: List[ReservationResponse]
    total: int
    page: int
    page_size: int


class StatusCount(BaseModel):
    status: str
    count: int


class ReservationStatsResponse(BaseModel):
    """Reservation counts for a restaurant"""
    restaurant_id: int
    total: int
    by_status: List[StatusCount] = []


class AvailabilityResponse(BaseModel):
    """Availability check response"""
    restaurant_id: int
    date: date_type
    day_of_week: str
    time: Optional[time_type] = None
    party_size: Optional[int] = None
    is_open: bool
    available: bool
    available_times: List[str] = []
    candidate_tables: List[TableResponse] = []
