"""Pydantic schemas for request/response validation"""

from tablebook.schemas.auth import (
    Token,
    TokenPayload,
    RefreshRequest,
    UserCreate,
    UserResponse,
)
from tablebook.schemas.table import (
    TableCreate,
    TableUpdate,
    TableResponse,
)
from tablebook.schemas.restaurant import (
    OperatingHoursIn,
    OperatingHoursResponse,
    RestaurantCreate,
    RestaurantUpdate,
    RestaurantResponse,
    RestaurantSummaryResponse,
    RestaurantDetailResponse,
    ReviewCreate,
    ReviewResponse,
)
from tablebook.schemas.reservation import (
    ReservationCreate,
    ReservationUpdate,
    ReservationResponse,
    ReservationListResponse,
    ReservationStatsResponse,
    AvailabilityResponse,
)

__all__ = [
    "Token",
    "TokenPayload",
    "RefreshRequest",
    "UserCreate",
    "UserResponse",
    "TableCreate",
    "TableUpdate",
    "TableResponse",
    "OperatingHoursIn",
    "OperatingHoursResponse",
    "RestaurantCreate",
    "RestaurantUpdate",
    "RestaurantResponse",
    "RestaurantSummaryResponse",
    "RestaurantDetailResponse",
    "ReviewCreate",
    "ReviewResponse",
    "ReservationCreate",
    "ReservationUpdate",
    "ReservationResponse",
    "ReservationListResponse",
    "ReservationStatsResponse",
    "AvailabilityResponse",
]
