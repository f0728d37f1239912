"""Database models"""

from tablebook.models.user import User, UserRole
from tablebook.models.restaurant import Restaurant, OperatingHours, RestaurantTable, DAY_NAMES
from tablebook.models.review import Review
from tablebook.models.reservation import Reservation, ACTIVE_STATUSES

__all__ = [
    "User",
    "UserRole",
    "Restaurant",
    "OperatingHours",
    "RestaurantTable",
    "DAY_NAMES",
    "Review",
    "Reservation",
    "ACTIVE_STATUSES",
]
