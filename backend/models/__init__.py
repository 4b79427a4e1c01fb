"""Pydantic models for data validation and type checking."""

from models.menu import (
    DistinctFoodSummary,
    FoodHistory,
    MenuItem,
    MenuItemCreate,
    Pagination,
)
from models.notification import DeliveryResult, MenuMatch, UserNotification
from models.subscription import Subscription, User, UserSettings, UserSubscriptions

__all__ = [
    "MenuItemCreate",
    "MenuItem",
    "DistinctFoodSummary",
    "Pagination",
    "FoodHistory",
    "User",
    "Subscription",
    "UserSettings",
    "UserSubscriptions",
    "MenuMatch",
    "UserNotification",
    "DeliveryResult",
]
