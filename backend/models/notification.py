"""Pydantic models for the notification system."""

from pydantic import BaseModel, Field

from models.types import DateString, FoodID, UserID


class MenuMatch(BaseModel):
    """An active subscription paired with a menu appearance on the target date."""

    food_id: FoodID
    food_name: str
    dining_hall: str
    meal: str
    date: DateString


class UserNotification(BaseModel):
    """Everything one user should hear about in a single email."""

    email: str
    user_id: UserID | None = None
    matches: list[MenuMatch] = Field(default_factory=list)


class DeliveryResult(BaseModel):
    """Outcome of a single mail transport send."""

    success: bool
    email_id: str | None = None
    error: str | None = None
