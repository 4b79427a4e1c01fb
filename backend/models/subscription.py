"""Pydantic models for users, subscriptions and settings."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from models.types import EMAIL_PATTERN, FoodID, SubscriptionID, UserID


class User(BaseModel):
    """Identity anchor; linked to the external identity provider when known."""

    id: UserID
    email: str = Field(..., pattern=EMAIL_PATTERN)
    supabase_id: str | None = None
    created_at: datetime | None = None


class Subscription(BaseModel):
    """A user's standing interest in a food."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: SubscriptionID
    user_id: UserID
    food_id: FoodID = Field(..., min_length=1)
    # Display label captured at subscribe time; intentionally not joined from menu_items
    food_name: str = Field(..., min_length=1)
    is_active: bool = True
    created_at: datetime | None = None


class UserSettings(BaseModel):
    """Per-user notification preferences."""

    user_id: UserID | None = None
    email_notifications: bool = True
    updated_at: datetime | None = None


class UserSubscriptions(BaseModel):
    """A user with their active subscriptions (input to matching)."""

    user_id: UserID
    email: str
    subscriptions: list[Subscription] = Field(default_factory=list)
