"""Pydantic models for menu data."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from models.types import DATE_PATTERN, DateString, DiningHall, FoodID, Meal, MenuItemID


class MenuItemCreate(BaseModel):
    """One appearance of a food, before ID assignment."""

    model_config = ConfigDict(str_strip_whitespace=True)

    food_id: FoodID = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    date: DateString = Field(..., pattern=DATE_PATTERN)
    dining_hall: DiningHall
    meal: Meal

    def natural_key(self) -> tuple[str, str, str, str]:
        """Uniqueness key used for ingestion dedup."""
        return (self.food_id, self.date, self.dining_hall, self.meal)


class MenuItem(MenuItemCreate):
    """Complete menu item record from database."""

    id: MenuItemID
    created_at: datetime | None = None


class DistinctFoodSummary(BaseModel):
    """Search result: one distinct food with its historical appearance count."""

    food_id: FoodID
    name: str
    total_appearances: int = Field(..., ge=0)


class Pagination(BaseModel):
    """Paging metadata for past appearances."""

    total: int = Field(..., ge=0)
    limit: int = Field(..., ge=1)
    offset: int = Field(..., ge=0)
    has_more: bool


class FoodHistory(BaseModel):
    """Past and upcoming appearances of a single food."""

    food_id: FoodID
    food_name: str
    past_items: list[MenuItem] = Field(default_factory=list)
    next_appearance: MenuItem | None = None
    upcoming_appearances: list[MenuItem] = Field(default_factory=list)
    pagination: Pagination
