"""Shared type definitions for type checking.

Uses NewType for IDs to provide compile-time type safety - prevents mixing
different ID types (e.g., passing UserID where SubscriptionID expected).

Uses Literal aliases for the closed sets published by the menu API and
TypeAlias for purely structural types.
"""

from typing import Literal, NewType, TypeAlias

# ID types using NewType for type safety
UserID = NewType("UserID", str)
SubscriptionID = NewType("SubscriptionID", str)
MenuItemID = NewType("MenuItemID", str)
FoodID = NewType("FoodID", str)  # Opaque, issued by the menu source

DiningHall: TypeAlias = Literal[
    "gordon-avenue-market",
    "four-lakes-market",
    "lizs-market",
    "lowell-market",
    "rhetas-market",
    "carsons-market",
]
Meal: TypeAlias = Literal["breakfast", "lunch", "dinner"]

DateString: TypeAlias = str  # YYYY-MM-DD calendar date, no time component
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
