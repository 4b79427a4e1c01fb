"""
Menu source client for the Nutrislice weeks API.

One request returns a whole week for a (dining hall, meal); only the
requested day is kept.
"""

import time
from datetime import date as date_type
from typing import Any

import requests
from pydantic import ValidationError as PydanticValidationError

from config.settings import MENU_API_BASE_URL, MENU_FETCH_RETRIES, MENU_REQUEST_TIMEOUT
from models import MenuItemCreate
from shared.errors import ExternalSourceError


class NutrisliceMenuSource:
    """Fetches raw menu listings and converts them into MenuItemCreate records"""

    def __init__(
        self,
        base_url: str = MENU_API_BASE_URL,
        max_retries: int = MENU_FETCH_RETRIES,
        timeout: float = MENU_REQUEST_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {
                "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
                "Accept": "application/json",
            }
        )

    def build_url(self, day: str, dining_hall: str, meal: str) -> str:
        d = date_type.fromisoformat(day)
        return (
            f"{self.base_url}/weeks/school/{dining_hall}/menu-type/{meal}/"
            f"{d.year}/{d.month:02d}/{d.day:02d}/"
        )

    def fetch_week(self, day: str, dining_hall: str, meal: str) -> dict[str, Any]:
        """Fetch the raw weekly payload, retrying with exponential backoff."""
        url = self.build_url(day, dining_hall, meal)
        for attempt in range(self.max_retries):
            try:
                response = self.session.get(url, timeout=self.timeout)
                response.raise_for_status()
                return response.json()
            except Exception as e:
                if attempt < self.max_retries - 1:
                    print(f"  ⚠ Menu fetch failed (attempt {attempt + 1}): {e}")
                    time.sleep(2**attempt)
                else:
                    raise ExternalSourceError(
                        f"Could not fetch menu for {dining_hall} - {meal} - {day}: {e}"
                    ) from e
        raise ExternalSourceError(f"No fetch attempts made for {url}")

    def fetch(self, day: str, dining_hall: str, meal: str) -> list[MenuItemCreate]:
        """
        Menu items served at one dining hall for one meal on one day.

        Raises:
            ExternalSourceError: the API stayed unreachable after all retries
        """
        payload = self.fetch_week(day, dining_hall, meal)
        return parse_menu_payload(payload, day, dining_hall, meal)


def parse_menu_payload(
    payload: dict[str, Any], day: str, dining_hall: str, meal: str
) -> list[MenuItemCreate]:
    """Extract the requested day's foods; entries without a food id or name are skipped."""
    items: list[MenuItemCreate] = []

    for day_obj in payload.get("days") or []:
        if day_obj.get("date") != day:
            continue
        for entry in day_obj.get("menu_items") or []:
            food = entry.get("food") or {}
            if not food.get("id") or not food.get("name"):
                continue
            try:
                items.append(
                    MenuItemCreate(
                        food_id=str(food["id"]),
                        name=food["name"],
                        date=day,
                        dining_hall=dining_hall,
                        meal=meal,
                    )
                )
            except PydanticValidationError as e:
                print(f"  ⚠ Skipping malformed menu entry {food.get('id')}: {e}")

    return items
