"""
Menu item persistence and read queries.

Menu items are facts about the world keyed by (food_id, date, dining_hall,
meal). Ingestion upserts with ignore-duplicates so reruns add nothing new.
Dates are ISO calendar strings and compare lexically.
"""

from typing import Any, Iterable

from postgrest.exceptions import APIError
from supabase import Client

from config.settings import (
    DINING_HALLS,
    HISTORY_DEFAULT_LIMIT,
    MEALS,
    QUERY_PAGE_SIZE,
    SEARCH_DEFAULT_LIMIT,
    SEARCH_MIN_QUERY_LENGTH,
    UPCOMING_APPEARANCES_LIMIT,
)
from models import DistinctFoodSummary, FoodHistory, MenuItem, MenuItemCreate, Pagination
from shared.errors import StorageError, ValidationError
from shared.utils import escape_like, require_text, today_iso

MENU_ITEM_KEY = ("food_id", "date", "dining_hall", "meal")
UPSERT_CHUNK_SIZE = 500


class MenuStore:
    """Reads and writes rows in the menu_items table."""

    TABLE = "menu_items"

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _run(self, query: Any, action: str) -> Any:
        try:
            return query.execute()
        except APIError as e:
            raise StorageError(f"Failed to {action}: {e}") from e

    def upsert_menu_items(self, items: Iterable[MenuItemCreate]) -> int:
        """
        Bulk insert menu items, skipping ones whose natural key already exists.

        Args:
            items: Menu items to store (duplicates within the batch are collapsed)

        Returns:
            Number of rows actually inserted
        """
        unique: dict[tuple[str, str, str, str], dict[str, Any]] = {}
        for item in items:
            unique.setdefault(item.natural_key(), item.model_dump())

        rows = list(unique.values())
        inserted = 0
        for start in range(0, len(rows), UPSERT_CHUNK_SIZE):
            chunk = rows[start:start + UPSERT_CHUNK_SIZE]
            response = self._run(
                self.supabase.table(self.TABLE).upsert(
                    chunk,
                    on_conflict=",".join(MENU_ITEM_KEY),
                    ignore_duplicates=True,
                ),
                "upsert menu items",
            )
            # Only newly inserted rows come back with ignore-duplicates
            inserted += len(response.data or [])

        return inserted

    def query_today(
        self,
        dining_hall: str | None = None,
        meal: str | None = None,
        today: str | None = None,
    ) -> list[MenuItem]:
        """Today's menu, optionally filtered, sorted by dining hall, meal, name."""
        if dining_hall and dining_hall not in DINING_HALLS:
            raise ValidationError(f"Unknown dining hall: {dining_hall}")
        if meal and meal not in MEALS:
            raise ValidationError(f"Unknown meal: {meal}")

        query = self.supabase.table(self.TABLE).select("*").eq("date", today or today_iso())
        if dining_hall:
            query = query.eq("dining_hall", dining_hall)
        if meal:
            query = query.eq("meal", meal)

        response = self._run(
            query.order("dining_hall").order("meal").order("name"), "load today's menu"
        )
        return [MenuItem.model_validate(row) for row in response.data or []]

    def _count_appearances(self, food_id: str, before: str | None = None) -> int:
        query = (
            self.supabase.table(self.TABLE)
            .select("id", count="exact")
            .eq("food_id", food_id)
        )
        if before:
            query = query.lt("date", before)
        return self._run(query, "count menu items").count or 0

    def _matching_names(self, escaped_query: str) -> list[dict[str, Any]]:
        """Every (food_id, name) row whose name contains the query, read page by page."""
        rows: list[dict[str, Any]] = []
        start = 0
        while True:
            response = self._run(
                self.supabase.table(self.TABLE)
                .select("food_id, name")
                .ilike("name", f"%{escaped_query}%")
                .order("food_id")
                .order("id")
                .range(start, start + QUERY_PAGE_SIZE - 1),
                "search menu items",
            )
            page = response.data or []
            rows.extend(page)
            if len(page) < QUERY_PAGE_SIZE:
                return rows
            start += QUERY_PAGE_SIZE

    def search_by_name(
        self, query: str | None, limit: int = SEARCH_DEFAULT_LIMIT
    ) -> list[DistinctFoodSummary]:
        """
        Case-insensitive substring search over food names.

        Results are distinct foods ranked by how often they have appeared.
        Queries shorter than two characters return nothing without a
        database round trip.
        """
        if query is None:
            raise ValidationError('Query parameter "q" is required')
        if len(query) < SEARCH_MIN_QUERY_LENGTH:
            return []

        # First name seen wins; names are stable per food_id in practice
        foods: dict[str, str] = {}
        for row in self._matching_names(escape_like(query)):
            foods.setdefault(row["food_id"], row["name"])

        summaries = [
            DistinctFoodSummary(
                food_id=food_id,
                name=name,
                total_appearances=self._count_appearances(food_id),
            )
            for food_id, name in foods.items()
        ]
        summaries.sort(key=lambda s: (-s.total_appearances, s.name.lower()))
        return summaries[:limit]

    def get_history(
        self,
        food_id: str,
        limit: int = HISTORY_DEFAULT_LIMIT,
        offset: int = 0,
        today: str | None = None,
    ) -> FoodHistory:
        """
        Past appearances (paginated, newest first) plus upcoming ones.

        "Past" is strictly before today; today's appearances count as upcoming.
        """
        food_id = require_text(food_id, "foodId")
        if limit < 1:
            raise ValidationError("limit must be at least 1")
        if offset < 0:
            raise ValidationError("offset must not be negative")

        today = today or today_iso()

        past_response = self._run(
            self.supabase.table(self.TABLE)
            .select("*")
            .eq("food_id", food_id)
            .lt("date", today)
            .order("date", desc=True)
            .range(offset, offset + limit - 1),
            "load past appearances",
        )
        past_items = [MenuItem.model_validate(row) for row in past_response.data or []]

        upcoming_response = self._run(
            self.supabase.table(self.TABLE)
            .select("*")
            .eq("food_id", food_id)
            .gte("date", today)
            .order("date")
            .limit(UPCOMING_APPEARANCES_LIMIT),
            "load upcoming appearances",
        )
        upcoming = [MenuItem.model_validate(row) for row in upcoming_response.data or []]

        total = self._count_appearances(food_id, before=today)

        if past_items:
            food_name = past_items[0].name
        elif upcoming:
            food_name = upcoming[0].name
        else:
            food_name = "Unknown Food"

        return FoodHistory(
            food_id=food_id,
            food_name=food_name,
            past_items=past_items,
            next_appearance=upcoming[0] if upcoming else None,
            upcoming_appearances=upcoming,
            pagination=Pagination(
                total=total,
                limit=limit,
                offset=offset,
                has_more=total > offset + limit,
            ),
        )

    def find_appearances(self, food_id: str, date: str) -> list[MenuItem]:
        """Every appearance of a food on one date."""
        response = self._run(
            self.supabase.table(self.TABLE)
            .select("*")
            .eq("food_id", food_id)
            .eq("date", date)
            .order("dining_hall")
            .order("meal"),
            "find appearances",
        )
        return [MenuItem.model_validate(row) for row in response.data or []]

    def count_menu_items(self, before: str | None = None) -> int:
        """Number of stored menu items, optionally only those before a date."""
        query = self.supabase.table(self.TABLE).select("id", count="exact")
        if before:
            query = query.lt("date", before)
        return self._run(query, "count menu items").count or 0

    def delete_menu_items(self, before: str | None = None) -> int:
        """Delete all menu items, or only those strictly before a date."""
        query = self.supabase.table(self.TABLE).delete()
        # PostgREST refuses unfiltered deletes; every row has a non-empty date
        query = query.lt("date", before) if before else query.neq("date", "")
        response = self._run(query, "delete menu items")
        return len(response.data or [])
