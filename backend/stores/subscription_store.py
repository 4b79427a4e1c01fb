"""
Subscription persistence.

At most one active subscription exists per (user, food_id); the database
enforces it with a partial unique index and a violation surfaces here as
ConflictError. Deactivation is a soft delete, and re-subscribing inserts a
fresh active row so the inactive history stays untouched.
"""

from typing import Any

from postgrest.exceptions import APIError
from supabase import Client

from config.settings import QUERY_PAGE_SIZE
from models import Subscription, UserSubscriptions
from shared.errors import ConflictError, NotFoundError, StorageError, is_unique_violation
from shared.utils import require_text
from stores.user_store import UserStore

PAGE_SIZE = QUERY_PAGE_SIZE


class SubscriptionStore:
    """Creates, lists and deactivates food subscriptions."""

    TABLE = "subscriptions"

    def __init__(self, supabase: Client, users: UserStore):
        self.supabase = supabase
        self.users = users

    def _select(self, query: Any) -> Any:
        try:
            return query.execute()
        except APIError as e:
            raise StorageError(f"Failed to read subscriptions: {e}") from e

    def create_subscription(self, email: str, food_id: str, food_name: str) -> Subscription:
        """
        Subscribe a user (created on demand) to a food.

        Raises:
            ValidationError: email, food_id or food_name missing/invalid
            ConflictError: an active subscription for this food already exists
            StorageError: any other database failure
        """
        food_id = require_text(food_id, "foodId")
        food_name = require_text(food_name, "foodName")
        user = self.users.get_or_create_by_email(email)

        row = {
            "user_id": user.id,
            "food_id": food_id,
            "food_name": food_name,
            "is_active": True,
        }

        try:
            response = self.supabase.table(self.TABLE).insert(row).execute()
        except APIError as e:
            if is_unique_violation(e):
                raise ConflictError(
                    f"Subscription already exists for food {food_id}"
                ) from e
            raise StorageError(f"Failed to create subscription: {e}") from e

        if not response.data:
            raise StorageError("Insert returned no subscription row")
        return Subscription.model_validate(response.data[0])

    def list_active(self, email: str) -> list[Subscription]:
        """Active subscriptions for a user; empty if the user is unknown."""
        user = self.users.find_by_email(email)
        if not user:
            return []

        response = self._select(
            self.supabase.table(self.TABLE)
            .select("*")
            .eq("user_id", user.id)
            .eq("is_active", True)
            .order("created_at")
        )
        return [Subscription.model_validate(row) for row in response.data or []]

    def deactivate(self, email: str, food_id: str) -> bool:
        """Soft-delete active subscriptions for a food. Returns True if any row changed."""
        food_id = require_text(food_id, "foodId")
        user = self.users.find_by_email(email)
        if not user:
            return False

        try:
            response = (
                self.supabase.table(self.TABLE)
                .update({"is_active": False})
                .eq("user_id", user.id)
                .eq("food_id", food_id)
                .eq("is_active", True)
                .execute()
            )
        except APIError as e:
            raise StorageError(f"Failed to deactivate subscription: {e}") from e

        return bool(response.data)

    def unsubscribe(self, email: str, food_id: str) -> None:
        """Deactivate a subscription, raising NotFoundError when there is none."""
        if not self.deactivate(email, food_id):
            raise NotFoundError(f"Subscription not found for food {food_id}")

    def _fetch_all_active(self) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = []
        start = 0
        while True:
            response = self._select(
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("is_active", True)
                .order("created_at")
                .order("id")
                .range(start, start + PAGE_SIZE - 1)
            )
            page = response.data or []
            rows.extend(page)
            if len(page) < PAGE_SIZE:
                return rows
            start += PAGE_SIZE

    def list_all_active_grouped_by_user(self) -> list[UserSubscriptions]:
        """
        All active subscriptions grouped per user (input to matching).

        Only users with at least one active subscription are returned, in the
        order their first subscription was read.
        """
        rows = self._fetch_all_active()
        if not rows:
            return []

        users_by_id = {
            user.id: user
            for user in self.users.find_by_ids([row["user_id"] for row in rows])
        }

        grouped: dict[str, UserSubscriptions] = {}
        for row in rows:
            user = users_by_id.get(row["user_id"])
            if not user:
                # Orphaned row; nobody to notify
                continue
            if user.id not in grouped:
                grouped[user.id] = UserSubscriptions(user_id=user.id, email=user.email)
            grouped[user.id].subscriptions.append(Subscription.model_validate(row))

        return list(grouped.values())
