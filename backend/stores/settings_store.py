"""
User settings persistence.

Settings rows are created lazily on first write. Reads never write: a user
without a row (or without an account at all) gets the defaults.
"""

from datetime import datetime, timezone
from typing import Any

from postgrest.exceptions import APIError
from supabase import Client

from config.settings import ID_BATCH_SIZE
from models import UserSettings
from shared.errors import NotFoundError, StorageError
from shared.utils import chunked
from stores.user_store import UserStore


class UserSettingsStore:
    """Reads and writes rows in the user_settings table."""

    TABLE = "user_settings"

    def __init__(self, supabase: Client, users: UserStore):
        self.supabase = supabase
        self.users = users

    def _select(self, query: Any) -> Any:
        try:
            return query.execute()
        except APIError as e:
            raise StorageError(f"Failed to read settings: {e}") from e

    def _read(self, user_id: str) -> UserSettings:
        response = self._select(
            self.supabase.table(self.TABLE)
            .select("*")
            .eq("user_id", user_id)
            .limit(1)
        )
        if not response.data:
            return UserSettings(user_id=user_id)
        return UserSettings.model_validate(response.data[0])

    def _write(self, user_id: str, email_notifications: bool) -> UserSettings:
        row = {
            "user_id": user_id,
            "email_notifications": email_notifications,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            response = (
                self.supabase.table(self.TABLE)
                .upsert(row, on_conflict="user_id")
                .execute()
            )
        except APIError as e:
            raise StorageError(f"Failed to save settings for user {user_id}: {e}") from e

        if not response.data:
            raise StorageError(f"Upsert returned no settings row for user {user_id}")
        return UserSettings.model_validate(response.data[0])

    def get_settings(self, email: str) -> UserSettings:
        user = self.users.find_by_email(email)
        if not user:
            return UserSettings()
        return self._read(user.id)

    def update_settings(self, email: str, email_notifications: bool) -> UserSettings:
        user = self.users.get_or_create_by_email(email)
        return self._write(user.id, bool(email_notifications))

    def set_email_notifications_for_user(self, user_id: str, enabled: bool) -> UserSettings:
        """Update settings by user id (used by one-click unsubscribe links)."""
        if not self.users.find_by_id(user_id):
            raise NotFoundError(f"User {user_id} not found")
        return self._write(user_id, bool(enabled))

    def disabled_user_ids(self, user_ids: list[str]) -> set[str]:
        """Users among user_ids who turned email notifications off."""
        disabled: set[str] = set()
        for batch in chunked(list(dict.fromkeys(user_ids)), ID_BATCH_SIZE):
            response = self._select(
                self.supabase.table(self.TABLE)
                .select("user_id, email_notifications")
                .in_("user_id", batch)
            )
            disabled.update(
                row["user_id"]
                for row in response.data or []
                # Default to enabled if not set
                if not row.get("email_notifications", True)
            )
        return disabled
