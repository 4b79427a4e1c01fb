"""
User persistence.

Users are created on first subscription (by email) or on first verified
sign-in (linked to the Supabase Auth id). Creation tolerates concurrent
inserts: a unique violation means someone else won the race, so the
existing row is fetched instead.
"""

from typing import Any

from postgrest.exceptions import APIError
from supabase import Client

from config.settings import ID_BATCH_SIZE
from models import User
from shared.errors import StorageError, is_unique_violation
from shared.utils import chunked, normalize_email, require_text


class UserStore:
    """Reads and writes rows in the users table."""

    TABLE = "users"

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _select(self, query: Any) -> Any:
        try:
            return query.execute()
        except APIError as e:
            raise StorageError(f"Failed to read users: {e}") from e

    def _first(self, column: str, value: Any) -> User | None:
        response = self._select(
            self.supabase.table(self.TABLE).select("*").eq(column, value).limit(1)
        )
        if not response.data:
            return None
        return User.model_validate(response.data[0])

    def find_by_email(self, email: str) -> User | None:
        return self._first("email", normalize_email(email))

    def find_by_id(self, user_id: str) -> User | None:
        return self._first("id", user_id)

    def find_by_external_id(self, external_id: str) -> User | None:
        return self._first("supabase_id", external_id)

    def find_by_ids(self, user_ids: list[str]) -> list[User]:
        """Users for the given ids, queried in batches; unknown ids are ignored."""
        users: list[User] = []
        for batch in chunked(list(dict.fromkeys(user_ids)), ID_BATCH_SIZE):
            response = self._select(
                self.supabase.table(self.TABLE).select("*").in_("id", batch)
            )
            users.extend(User.model_validate(row) for row in response.data or [])
        return users

    def _insert(self, row: dict[str, Any]) -> User | None:
        """Insert a user; returns None if a unique constraint already holds the value."""
        try:
            response = self.supabase.table(self.TABLE).insert(row).execute()
        except APIError as e:
            if is_unique_violation(e):
                return None
            raise StorageError(f"Failed to create user {row.get('email')}: {e}") from e

        if not response.data:
            raise StorageError(f"Insert returned no row for user {row.get('email')}")
        return User.model_validate(response.data[0])

    def get_or_create_by_email(self, email: str) -> User:
        """Find a user by email, creating one if needed."""
        email = normalize_email(email)

        existing = self._first("email", email)
        if existing:
            return existing

        created = self._insert({"email": email})
        if created:
            return created

        # Lost a creation race; the other writer's row must exist now
        existing = self._first("email", email)
        if not existing:
            raise StorageError(f"Failed to create or find user {email}")
        return existing

    def link_identity(self, external_id: str, email: str) -> User:
        """
        Resolve the local user for a verified identity-provider account.

        Order: match on external id, then adopt an email-only user (created
        by an earlier subscription), then create a fresh linked user.
        """
        external_id = require_text(external_id, "external_id")
        email = normalize_email(email)

        user = self.find_by_external_id(external_id)
        if user:
            return user

        by_email = self._first("email", email)
        if by_email:
            return self._attach_external_id(by_email, external_id)

        created = self._insert({"email": email, "supabase_id": external_id})
        if created:
            return created

        # Concurrent sign-in created it first
        user = self.find_by_external_id(external_id) or self._first("email", email)
        if not user:
            raise StorageError(f"Failed to create or find user {email}")
        if user.supabase_id != external_id:
            return self._attach_external_id(user, external_id)
        return user

    def _attach_external_id(self, user: User, external_id: str) -> User:
        try:
            response = (
                self.supabase.table(self.TABLE)
                .update({"supabase_id": external_id})
                .eq("id", user.id)
                .execute()
            )
        except APIError as e:
            raise StorageError(f"Failed to link identity for {user.email}: {e}") from e

        if not response.data:
            raise StorageError(f"User {user.email} disappeared while linking identity")
        return User.model_validate(response.data[0])

    def delete_user(self, email: str) -> bool:
        """
        Delete a user and everything they own.

        Maintenance only; normal flows never delete users. Subscriptions and
        settings rows are deleted first.
        """
        user = self.find_by_email(email)
        if not user:
            return False

        try:
            self.supabase.table("subscriptions").delete().eq("user_id", user.id).execute()
            self.supabase.table("user_settings").delete().eq("user_id", user.id).execute()
            response = self.supabase.table(self.TABLE).delete().eq("id", user.id).execute()
        except APIError as e:
            raise StorageError(f"Failed to delete user {user.email}: {e}") from e

        return bool(response.data)
