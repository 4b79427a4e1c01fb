"""
Remove a user together with their subscriptions and settings.

Usage:
    uv run python -m utils.cleanup_user --email test-notifications@wisc.edu
"""

import argparse

from stores.subscription_store import SubscriptionStore
from stores.user_store import UserStore


def cleanup_user(users: UserStore, subscriptions: SubscriptionStore, email: str) -> bool:
    """Delete a user and their data. Returns False when no such user exists."""
    print(f"🧹 Cleaning up user {email}...")

    user = users.find_by_email(email)
    if not user:
        print("✅ No user found - already clean!")
        return False

    active = subscriptions.list_active(email)
    print(f"Found user: {user.email}")
    print(f"- Active subscriptions: {len(active)}")

    deleted = users.delete_user(email)
    if deleted:
        print("✅ User and all related data deleted successfully!")
    else:
        print("✗ User could not be deleted")
    return deleted


def main() -> None:
    from shared.db import get_supabase_client

    parser = argparse.ArgumentParser(description="Delete a user and their data")
    parser.add_argument("--email", required=True, help="Email of the user to remove")
    args = parser.parse_args()

    supabase = get_supabase_client()
    users = UserStore(supabase)
    cleanup_user(users, SubscriptionStore(supabase, users), args.email)


if __name__ == "__main__":
    main()
