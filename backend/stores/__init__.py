"""
Supabase-backed stores for users, subscriptions, settings and menu items.

Each store receives its Supabase client at construction time.
"""

from .menu_store import MenuStore
from .settings_store import UserSettingsStore
from .subscription_store import SubscriptionStore
from .user_store import UserStore

__all__ = [
    "MenuStore",
    "SubscriptionStore",
    "UserSettingsStore",
    "UserStore",
]
