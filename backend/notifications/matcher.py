"""
Matching logic for the notification system.

Pairs each user's active subscriptions with the menu items served on a
target date, one point lookup per subscription.
"""

from models import MenuMatch, UserNotification
from shared.utils import today_iso
from stores.menu_store import MenuStore
from stores.subscription_store import SubscriptionStore


class MatchingEngine:
    """Decides which users hear about which foods on a given day."""

    def __init__(self, subscriptions: SubscriptionStore, menus: MenuStore):
        self.subscriptions = subscriptions
        self.menus = menus

    def find_matches(self, target_date: str | None = None) -> list[UserNotification]:
        """
        Build one notification per user with at least one match on target_date.

        Every menu row for a subscribed food becomes its own match (a food
        served at two halls yields two matches). The subscription's food_name
        is used so the user sees the label they subscribed with.

        Args:
            target_date: YYYY-MM-DD; defaults to today in the dining timezone

        Returns:
            List of UserNotification, users without matches omitted
        """
        date = target_date or today_iso()
        notifications: list[UserNotification] = []

        for user in self.subscriptions.list_all_active_grouped_by_user():
            matches: list[MenuMatch] = []

            for subscription in user.subscriptions:
                for item in self.menus.find_appearances(subscription.food_id, date):
                    matches.append(
                        MenuMatch(
                            food_id=item.food_id,
                            food_name=subscription.food_name,
                            dining_hall=item.dining_hall,
                            meal=item.meal,
                            date=item.date,
                        )
                    )

            if matches:
                notifications.append(
                    UserNotification(email=user.email, user_id=user.user_id, matches=matches)
                )

        return notifications
