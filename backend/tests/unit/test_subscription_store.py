"""
Unit tests for stores/subscription_store.py

Covers the one-active-subscription rule, soft deletes, re-subscribing and
grouping active subscriptions per user for matching.
"""

import unittest
from unittest.mock import Mock, patch

from postgrest.exceptions import APIError

from shared.errors import ConflictError, NotFoundError, StorageError, ValidationError
from stores.subscription_store import SubscriptionStore
from stores.user_store import UserStore
from tests.fixtures.fake_supabase import FakeSupabase
from tests.fixtures.mock_helpers import create_mock_supabase
from tests.fixtures.user_factory import create_test_subscription, create_test_user


class TestCreateSubscription(unittest.TestCase):
    """Tests for create_subscription()."""

    def setUp(self):
        self.db = FakeSupabase()
        self.users = UserStore(self.db)
        self.store = SubscriptionStore(self.db, self.users)

    def test_creates_user_on_demand(self):
        """First subscription for an unknown email creates the user."""
        subscription = self.store.create_subscription("a@x.edu", "42", "Pizza")

        self.assertTrue(subscription.is_active)
        self.assertEqual(subscription.food_id, "42")
        self.assertEqual(subscription.food_name, "Pizza")
        users = self.db.rows("users")
        self.assertEqual(len(users), 1)
        self.assertEqual(users[0]["email"], "a@x.edu")
        self.assertEqual(subscription.user_id, users[0]["id"])

    def test_duplicate_active_raises_conflict(self):
        """A second active subscription for the same food is a conflict."""
        self.store.create_subscription("a@x.edu", "42", "Pizza")

        with self.assertRaises(ConflictError):
            self.store.create_subscription("a@x.edu", "42", "Pizza")

        active = self.store.list_active("a@x.edu")
        self.assertEqual(len(active), 1)

    def test_email_is_case_insensitive(self):
        """Mixed-case email resolves to the same user."""
        self.store.create_subscription("A@X.edu", "42", "Pizza")

        with self.assertRaises(ConflictError):
            self.store.create_subscription("a@x.EDU", "42", "Pizza")

        self.assertEqual(len(self.db.rows("users")), 1)

    def test_missing_fields_rejected(self):
        """Missing email, food id or food name is a validation error."""
        with self.assertRaises(ValidationError):
            self.store.create_subscription("", "42", "Pizza")
        with self.assertRaises(ValidationError):
            self.store.create_subscription("a@x.edu", "", "Pizza")
        with self.assertRaises(ValidationError):
            self.store.create_subscription("a@x.edu", "42", "  ")
        with self.assertRaises(ValidationError):
            self.store.create_subscription("not-an-email", "42", "Pizza")

        self.assertEqual(self.db.rows("subscriptions"), [])

    def test_other_database_errors_become_storage_error(self):
        """Non-unique PostgREST failures are StorageError, not ConflictError."""
        users = Mock()
        users.get_or_create_by_email.return_value = Mock(id="user-1")
        mock_supabase = create_mock_supabase()
        mock_supabase.execute.side_effect = APIError(
            {"code": "23503", "message": "foreign key violation"}
        )
        store = SubscriptionStore(mock_supabase, users)

        with self.assertRaises(StorageError):
            store.create_subscription("a@x.edu", "42", "Pizza")


class TestDeactivate(unittest.TestCase):
    """Tests for deactivate() and unsubscribe()."""

    def setUp(self):
        self.db = FakeSupabase()
        self.users = UserStore(self.db)
        self.store = SubscriptionStore(self.db, self.users)

    def test_deactivate_then_resubscribe(self):
        """After deactivation the same food can be subscribed again."""
        self.store.create_subscription("a@x.edu", "42", "Pizza")

        self.assertTrue(self.store.deactivate("a@x.edu", "42"))
        self.assertEqual(self.store.list_active("a@x.edu"), [])

        again = self.store.create_subscription("a@x.edu", "42", "Pizza")
        self.assertTrue(again.is_active)

        rows = self.db.rows("subscriptions")
        self.assertEqual(len(rows), 2)
        self.assertEqual(sum(1 for row in rows if row["is_active"]), 1)

    def test_deactivate_nothing(self):
        """Deactivating an unknown user or food changes nothing."""
        self.assertFalse(self.store.deactivate("nobody@x.edu", "42"))

        self.store.create_subscription("a@x.edu", "42", "Pizza")
        self.assertFalse(self.store.deactivate("a@x.edu", "99"))

    def test_deactivate_twice(self):
        self.store.create_subscription("a@x.edu", "42", "Pizza")

        self.assertTrue(self.store.deactivate("a@x.edu", "42"))
        self.assertFalse(self.store.deactivate("a@x.edu", "42"))

    def test_unsubscribe_missing_raises_not_found(self):
        with self.assertRaises(NotFoundError):
            self.store.unsubscribe("a@x.edu", "42")

    def test_deactivate_leaves_other_users_alone(self):
        self.store.create_subscription("a@x.edu", "42", "Pizza")
        self.store.create_subscription("b@x.edu", "42", "Pizza")

        self.store.unsubscribe("a@x.edu", "42")

        self.assertEqual(len(self.store.list_active("b@x.edu")), 1)


class TestListActive(unittest.TestCase):
    """Tests for list_active()."""

    def setUp(self):
        self.db = FakeSupabase()
        self.users = UserStore(self.db)
        self.store = SubscriptionStore(self.db, self.users)

    def test_unknown_user_empty(self):
        self.assertEqual(self.store.list_active("nobody@x.edu"), [])

    def test_only_active_in_creation_order(self):
        self.store.create_subscription("a@x.edu", "1", "Pizza")
        self.store.create_subscription("a@x.edu", "2", "Tacos")
        self.store.create_subscription("a@x.edu", "3", "Soup")
        self.store.deactivate("a@x.edu", "2")

        active = self.store.list_active("a@x.edu")

        self.assertEqual([s.food_id for s in active], ["1", "3"])


class TestGroupedByUser(unittest.TestCase):
    """Tests for list_all_active_grouped_by_user()."""

    def setUp(self):
        self.db = FakeSupabase()
        self.users = UserStore(self.db)
        self.store = SubscriptionStore(self.db, self.users)

    def test_groups_active_subscriptions(self):
        self.store.create_subscription("a@x.edu", "1", "Pizza")
        self.store.create_subscription("b@x.edu", "2", "Tacos")
        self.store.create_subscription("a@x.edu", "3", "Soup")
        self.store.deactivate("b@x.edu", "2")

        grouped = self.store.list_all_active_grouped_by_user()

        self.assertEqual(len(grouped), 1)
        self.assertEqual(grouped[0].email, "a@x.edu")
        self.assertEqual([s.food_id for s in grouped[0].subscriptions], ["1", "3"])

    def test_empty(self):
        self.assertEqual(self.store.list_all_active_grouped_by_user(), [])

    def test_skips_orphaned_rows(self):
        """Subscriptions pointing at a missing user are ignored."""
        user = create_test_user(user_id="u1", email="a@x.edu")
        self.db.seed("users", [user])
        self.db.seed(
            "subscriptions",
            [
                create_test_subscription(user_id="u1", food_id="1"),
                create_test_subscription(user_id="ghost", food_id="2"),
            ],
        )

        grouped = self.store.list_all_active_grouped_by_user()

        self.assertEqual([g.user_id for g in grouped], ["u1"])

    @patch("stores.subscription_store.PAGE_SIZE", 2)
    def test_reads_every_page(self):
        """Active rows beyond one page are still returned."""
        self.db.seed("users", [create_test_user(user_id="u1", email="a@x.edu")])
        self.db.seed(
            "subscriptions",
            [create_test_subscription(user_id="u1", food_id=str(i)) for i in range(5)],
        )

        grouped = self.store.list_all_active_grouped_by_user()

        self.assertEqual(len(grouped[0].subscriptions), 5)

    def test_every_user_matched_past_row_cap(self):
        """More than 1000 subscribers all come back when responses are capped at 1000 rows."""
        db = FakeSupabase(max_rows=1000)
        users = [create_test_user(user_id=f"u{i:04d}", email=f"s{i}@x.edu") for i in range(1005)]
        db.rows("users").extend(users)
        db.rows("subscriptions").extend(
            create_test_subscription(user_id=user["id"], food_id="42") for user in users
        )
        store = SubscriptionStore(db, UserStore(db))

        grouped = store.list_all_active_grouped_by_user()

        self.assertEqual(len(grouped), 1005)
        self.assertEqual({g.user_id for g in grouped}, {user["id"] for user in users})

    def test_read_error_becomes_storage_error(self):
        mock_supabase = create_mock_supabase()
        mock_supabase.execute.side_effect = APIError(
            {"code": "57014", "message": "statement timeout"}
        )
        store = SubscriptionStore(mock_supabase, Mock())

        with self.assertRaises(StorageError):
            store.list_all_active_grouped_by_user()


if __name__ == "__main__":
    unittest.main()
