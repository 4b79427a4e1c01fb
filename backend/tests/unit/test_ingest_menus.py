"""
Unit tests for ingest/menu/ingest_menus.py

Tests the concurrent slice fan-out, failure tolerance and the
ingestion run's stats.
"""

import asyncio
import time
import unittest
from unittest.mock import Mock, patch

from ingest.menu.ingest_menus import fetch_all_slices, resolve_target_date, run_ingestion
from shared.errors import ExternalSourceError
from stores.menu_store import MenuStore
from tests.fixtures.fake_supabase import FakeSupabase
from tests.fixtures.menu_factory import create_test_menu_item


def _menu_source(failing=()):
    """Source returning one item per slice; (hall, meal) pairs in failing raise."""

    def fetch(day, dining_hall, meal):
        if (dining_hall, meal) in failing:
            raise ExternalSourceError(f"{dining_hall} {meal} unavailable")
        return [
            create_test_menu_item(
                food_id=f"{dining_hall}-{meal}", date=day, dining_hall=dining_hall, meal=meal
            )
        ]

    source = Mock()
    source.fetch.side_effect = fetch
    return source


class TestResolveTargetDate(unittest.TestCase):

    def test_explicit_date(self):
        self.assertEqual(resolve_target_date("2025-01-10"), "2025-01-10")

    @patch("ingest.menu.ingest_menus.today_iso", return_value="2025-01-10")
    def test_default_lead_time(self, mock_today):
        self.assertEqual(resolve_target_date(), "2025-01-14")
        self.assertEqual(resolve_target_date(days_ahead=0), "2025-01-10")


@patch("ingest.menu.ingest_menus.log_job_error")
@patch("builtins.print")
class TestFetchAllSlices(unittest.TestCase):
    """Tests for fetch_all_slices()."""

    def test_every_slice_fetched(self, mock_print, mock_log_error):
        source = _menu_source()

        items, failed = asyncio.run(
            fetch_all_slices(
                source, "2025-01-10", ["lowell-market", "four-lakes-market"],
                ["breakfast", "lunch", "dinner"],
            )
        )

        self.assertEqual(len(items), 6)
        self.assertEqual(failed, 0)
        self.assertEqual(source.fetch.call_count, 6)

    def test_failed_slice_tolerated(self, mock_print, mock_log_error):
        """A failing slice contributes nothing; the rest still arrive."""
        source = _menu_source(failing={("lowell-market", "lunch")})

        items, failed = asyncio.run(
            fetch_all_slices(source, "2025-01-10", ["lowell-market"], ["breakfast", "lunch"])
        )

        self.assertEqual([i.meal for i in items], ["breakfast"])
        self.assertEqual(failed, 1)
        mock_log_error.assert_called_once()
        self.assertEqual(mock_log_error.call_args[1]["error_type"], "fetching")

    def test_unexpected_exception_tolerated(self, mock_print, mock_log_error):
        source = Mock()
        source.fetch.side_effect = KeyError("days")

        items, failed = asyncio.run(
            fetch_all_slices(source, "2025-01-10", ["lowell-market"], ["lunch"])
        )

        self.assertEqual(items, [])
        self.assertEqual(failed, 1)

    def test_slow_slice_times_out(self, mock_print, mock_log_error):
        source = Mock()
        source.fetch.side_effect = lambda *args: time.sleep(0.5) or []

        items, failed = asyncio.run(
            fetch_all_slices(
                source, "2025-01-10", ["lowell-market"], ["lunch"], timeout=0.05
            )
        )

        self.assertEqual(failed, 1)
        self.assertIn("Timed out", mock_log_error.call_args[1]["error_message"])


@patch("ingest.menu.ingest_menus.log_job_error")
@patch("builtins.print")
class TestRunIngestion(unittest.TestCase):
    """Tests for run_ingestion()."""

    def setUp(self):
        self.db = FakeSupabase()
        self.store = MenuStore(self.db)

    def test_stores_items(self, mock_print, mock_log_error):
        stats = run_ingestion(
            self.store, _menu_source(), target_date="2025-01-10",
            dining_halls=["lowell-market"], meals=["lunch", "dinner"],
        )

        self.assertEqual(stats, {"fetched": 2, "inserted": 2, "skipped": 0, "failed": 0})
        self.assertEqual(self.store.count_menu_items(), 2)

    def test_rerun_adds_nothing(self, mock_print, mock_log_error):
        kwargs = dict(target_date="2025-01-10", dining_halls=["lowell-market"], meals=["lunch"])
        run_ingestion(self.store, _menu_source(), **kwargs)

        stats = run_ingestion(self.store, _menu_source(), **kwargs)

        self.assertEqual(stats["inserted"], 0)
        self.assertEqual(stats["skipped"], 1)
        self.assertEqual(self.store.count_menu_items(), 1)

    def test_partial_failure(self, mock_print, mock_log_error):
        stats = run_ingestion(
            self.store,
            _menu_source(failing={("lowell-market", "dinner")}),
            target_date="2025-01-10",
            dining_halls=["lowell-market"],
            meals=["lunch", "dinner"],
        )

        self.assertEqual(stats["inserted"], 1)
        self.assertEqual(stats["failed"], 1)

    def test_dry_run_writes_nothing(self, mock_print, mock_log_error):
        stats = run_ingestion(
            self.store, _menu_source(), target_date="2025-01-10",
            dining_halls=["lowell-market"], meals=["lunch"], dry_run=True,
        )

        self.assertEqual(stats["fetched"], 1)
        self.assertEqual(stats["inserted"], 0)
        self.assertEqual(self.db.calls, [])


if __name__ == "__main__":
    unittest.main()
