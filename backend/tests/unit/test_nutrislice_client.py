"""
Unit tests for ingest/menu/nutrislice_client.py

Tests URL building, HTTP retries and payload parsing for the weekly
menu API.
"""

import unittest
from unittest.mock import patch

import requests

from config.settings import MENU_FETCH_RETRIES, MENU_SLICE_TIMEOUT
from ingest.menu.nutrislice_client import NutrisliceMenuSource, parse_menu_payload
from shared.errors import ExternalSourceError
from tests.fixtures.menu_factory import create_nutrislice_payload
from tests.fixtures.mock_helpers import create_mock_requests_response


class TestBuildUrl(unittest.TestCase):

    def test_week_url(self):
        source = NutrisliceMenuSource(base_url="https://menus.example.com/menu/api/")

        url = source.build_url("2025-01-05", "four-lakes-market", "breakfast")

        self.assertEqual(
            url,
            "https://menus.example.com/menu/api/weeks/school/four-lakes-market/"
            "menu-type/breakfast/2025/01/05/",
        )


class TestFetch(unittest.TestCase):
    """Tests for fetch_week() and fetch()."""

    @patch("requests.Session.get")
    def test_successful_fetch(self, mock_get):
        mock_get.return_value = create_mock_requests_response(
            json_data=create_nutrislice_payload(date="2025-01-10")
        )

        items = NutrisliceMenuSource().fetch("2025-01-10", "lowell-market", "dinner")

        self.assertEqual([(i.food_id, i.name) for i in items], [("42", "Pizza"), ("7", "Tomato Soup")])
        self.assertTrue(all(i.dining_hall == "lowell-market" for i in items))
        self.assertTrue(all(i.meal == "dinner" for i in items))
        self.assertEqual(mock_get.call_args[1]["timeout"], 30)

    @patch("builtins.print")
    @patch("time.sleep")
    @patch("requests.Session.get")
    def test_retry_on_failure(self, mock_get, mock_sleep, mock_print):
        """Failed calls retry with exponential backoff."""
        mock_get.side_effect = [
            requests.ConnectionError("Connection error"),
            create_mock_requests_response(
                status_code=503, raise_error=requests.HTTPError("503 Server Error")
            ),
            create_mock_requests_response(json_data=create_nutrislice_payload()),
        ]

        items = NutrisliceMenuSource(max_retries=3).fetch(
            "2025-01-10", "lowell-market", "lunch"
        )

        self.assertEqual(len(items), 2)
        self.assertEqual(mock_get.call_count, 3)
        self.assertEqual([c[0][0] for c in mock_sleep.call_args_list], [1, 2])

    @patch("builtins.print")
    @patch("time.sleep")
    @patch("requests.Session.get")
    def test_max_retries_raises(self, mock_get, mock_sleep, mock_print):
        mock_get.side_effect = requests.Timeout("read timed out")

        with self.assertRaises(ExternalSourceError):
            NutrisliceMenuSource(max_retries=3).fetch("2025-01-10", "lowell-market", "lunch")

        self.assertEqual(mock_get.call_count, 3)

    @patch("builtins.print")
    @patch("time.sleep")
    @patch("requests.Session.get")
    def test_worst_case_fits_slice_timeout(self, mock_get, mock_sleep, mock_print):
        """A source whose every attempt times out gives up before the slice timeout."""
        mock_get.side_effect = requests.Timeout("read timed out")
        source = NutrisliceMenuSource()

        with self.assertRaises(ExternalSourceError):
            source.fetch("2025-01-10", "lowell-market", "lunch")

        self.assertEqual(mock_get.call_count, MENU_FETCH_RETRIES)
        slept = sum(c[0][0] for c in mock_sleep.call_args_list)
        self.assertLess(MENU_FETCH_RETRIES * source.timeout + slept, MENU_SLICE_TIMEOUT)


class TestParseMenuPayload(unittest.TestCase):
    """Tests for parse_menu_payload()."""

    def test_keeps_only_requested_day(self):
        payload = create_nutrislice_payload(
            date="2025-01-10",
            foods=[(1, "Pancakes")],
            extra_days=[
                {"date": "2025-01-11", "menu_items": [{"food": {"id": 2, "name": "Waffles"}}]}
            ],
        )

        items = parse_menu_payload(payload, "2025-01-10", "lowell-market", "breakfast")

        self.assertEqual([i.name for i in items], ["Pancakes"])
        self.assertEqual(items[0].date, "2025-01-10")

    def test_skips_entries_without_food(self):
        payload = {
            "days": [
                {
                    "date": "2025-01-10",
                    "menu_items": [
                        {"text": "Entrees", "food": None},
                        {"food": {"id": None, "name": "Mystery"}},
                        {"food": {"id": 5, "name": ""}},
                        {"food": {"id": 6, "name": "Rice"}},
                    ],
                }
            ]
        }

        items = parse_menu_payload(payload, "2025-01-10", "lowell-market", "lunch")

        self.assertEqual([(i.food_id, i.name) for i in items], [("6", "Rice")])

    def test_empty_payloads(self):
        self.assertEqual(parse_menu_payload({}, "2025-01-10", "lowell-market", "lunch"), [])
        self.assertEqual(
            parse_menu_payload({"days": None}, "2025-01-10", "lowell-market", "lunch"), []
        )

    @patch("builtins.print")
    def test_malformed_entry_skipped(self, mock_print):
        """Entries the model rejects are skipped with a warning."""
        payload = create_nutrislice_payload(foods=[(1, "Rice"), (2, "   ")])

        items = parse_menu_payload(payload, "2025-01-10", "lowell-market", "lunch")

        self.assertEqual([i.food_id for i in items], ["1"])


if __name__ == "__main__":
    unittest.main()
