"""
Runtime configuration loaded from the environment.

Values are read once at import; clients (Supabase, Resend) are built lazily
by the factories in shared/db.py and notifications/email_sender.py.
"""

import os
from typing import get_args

from dotenv import load_dotenv

from models.types import DiningHall, Meal

load_dotenv()

# Known locations and meals served by the Nutrislice menu API
DINING_HALLS: tuple[str, ...] = get_args(DiningHall)
MEALS: tuple[str, ...] = get_args(Meal)

MENU_API_BASE_URL = os.getenv(
    "MENU_API_BASE_URL", "https://wisc-housingdining.api.nutrislice.com/menu/api"
)

# Menus are published a few days out; ingest that far ahead
INGEST_DAYS_AHEAD = int(os.getenv("INGEST_DAYS_AHEAD", "4"))

# Calendar "today" is taken in the dining halls' local timezone
DINING_TIMEZONE = os.getenv("DINING_TIMEZONE", "America/Chicago")

MENU_FETCH_CONCURRENCY = int(os.getenv("MENU_FETCH_CONCURRENCY", "6"))
MENU_REQUEST_TIMEOUT = 30
MENU_FETCH_RETRIES = 3
# Worst case for one slice: every attempt times out, plus the 2**attempt sleeps between them
MENU_FETCH_WORST_CASE = MENU_FETCH_RETRIES * MENU_REQUEST_TIMEOUT + sum(
    2**attempt for attempt in range(MENU_FETCH_RETRIES - 1)
)
MENU_SLICE_TIMEOUT = float(
    os.getenv("MENU_SLICE_TIMEOUT", str(MENU_FETCH_WORST_CASE + 30))
)

NOTIFICATION_RATE_LIMIT_SECONDS = float(
    os.getenv("NOTIFICATION_RATE_LIMIT_SECONDS", "0.1")
)

# PostgREST caps every response at max-rows (1000 by default); reads page below it
QUERY_PAGE_SIZE = 1000
# Ids per in_() filter; keeps request URLs short
ID_BATCH_SIZE = 200

SEARCH_MIN_QUERY_LENGTH = 2
SEARCH_DEFAULT_LIMIT = 20
HISTORY_DEFAULT_LIMIT = 30
UPCOMING_APPEARANCES_LIMIT = 20
