import re
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from dateutil import parser as date_parser

from config.settings import DINING_TIMEZONE
from models.types import EMAIL_PATTERN
from shared.errors import ValidationError

EMAIL_RE = re.compile(EMAIL_PATTERN)


def today_iso(timezone: str | None = None) -> str:
    """Current calendar date (YYYY-MM-DD) in the dining hall timezone."""
    tz = ZoneInfo(timezone or DINING_TIMEZONE)
    return datetime.now(tz).date().isoformat()


def add_days(date_str: str, days: int) -> str:
    """Shift an ISO calendar date by a number of days."""
    return (date.fromisoformat(date_str) + timedelta(days=days)).isoformat()


def parse_target_date(date_str: str) -> str | None:
    """Parse various date formats into an ISO calendar date (YYYY-MM-DD)."""
    if not date_str:
        return None
    try:
        dt = date_parser.parse(date_str, fuzzy=True)
        return dt.date().isoformat()
    except (ValueError, OverflowError, TypeError):
        return None


def date_range(start: str, end: str) -> list[str]:
    """Inclusive list of ISO dates from start to end."""
    current = date.fromisoformat(start)
    last = date.fromisoformat(end)
    days = []
    while current <= last:
        days.append(current.isoformat())
        current += timedelta(days=1)
    return days


def chunked(values: list, size: int) -> list[list]:
    """Split a list into consecutive batches of at most size items."""
    return [values[start:start + size] for start in range(0, len(values), size)]


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so text matches literally inside a pattern."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def require_text(value: str | None, field: str) -> str:
    """Return a stripped non-empty string or raise ValidationError."""
    if value is None or not str(value).strip():
        raise ValidationError(f"Missing required field: {field}")
    return str(value).strip()


def normalize_email(email: str | None) -> str:
    """Validate and lower-case an email address."""
    value = require_text(email, "email").lower()
    if not EMAIL_RE.match(value):
        raise ValidationError(f"Invalid email address: {value}")
    return value


def print_summary(processed: int, skipped: int, failed: int) -> None:
    """Print processing summary."""
    print(f"\n{'=' * 60}")
    print(f"[{datetime.now()}] Processing Complete!")
    print(f"{'=' * 60}")
    print(f"✓ Processed & Stored: {processed}")
    print(f"⊘ Skipped (duplicates): {skipped}")
    print(f"✗ Failed: {failed}")
    print(f"{'=' * 60}\n")
