"""
Error taxonomy for the menu tracker.

Stores decide which failures are expected (validation, conflicts, missing
rows) and raise the matching subclass. Anything else from the database is
wrapped in StorageError so callers never inspect raw PostgREST codes.
"""

from postgrest.exceptions import APIError

# Postgres SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"


class MenuTrackerError(Exception):
    """Base class for all menu tracker errors."""


class ValidationError(MenuTrackerError):
    """Missing or malformed caller input."""


class ConflictError(MenuTrackerError):
    """Write collided with a uniqueness rule (e.g. duplicate active subscription)."""


class NotFoundError(MenuTrackerError):
    """Referenced user or subscription does not exist."""


class ExternalSourceError(MenuTrackerError):
    """Menu source could not be fetched or returned unusable data."""


class DispatchError(MenuTrackerError):
    """A single notification email could not be delivered."""


class StorageError(MenuTrackerError):
    """Unexpected persistence failure."""


def is_unique_violation(error: APIError) -> bool:
    """Check whether a PostgREST error is a unique constraint violation."""
    return str(getattr(error, "code", "") or "") == UNIQUE_VIOLATION
