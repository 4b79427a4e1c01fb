"""
Error logging utility for the daily jobs.

Logs ingestion and notification errors to timestamped files for debugging.
"""

import os
from datetime import datetime
from typing import Any


def _log_dir() -> str:
    configured = os.getenv("JOB_ERROR_LOG_DIR")
    if configured:
        return configured
    return os.path.join(os.path.dirname(os.path.dirname(__file__)), "logs")


def log_job_error(
    error_type: str, error_message: str, context: dict[str, Any] | None = None
) -> str:
    """
    Log a job error to a timestamped file.

    Args:
        error_type: Type of error (e.g., 'fetching', 'matching', 'sending')
        error_message: The error message
        context: Optional dictionary with additional context (email, dining_hall, etc.)

    Returns:
        Path to the log file created
    """
    log_dir = _log_dir()
    os.makedirs(log_dir, exist_ok=True)

    # Microseconds keep files from colliding when several slices fail together
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    filename = os.path.join(log_dir, f"{error_type}_error_{timestamp}.txt")

    with open(filename, "w", encoding="utf-8") as f:
        f.write(f"Job Error Report - {datetime.now()}\n")
        f.write("=" * 60 + "\n\n")
        f.write(f"Error Type: {error_type}\n")
        f.write(f"Error Message: {error_message}\n\n")

        if context:
            f.write("Context:\n")
            f.write("-" * 60 + "\n")
            for key, value in context.items():
                f.write(f"{key}: {value}\n")

    return filename
