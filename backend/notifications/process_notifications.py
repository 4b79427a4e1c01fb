"""
CLI script for matching subscriptions against a day's menu and sending alerts.

Usage:
    # Send alerts for today's menu (dining hall timezone)
    uv run python -m notifications.process_notifications

    # Send alerts for a specific date
    uv run python -m notifications.process_notifications --date 2025-01-10

    # Dry run (match but don't actually send emails)
    uv run python -m notifications.process_notifications --dry-run

Reruns for the same date send the same emails again; there is no sent-log.
"""

import argparse
import time

from config.settings import NOTIFICATION_RATE_LIMIT_SECONDS
from notifications.email_sender import NotificationDispatcher
from notifications.matcher import MatchingEngine
from shared.error_logger import log_job_error
from shared.utils import parse_target_date, today_iso
from stores.settings_store import UserSettingsStore


def process_notifications(
    matcher: MatchingEngine,
    dispatcher: NotificationDispatcher,
    settings_store: UserSettingsStore,
    target_date: str | None = None,
    dry_run: bool = False,
    rate_limit_seconds: float = NOTIFICATION_RATE_LIMIT_SECONDS,
) -> dict[str, int]:
    """
    Match active subscriptions for a date and email each matched user once.

    Args:
        target_date: YYYY-MM-DD; defaults to today
        dry_run: If True, don't actually send emails
        rate_limit_seconds: Pause between sends to stay under provider limits

    Returns:
        Dictionary with stats: sent, failed, skipped. "sent" is the number
        of successful deliveries.
    """
    date = target_date or today_iso()
    print(f"Checking for menu notifications for {date}...")

    notifications = matcher.find_matches(date)
    stats = {"sent": 0, "failed": 0, "skipped": 0}

    if not notifications:
        print("📭 No notifications to send (no matches found)")
        return stats

    print(f"Found matches for {len(notifications)} users")

    disabled = settings_store.disabled_user_ids(
        [n.user_id for n in notifications if n.user_id]
    )

    for notification in notifications:
        print(
            f"\nProcessing {notification.email} ({len(notification.matches)} matches)..."
        )

        if notification.user_id in disabled:
            print("  ⚠️  Notifications disabled for user, skipping")
            stats["skipped"] += 1
            continue

        if dry_run:
            print(f"  [DRY RUN] Would send alert to {notification.email}")
            stats["sent"] += 1
            continue

        try:
            sent = dispatcher.send_notification(notification)
        except Exception as e:
            # A crash for one recipient must not stop the others
            error_file = log_job_error(
                error_type="sending",
                error_message=f"Unexpected error: {e}",
                context={"email": notification.email, "date": date},
            )
            print(f"  ✗ Unexpected error for {notification.email}. Details logged to: {error_file}")
            sent = False

        if sent:
            stats["sent"] += 1
        else:
            stats["failed"] += 1

        if rate_limit_seconds:
            time.sleep(rate_limit_seconds)

    print(f"\n{'=' * 60}")
    print("Menu Notification Processing Complete")
    print(f"{'=' * 60}")
    print(f"Date:     {date}")
    print(f"Sent:     {stats['sent']}")
    print(f"Failed:   {stats['failed']}")
    print(f"Skipped:  {stats['skipped']}")
    print(f"Total:    {sum(stats.values())}")

    return stats


def main() -> None:
    """CLI entry point."""
    from notifications.email_sender import ResendMailTransport
    from shared.db import get_supabase_client
    from stores import MenuStore, SubscriptionStore, UserStore

    parser = argparse.ArgumentParser(
        description="Match subscriptions against a day's menu and send email alerts"
    )
    parser.add_argument(
        "--date",
        type=str,
        help="Menu date to match (defaults to today in the dining hall timezone)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Dry run mode (don't actually send emails)",
    )

    args = parser.parse_args()

    target_date = None
    if args.date:
        target_date = parse_target_date(args.date)
        if not target_date:
            parser.error(f"Could not parse date: {args.date}")

    supabase = get_supabase_client()
    users = UserStore(supabase)

    process_notifications(
        matcher=MatchingEngine(SubscriptionStore(supabase, users), MenuStore(supabase)),
        dispatcher=NotificationDispatcher(ResendMailTransport()),
        settings_store=UserSettingsStore(supabase, users),
        target_date=target_date,
        dry_run=args.dry_run,
    )


if __name__ == "__main__":
    main()
