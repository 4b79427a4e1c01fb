"""
Delete stored menu data.

Usage:
    # Delete menu items dated before 2025-01-01
    uv run python -m utils.delete_menu_data --before 2025-01-01

    # Delete everything (asks for confirmation)
    uv run python -m utils.delete_menu_data --all

    # Preview how many rows would be removed
    uv run python -m utils.delete_menu_data --before 2025-01-01 --dry-run
"""

import argparse

from shared.utils import parse_target_date
from stores.menu_store import MenuStore


def delete_menu_data(store: MenuStore, before: str | None = None, dry_run: bool = False) -> int:
    """Delete menu items (all, or strictly before a date). Returns rows affected."""
    scope = f"before {before}" if before else "(all dates)"

    if dry_run:
        count = store.count_menu_items(before)
        print(f"[DRY RUN] Would delete {count} menu items {scope}")
        return count

    deleted = store.delete_menu_items(before)
    print(f"✓ Deleted {deleted} menu items {scope}")
    return deleted


def main() -> None:
    from shared.db import get_supabase_client

    parser = argparse.ArgumentParser(description="Delete stored menu data")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--before", help="Delete items dated strictly before this date")
    group.add_argument("--all", action="store_true", help="Delete all menu items")
    parser.add_argument("--dry-run", action="store_true", help="Only count matching rows")

    args = parser.parse_args()

    before = None
    if args.before:
        before = parse_target_date(args.before)
        if not before:
            parser.error(f"Could not parse date: {args.before}")

    if args.all and not args.dry_run:
        confirm = input("About to delete ALL menu data. Continue? (y/N): ")
        if confirm.lower() != "y":
            print("Cancelled")
            return

    delete_menu_data(MenuStore(get_supabase_client()), before, args.dry_run)


if __name__ == "__main__":
    main()
