"""
Backfill menu data for a range of dates.

Usage:
    # Backfill one dining hall for a semester
    uv run python -m utils.backfill_menus --start 2025-06-29 --end 2025-08-15 --dining-hall gordon-avenue-market

    # Backfill all halls for the last week, without writing
    uv run python -m utils.backfill_menus --start 2025-01-01 --end 2025-01-07 --dry-run
"""

import argparse
from typing import Sequence

from config.settings import DINING_HALLS, MEALS
from ingest.menu.ingest_menus import MenuSource, run_ingestion
from shared.utils import date_range, parse_target_date, today_iso
from stores.menu_store import MenuStore


def backfill(
    store: MenuStore,
    source: MenuSource,
    start: str,
    end: str,
    dining_halls: Sequence[str] = DINING_HALLS,
    meals: Sequence[str] = MEALS,
    dry_run: bool = False,
) -> dict[str, int]:
    """Run one ingestion per day from start to end (inclusive) and total the stats."""
    totals = {"days": 0, "fetched": 0, "inserted": 0, "skipped": 0, "failed": 0}

    for day in date_range(start, end):
        try:
            stats = run_ingestion(
                store,
                source,
                target_date=day,
                dining_halls=dining_halls,
                meals=meals,
                dry_run=dry_run,
            )
        except KeyboardInterrupt:
            print("\n\nInterrupted by user")
            break

        totals["days"] += 1
        for key in ("fetched", "inserted", "skipped", "failed"):
            totals[key] += stats[key]

    print("\n" + "=" * 50)
    print("BACKFILL SUMMARY")
    print("=" * 50)
    print(f"Days:     {totals['days']}")
    print(f"Fetched:  {totals['fetched']}")
    print(f"Inserted: {totals['inserted']}")
    print(f"Skipped:  {totals['skipped']}")
    print(f"Failed slices: {totals['failed']}")

    return totals


def main() -> None:
    from ingest.menu.nutrislice_client import NutrisliceMenuSource
    from shared.db import get_supabase_client

    parser = argparse.ArgumentParser(description="Backfill menu data for a date range")
    parser.add_argument("--start", required=True, help="First date to ingest")
    parser.add_argument("--end", help="Last date to ingest (defaults to today)")
    parser.add_argument("--dining-hall", action="append", choices=DINING_HALLS)
    parser.add_argument("--meal", action="append", choices=MEALS)
    parser.add_argument("--dry-run", action="store_true", help="Fetch without writing")

    args = parser.parse_args()

    start = parse_target_date(args.start)
    end = parse_target_date(args.end) if args.end else today_iso()
    if not start or not end:
        parser.error("Could not parse --start/--end dates")
    if start > end:
        parser.error("--start must not be after --end")

    backfill(
        MenuStore(get_supabase_client()),
        NutrisliceMenuSource(),
        start,
        end,
        dining_halls=args.dining_hall or DINING_HALLS,
        meals=args.meal or MEALS,
        dry_run=args.dry_run,
    )


if __name__ == "__main__":
    main()
