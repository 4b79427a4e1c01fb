"""
Fetch menus for every dining hall and meal and store them.

Usage:
    # Ingest the default target date (today + INGEST_DAYS_AHEAD)
    uv run python -m ingest.menu.ingest_menus

    # Ingest a specific date
    uv run python -m ingest.menu.ingest_menus --date 2025-01-10

    # Only some halls/meals, without writing to the database
    uv run python -m ingest.menu.ingest_menus --dining-hall lowell-market --meal lunch --dry-run
"""

import argparse
import asyncio
from datetime import datetime
from typing import Protocol, Sequence

from config.settings import (
    DINING_HALLS,
    INGEST_DAYS_AHEAD,
    MEALS,
    MENU_FETCH_CONCURRENCY,
    MENU_SLICE_TIMEOUT,
)
from models import MenuItemCreate
from shared.error_logger import log_job_error
from shared.errors import ExternalSourceError
from shared.utils import add_days, parse_target_date, print_summary, today_iso
from stores.menu_store import MenuStore


class MenuSource(Protocol):
    def fetch(self, day: str, dining_hall: str, meal: str) -> list[MenuItemCreate]: ...


def resolve_target_date(target_date: str | None = None, days_ahead: int | None = None) -> str:
    """Explicit date wins; otherwise today plus the configured lead time."""
    if target_date:
        return target_date
    return add_days(today_iso(), INGEST_DAYS_AHEAD if days_ahead is None else days_ahead)


async def _fetch_slice(
    source: MenuSource,
    day: str,
    dining_hall: str,
    meal: str,
    semaphore: asyncio.Semaphore,
    timeout: float,
) -> list[MenuItemCreate] | None:
    """
    Fetch one (dining hall, meal) slice. Returns None when the slice failed.

    wait_for stops waiting after timeout but cannot cancel the worker thread;
    a timed-out fetch keeps running until its own retries give up, and
    asyncio.run waits for it on shutdown. The default timeout sits above the
    source's worst case so this only fires for a source that hangs.
    """
    async with semaphore:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(source.fetch, day, dining_hall, meal),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            error = f"Timed out after {timeout}s"
        except ExternalSourceError as e:
            error = str(e)
        except Exception as e:
            error = f"Unexpected error: {e}"

    print(f"  ✗ Failed to fetch menu for {dining_hall} - {meal} - {day}: {error}")
    log_job_error(
        error_type="fetching",
        error_message=error,
        context={"date": day, "dining_hall": dining_hall, "meal": meal},
    )
    return None


async def fetch_all_slices(
    source: MenuSource,
    day: str,
    dining_halls: Sequence[str] = DINING_HALLS,
    meals: Sequence[str] = MEALS,
    concurrency: int = MENU_FETCH_CONCURRENCY,
    timeout: float = MENU_SLICE_TIMEOUT,
) -> tuple[list[MenuItemCreate], int]:
    """
    Fetch every (dining hall, meal) slice concurrently.

    Returns:
        Tuple of (all fetched items, number of failed slices). Failed slices
        contribute no items.
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))
    results = await asyncio.gather(
        *(
            _fetch_slice(source, day, hall, meal, semaphore, timeout)
            for hall in dining_halls
            for meal in meals
        )
    )

    items = [item for result in results if result for item in result]
    failed = sum(1 for result in results if result is None)
    return items, failed


def run_ingestion(
    store: MenuStore,
    source: MenuSource,
    target_date: str | None = None,
    days_ahead: int | None = None,
    dining_halls: Sequence[str] = DINING_HALLS,
    meals: Sequence[str] = MEALS,
    dry_run: bool = False,
) -> dict[str, int]:
    """
    Ingest one day of menus for all configured dining halls and meals.

    Safe to rerun: items already stored are skipped by the store's dedup.

    Returns:
        Dictionary with stats: fetched, inserted, skipped, failed
    """
    day = resolve_target_date(target_date, days_ahead)

    print(f"\n{'=' * 60}")
    print(f"[{datetime.now()}] Ingesting menus for {day}")
    print(f"Slices: {len(dining_halls)} dining halls x {len(meals)} meals")
    print(f"{'=' * 60}\n")

    items, failed = asyncio.run(fetch_all_slices(source, day, dining_halls, meals))
    print(f"→ Fetched {len(items)} menu items ({failed} slices failed)")

    if dry_run:
        print("  [DRY RUN - Skipping database write]")
        inserted = 0
    else:
        inserted = store.upsert_menu_items(items)
        print(f"  ✓ Added {inserted} new menu items (duplicates skipped)")

    stats = {
        "fetched": len(items),
        "inserted": inserted,
        "skipped": len(items) - inserted if not dry_run else 0,
        "failed": failed,
    }
    print_summary(stats["inserted"], stats["skipped"], stats["failed"])
    return stats


def main() -> None:
    """CLI entry point."""
    from ingest.menu.nutrislice_client import NutrisliceMenuSource
    from shared.db import get_supabase_client

    parser = argparse.ArgumentParser(description="Fetch and store dining hall menus")
    parser.add_argument(
        "--date",
        type=str,
        help="Date to ingest (defaults to today + INGEST_DAYS_AHEAD)",
    )
    parser.add_argument(
        "--days-ahead",
        type=int,
        help="Days ahead of today to ingest when --date is not given",
    )
    parser.add_argument(
        "--dining-hall",
        action="append",
        choices=DINING_HALLS,
        help="Limit to a dining hall (repeatable)",
    )
    parser.add_argument(
        "--meal", action="append", choices=MEALS, help="Limit to a meal (repeatable)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Fetch menus but don't write to the database",
    )

    args = parser.parse_args()

    target_date = None
    if args.date:
        target_date = parse_target_date(args.date)
        if not target_date:
            parser.error(f"Could not parse date: {args.date}")

    run_ingestion(
        store=MenuStore(get_supabase_client()),
        source=NutrisliceMenuSource(),
        target_date=target_date,
        days_ahead=args.days_ahead,
        dining_halls=args.dining_hall or DINING_HALLS,
        meals=args.meal or MEALS,
        dry_run=args.dry_run,
    )


if __name__ == "__main__":
    main()
