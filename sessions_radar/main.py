from __future__ import annotations
"""
Sessions Radar - Daily Cache + Parallel Fetch Pipeline

FAN-OUT DESIGN:
  Properties are fetched concurrently on a thread pool, one task per property.
  The fan-out is all-or-nothing: the first failing property aborts the run,
  pending tasks are cancelled and nothing is written to the cache.
  The fold into sums runs only after every task has resolved.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, List, Optional, TypeVar

from sessions_radar.aggregator import fold_sums, project_sites
from sessions_radar.analytics_client import AnalyticsClient
from sessions_radar.cache_store import DailyCacheStore
from sessions_radar.models import Property, PropertyRecord, Snapshot, TodayRecord
from sessions_radar.property_sessions_fetcher import PropertySessionsFetcher
from sessions_radar.utils.windows import Clock, DateWindows, compute_date_windows

T = TypeVar("T")


def log_step(scope: str, message: str, level: str = "INFO"):
    """Log with timestamp and pipeline scope"""
    timestamp = datetime.now().strftime("%H:%M:%S")
    prefix = {
        "INFO": "ℹ️ ",
        "SUCCESS": "✅",
        "ERROR": "❌",
        "WARNING": "⚠️ ",
        "PROGRESS": "⏳"
    }.get(level, "")
    print(f"[{timestamp}] [{scope}] {prefix} {message}")


def fan_out(
    properties: List[Property],
    task: Callable[[Property], T],
    max_workers: int,
) -> List[T]:
    """
    Run task for every property concurrently and return results in input order.
    Raises the first failure (in input order) after cancelling work not yet started.
    """
    if not properties:
        return []

    with ThreadPoolExecutor(max_workers=min(max_workers, len(properties))) as executor:
        futures = [executor.submit(task, prop) for prop in properties]
        results = []
        try:
            for future in futures:
                results.append(future.result())
        except BaseException:
            for future in futures:
                future.cancel()
            raise
    return results


def fetch_aggregate(
    client: AnalyticsClient,
    windows: DateWindows,
    max_workers: int,
) -> List[PropertyRecord]:
    properties = client.list_properties()
    log_step("AGGREGATE", f"Fetching full records for {len(properties)} properties", "PROGRESS")
    fetcher = PropertySessionsFetcher(client)
    return fan_out(properties, lambda prop: fetcher.fetch_record(prop, windows), max_workers)


def fetch_today(
    client: AnalyticsClient,
    windows: DateWindows,
    max_workers: int,
) -> List[TodayRecord]:
    properties = client.list_properties()
    log_step("TODAY", f"Refreshing today for {len(properties)} properties", "PROGRESS")
    fetcher = PropertySessionsFetcher(client)
    return fan_out(properties, lambda prop: fetcher.fetch_today(prop, windows), max_workers)


def compute_snapshot(
    client: AnalyticsClient,
    cache: DailyCacheStore,
    clock: Clock,
    max_workers: int = 8,
) -> Snapshot:
    """
    Build the full snapshot for the current calendar day.

    1. Fresh cache → reuse its aggregate without touching the API.
       Stale, absent or unreadable cache → fetch everything and store it.
    2. Always recompute today (never cached).
    3. Fold sums and project the site list from the aggregate.

    Auth and query failures propagate. Cache write failures do not.
    """
    today = clock.today()
    windows = compute_date_windows(today)

    aggregate: Optional[List[PropertyRecord]] = None
    from_cache = False

    if cache.is_fresh():
        aggregate = cache.load()
        from_cache = aggregate is not None

    if from_cache:
        log_step("PIPELINE", f"Loaded {len(aggregate)} records from cache", "SUCCESS")
    else:
        log_step("PIPELINE", "Cache stale or unreadable, loading from Google Analytics", "INFO")
        aggregate = fetch_aggregate(client, windows, max_workers)
        cache.store(aggregate)

    today_records = fetch_today(client, windows, max_workers)

    snapshot = Snapshot(
        aggregate=aggregate,
        today=today_records,
        sums=fold_sums(aggregate),
        sites=project_sites(aggregate),
        generated_on=today,
        from_cache=from_cache,
    )

    log_step(
        "PIPELINE",
        f"Snapshot ready: {len(snapshot.sites)} sites, "
        f"{snapshot.sums.today.total} sessions today",
        "SUCCESS",
    )
    return snapshot


def refresh_today(
    client: AnalyticsClient,
    snapshot: Snapshot,
    clock: Clock,
    max_workers: int = 8,
) -> Snapshot:
    """Copy of snapshot with a freshly fetched today list; the aggregate is untouched"""
    windows = compute_date_windows(clock.today())
    return snapshot.model_copy(update={"today": fetch_today(client, windows, max_workers)})


from sessions_radar.settings import settings

def main():
    """CLI Entrypoint - computes one snapshot and warms the daily cache"""
    from sessions_radar.analytics_client import build_default_client

    clock = Clock(settings.TIMEZONE)
    cache = DailyCacheStore(settings.CACHE_FILE_PATH, clock)

    log_step("CLI", f"Starting run for account {settings.ACCOUNT_ID}", "INFO")
    snapshot = compute_snapshot(build_default_client(), cache, clock, settings.FETCH_MAX_WORKERS)

    print("=" * 60)
    print(f"{'Site':40} {'Today':>8} {'Yesterday':>10}")
    for record in snapshot.aggregate:
        print(f"{record.property.name:40} {record.today.total:>8} {record.yesterday.total:>10}")
    print("=" * 60)
    print(f"{'All':40} {snapshot.sums.today.total:>8} {snapshot.sums.yesterday.total:>10}")


if __name__ == '__main__':
    main()
