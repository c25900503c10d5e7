import asyncio
import calendar
import logging
from collections.abc import Iterable
from datetime import date
from datetime import datetime
from datetime import timedelta
from zoneinfo import ZoneInfo

import httpx

from activity_heatmap.services.calendar_layout import validate_year_month
from activity_heatmap.services.source_fetcher import ActivityItem
from activity_heatmap.services.source_fetcher import Source
from activity_heatmap.services.source_fetcher import SourceQuery
from activity_heatmap.services.source_fetcher import fetch_source
from activity_heatmap.settings import Settings


logger = logging.getLogger(__name__)

GITHUB_SOURCES = (Source.GITHUB_COMMITS, Source.GITHUB_PULL_REQUESTS)
GITLAB_SOURCES = (Source.GITLAB_EVENTS,)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    validate_year_month(year, month)
    days_in_month = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, days_in_month)


def empty_day_table(year: int, month: int) -> dict[str, int]:
    """Return a zero-filled day-count table with one key per day of the month."""

    first_day, last_day = month_bounds(year, month)
    table: dict[str, int] = {}
    current_day = first_day
    while current_day <= last_day:
        table[current_day.isoformat()] = 0
        current_day += timedelta(days=1)
    return table


def day_key(moment: datetime, tz: ZoneInfo) -> str:
    """Calendar day of `moment` in the reporting timezone, as `YYYY-MM-DD`."""

    return moment.astimezone(tz).date().isoformat()


def fold_items(
    year: int, month: int, items: Iterable[ActivityItem], tz: ZoneInfo
) -> dict[str, int]:
    """Count items per day into a fresh table; items outside the month are dropped."""

    table = empty_day_table(year, month)
    for item in items:
        key = day_key(item.occurred_at, tz)
        if key in table:
            table[key] += 1
    return table


def merge_tables(base: dict[str, int], *others: dict[str, int]) -> dict[str, int]:
    """Sum day-count tables key by key into a new table shaped like `base`."""

    merged = dict(base)
    for other in others:
        for key, count in other.items():
            if key in merged:
                merged[key] += count
    return merged


def total_events(day_counts: dict[str, int]) -> int:
    return sum(day_counts.values())


def current_month(tz: ZoneInfo) -> tuple[int, int]:
    now = datetime.now(tz)
    return now.year, now.month


async def _fetch_and_fold(
    source: Source,
    query: SourceQuery,
    year: int,
    month: int,
    client: httpx.AsyncClient,
    settings: Settings,
    tz: ZoneInfo,
) -> dict[str, int]:
    items = await fetch_source(source, query, client, settings)
    return fold_items(year, month, items, tz)


async def aggregate(
    github_username: str,
    gitlab_username: str,
    year: int,
    month: int,
    *,
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> dict[str, int]:
    """Build the day-count table for one month from every configured source.

    Sources are fetched concurrently and each is folded into its own table
    before the tables are summed, so the result does not depend on which
    source finishes first. A failing source contributes zero; the table is
    always returned.

    Raises:
        ValueError: If `year`/`month` do not name a valid calendar month.
    """

    first_day, last_day = month_bounds(year, month)
    settings = settings or Settings()
    tz = ZoneInfo(settings.reporting_timezone)

    queries: list[tuple[Source, SourceQuery]] = []
    github_username = (github_username or "").strip()
    gitlab_username = (gitlab_username or "").strip()
    if github_username:
        query = SourceQuery(github_username, first_day, last_day)
        queries.extend((source, query) for source in GITHUB_SOURCES)
    if gitlab_username:
        query = SourceQuery(gitlab_username, first_day, last_day)
        queries.extend((source, query) for source in GITLAB_SOURCES)

    if not queries:
        return empty_day_table(year, month)

    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=settings.request_timeout_seconds)

    try:
        per_source = await asyncio.gather(
            *(
                _fetch_and_fold(source, query, year, month, client, settings, tz)
                for source, query in queries
            )
        )
    finally:
        if owns_client:
            await client.aclose()

    day_counts = merge_tables(empty_day_table(year, month), *per_source)
    logger.info(
        "Aggregated %d events for %04d-%02d (github=%r, gitlab=%r)",
        total_events(day_counts),
        year,
        month,
        github_username,
        gitlab_username,
    )
    return day_counts
