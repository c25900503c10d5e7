import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC
from datetime import date
from datetime import datetime
from datetime import time
from datetime import timedelta
from enum import StrEnum
from typing import Any
from zoneinfo import ZoneInfo

import httpx

from activity_heatmap.clients import github_client
from activity_heatmap.clients import gitlab_client
from activity_heatmap.clients.pagination import PagedResource
from activity_heatmap.clients.pagination import SourceUserNotFoundError
from activity_heatmap.settings import Settings


logger = logging.getLogger(__name__)

# GitLab filters events by UTC date with exclusive bounds; widen the window so
# no reporting-timezone day at the month edges is cut off.
GITLAB_DATE_MARGIN = timedelta(days=2)


class Source(StrEnum):
    GITHUB_COMMITS = "github_commits"
    GITHUB_PULL_REQUESTS = "github_pull_requests"
    GITLAB_EVENTS = "gitlab_events"


@dataclass(frozen=True)
class SourceQuery:
    """Scope of one source request: a user and an inclusive day range."""

    username: str
    first_day: date
    last_day: date

    def window(self, tz: ZoneInfo) -> tuple[datetime, datetime]:
        start = datetime.combine(self.first_day, time.min, tzinfo=tz)
        end = datetime.combine(self.last_day, time(23, 59, 59), tzinfo=tz)
        return start, end

    def utc_window(self, tz: ZoneInfo) -> tuple[str, str]:
        """Window bounds as UTC ISO-8601 strings for search qualifiers."""

        start, end = self.window(tz)
        return format_utc(start), format_utc(end)


@dataclass(frozen=True)
class ActivityItem:
    source: Source
    kind: str
    occurred_at: datetime
    identifier: str | None = None


def format_utc(moment: datetime) -> str:
    return moment.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_timestamp(raw_value: str) -> datetime | None:
    """Parse an upstream ISO-8601 timestamp; naive values are taken as UTC."""

    try:
        parsed = datetime.fromisoformat(raw_value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def source_token(source: Source, settings: Settings) -> str | None:
    if source is Source.GITLAB_EVENTS:
        token = settings.gitlab_token
    else:
        token = settings.github_token
    return token.strip() if token and token.strip() else None


async def collect_items(
    resource: PagedResource,
    *,
    source: Source,
    kind: str,
    timestamp_of: Callable[[Any], str | None],
    identifier_of: Callable[[Any], str | None],
) -> list[ActivityItem]:
    items: list[ActivityItem] = []
    skipped = 0
    async for raw_item in resource:
        raw_timestamp = timestamp_of(raw_item)
        occurred_at = parse_timestamp(raw_timestamp) if raw_timestamp else None
        if occurred_at is None:
            skipped += 1
            continue
        items.append(
            ActivityItem(
                source=source,
                kind=kind,
                occurred_at=occurred_at,
                identifier=identifier_of(raw_item),
            )
        )

    if skipped:
        logger.debug("%s: skipped %d items without a valid timestamp", source, skipped)
    return items


async def _fetch_github_commits(
    client: httpx.AsyncClient, query: SourceQuery, settings: Settings, token: str
) -> list[ActivityItem]:
    since, until = query.utc_window(ZoneInfo(settings.reporting_timezone))
    resource = github_client.search_commits(
        client,
        username=query.username,
        since=since,
        until=until,
        token=token,
        api_base_url=settings.github_api_base_url,
        user_agent=settings.user_agent,
        page_size=settings.page_size,
        max_pages=settings.max_pages,
    )
    return await collect_items(
        resource,
        source=Source.GITHUB_COMMITS,
        kind="commit",
        timestamp_of=github_client.commit_timestamp,
        identifier_of=github_client.commit_identifier,
    )


async def _fetch_github_pull_requests(
    client: httpx.AsyncClient, query: SourceQuery, settings: Settings, token: str
) -> list[ActivityItem]:
    since, until = query.utc_window(ZoneInfo(settings.reporting_timezone))
    resource = github_client.search_pull_requests(
        client,
        username=query.username,
        since=since,
        until=until,
        token=token,
        api_base_url=settings.github_api_base_url,
        user_agent=settings.user_agent,
        page_size=settings.page_size,
        max_pages=settings.max_pages,
    )
    return await collect_items(
        resource,
        source=Source.GITHUB_PULL_REQUESTS,
        kind="pull_request",
        timestamp_of=github_client.pull_request_timestamp,
        identifier_of=github_client.pull_request_identifier,
    )


async def _fetch_gitlab_events(
    client: httpx.AsyncClient, query: SourceQuery, settings: Settings, token: str
) -> list[ActivityItem]:
    user_id = await gitlab_client.resolve_user_id(
        client,
        username=query.username,
        token=token,
        api_base_url=settings.gitlab_api_base_url,
        user_agent=settings.user_agent,
    )
    resource = gitlab_client.list_user_events(
        client,
        user_id=user_id,
        after=query.first_day - GITLAB_DATE_MARGIN,
        before=query.last_day + GITLAB_DATE_MARGIN,
        token=token,
        api_base_url=settings.gitlab_api_base_url,
        user_agent=settings.user_agent,
        page_size=settings.page_size,
        max_pages=settings.max_pages,
    )
    return await collect_items(
        resource,
        source=Source.GITLAB_EVENTS,
        kind="event",
        timestamp_of=gitlab_client.event_timestamp,
        identifier_of=gitlab_client.event_identifier,
    )


FETCHERS = {
    Source.GITHUB_COMMITS: _fetch_github_commits,
    Source.GITHUB_PULL_REQUESTS: _fetch_github_pull_requests,
    Source.GITLAB_EVENTS: _fetch_gitlab_events,
}


async def fetch_source(
    source: Source,
    query: SourceQuery,
    client: httpx.AsyncClient,
    settings: Settings,
) -> list[ActivityItem]:
    """Fetch every activity item of one source, or nothing if it fails.

    An empty username or a missing credential skips the source. Upstream
    errors, unknown users and malformed payloads are logged and reduce the
    source to zero items instead of failing the whole aggregation.
    """

    if not query.username:
        return []

    token = source_token(source, settings)
    if token is None:
        logger.info("Skipping %s for %s: no credential configured", source, query.username)
        return []

    try:
        items = await FETCHERS[source](client, query, settings, token)
    except httpx.HTTPStatusError as exc:
        logger.warning(
            "%s request for %s failed with status %s",
            source,
            query.username,
            exc.response.status_code,
        )
        return []
    except httpx.HTTPError as exc:
        logger.warning("%s request for %s failed: %r", source, query.username, exc)
        return []
    except SourceUserNotFoundError:
        logger.info("%s: user %s not found", source, query.username)
        return []
    except ValueError as exc:
        # SourcePayloadError and JSON decoding errors.
        logger.warning(
            "%s returned an unexpected payload for %s: %s", source, query.username, exc
        )
        return []

    logger.info("%s: fetched %d items for %s", source, len(items), query.username)
    return items

