from collections.abc import Mapping
from datetime import date
from typing import Any

import httpx

from activity_heatmap.clients.pagination import PagedResource
from activity_heatmap.clients.pagination import SourcePayloadError
from activity_heatmap.clients.pagination import SourceUserNotFoundError


def build_headers(token: str, user_agent: str) -> dict[str, str]:
    return {"Private-Token": token, "User-Agent": user_agent}


async def resolve_user_id(
    client: httpx.AsyncClient,
    *,
    username: str,
    token: str,
    api_base_url: str,
    user_agent: str,
) -> int:
    """Look up the numeric GitLab user id for `username`."""

    response = await client.get(
        f"{api_base_url.rstrip('/')}/users",
        params={"username": username},
        headers=build_headers(token, user_agent),
    )
    response.raise_for_status()

    payload: Any = response.json()
    if not isinstance(payload, list):
        raise SourcePayloadError("GitLab users response is invalid")
    if not payload:
        raise SourceUserNotFoundError(f"GitLab user {username!r} not found")

    first = payload[0]
    raw_id = first.get("id") if isinstance(first, Mapping) else None
    if not isinstance(raw_id, int):
        raise SourcePayloadError("GitLab user response is missing id")
    return raw_id


def list_user_events(
    client: httpx.AsyncClient,
    *,
    user_id: int,
    after: date,
    before: date,
    token: str,
    api_base_url: str,
    user_agent: str,
    page_size: int = 100,
    max_pages: int = 10,
) -> PagedResource:
    """Stream the user's events strictly between `after` and `before`."""

    return PagedResource(
        client,
        f"{api_base_url.rstrip('/')}/users/{user_id}/events",
        params={
            "after": after.isoformat(),
            "before": before.isoformat(),
            "per_page": page_size,
            "sort": "asc",
        },
        headers=build_headers(token, user_agent),
        max_pages=max_pages,
    )


def event_timestamp(item: Any) -> str | None:
    if not isinstance(item, Mapping):
        return None
    raw_date = item.get("created_at")
    return raw_date if isinstance(raw_date, str) else None


def event_identifier(item: Any) -> str | None:
    if not isinstance(item, Mapping):
        return None
    raw_id = item.get("id")
    return str(raw_id) if isinstance(raw_id, int) else None
