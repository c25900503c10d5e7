from collections.abc import Mapping
from typing import Any

import httpx

from activity_heatmap.clients.pagination import PagedResource
from activity_heatmap.clients.pagination import search_payload


def build_headers(token: str, user_agent: str, accept: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Accept": accept,
        "User-Agent": user_agent,
    }


def search_commits(
    client: httpx.AsyncClient,
    *,
    username: str,
    since: str,
    until: str,
    token: str,
    api_base_url: str,
    user_agent: str,
    page_size: int = 100,
    max_pages: int = 10,
) -> PagedResource:
    """Stream commits authored by `username` with a committer date in range."""

    return PagedResource(
        client,
        f"{api_base_url.rstrip('/')}/search/commits",
        params={
            "q": f"author:{username} committer-date:{since}..{until}",
            "per_page": page_size,
        },
        headers=build_headers(token, user_agent, "application/vnd.github+json"),
        extract=search_payload,
        max_pages=max_pages,
    )


def search_pull_requests(
    client: httpx.AsyncClient,
    *,
    username: str,
    since: str,
    until: str,
    token: str,
    api_base_url: str,
    user_agent: str,
    page_size: int = 100,
    max_pages: int = 10,
) -> PagedResource:
    """Stream pull requests opened by `username` in range."""

    return PagedResource(
        client,
        f"{api_base_url.rstrip('/')}/search/issues",
        params={
            "q": f"type:pr author:{username} created:{since}..{until}",
            "per_page": page_size,
        },
        headers=build_headers(token, user_agent, "application/vnd.github+json"),
        extract=search_payload,
        max_pages=max_pages,
    )


def commit_timestamp(item: Any) -> str | None:
    if not isinstance(item, Mapping):
        return None
    commit = item.get("commit")
    if not isinstance(commit, Mapping):
        return None
    author = commit.get("author")
    if not isinstance(author, Mapping):
        return None
    raw_date = author.get("date")
    return raw_date if isinstance(raw_date, str) else None


def commit_identifier(item: Any) -> str | None:
    if not isinstance(item, Mapping):
        return None
    sha = item.get("sha")
    return sha if isinstance(sha, str) else None


def pull_request_timestamp(item: Any) -> str | None:
    if not isinstance(item, Mapping):
        return None
    raw_date = item.get("created_at")
    return raw_date if isinstance(raw_date, str) else None


def pull_request_identifier(item: Any) -> str | None:
    if not isinstance(item, Mapping):
        return None
    raw_id = item.get("id")
    return str(raw_id) if isinstance(raw_id, int) else None
