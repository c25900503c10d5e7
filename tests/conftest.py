import asyncio
from collections.abc import Awaitable
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from activity_heatmap.settings import Settings


Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        github_token="gh-token",
        gitlab_token="gl-token",
        github_api_base_url="https://api.github.test",
        gitlab_api_base_url="https://gitlab.test/api/v4",
        reporting_timezone="Europe/Prague",
        max_pages=10,
    )


def run_with_client(
    handler: Handler, call: Callable[[httpx.AsyncClient], Awaitable[Any]]
) -> Any:
    """Run `call` against an AsyncClient whose requests are served by `handler`."""

    async def runner() -> Any:
        transport = httpx.MockTransport(handler)
        async with httpx.AsyncClient(transport=transport) as client:
            return await call(client)

    return asyncio.run(runner())


@pytest.fixture
def with_mock_client() -> Callable[..., Any]:
    return run_with_client


def upstream_handler(
    *,
    commits: list[dict[str, Any]] | None = None,
    pull_requests: list[dict[str, Any]] | None = None,
    gitlab_users: list[dict[str, Any]] | None = None,
    gitlab_events: list[dict[str, Any]] | None = None,
    failing_paths: frozenset[str] = frozenset(),
    page_size: int = 100,
) -> Handler:
    """Fake GitHub and GitLab APIs serving fixed item lists with pagination."""

    if gitlab_users is None:
        gitlab_users = [{"id": 42, "username": "gluser"}]
    routes: dict[str, tuple[list[dict[str, Any]], bool]] = {
        "/search/commits": (commits or [], True),
        "/search/issues": (pull_requests or [], True),
        "/api/v4/users/42/events": (gitlab_events or [], False),
    }

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path in failing_paths:
            raise httpx.ConnectError("upstream unreachable", request=request)
        if path == "/api/v4/users":
            return httpx.Response(200, json=gitlab_users)
        if path not in routes:
            return httpx.Response(404, json={"message": "Not Found"})

        items, is_search = routes[path]
        page = int(request.url.params.get("page", "1"))
        chunk = items[(page - 1) * page_size : page * page_size]
        headers = {}
        if page * page_size < len(items):
            next_url = request.url.copy_set_param("page", str(page + 1))
            headers["Link"] = f'<{next_url}>; rel="next"'
        payload: Any = chunk
        if is_search:
            payload = {"total_count": len(items), "items": chunk}
        return httpx.Response(200, json=payload, headers=headers)

    return handler


@pytest.fixture
def fake_upstream() -> Callable[..., Handler]:
    return upstream_handler
