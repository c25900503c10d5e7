import logging
from collections.abc import AsyncIterator
from collections.abc import Callable
from collections.abc import Mapping
from typing import Any

import httpx


logger = logging.getLogger(__name__)


class SourcePayloadError(ValueError):
    """Raised when an upstream API returns an unexpected payload shape."""


class SourceUserNotFoundError(LookupError):
    """Raised when a username resolves to no platform user."""


ItemExtractor = Callable[[Any], list[Any]]


def list_payload(payload: Any) -> list[Any]:
    """Extract items from an endpoint that returns a bare JSON array."""

    if not isinstance(payload, list):
        raise SourcePayloadError("expected a JSON array")
    return payload


def search_payload(payload: Any) -> list[Any]:
    """Extract items from a GitHub search response (`{"items": [...]}`)."""

    if not isinstance(payload, Mapping):
        raise SourcePayloadError("expected a JSON object")
    items = payload.get("items")
    if not isinstance(items, list):
        raise SourcePayloadError("search response is missing items")
    return items


def next_page_url(response: httpx.Response) -> str | None:
    """Return the URL of the next page, or None on the last page.

    The `Link: rel="next"` header is preferred because its URL already carries
    every query parameter. GitLab also sends `X-Next-Page`, which is empty on
    the last page.
    """

    next_link = response.links.get("next", {}).get("url")
    if next_link:
        return next_link

    next_page = response.headers.get("x-next-page", "").strip()
    if next_page:
        return str(response.request.url.copy_set_param("page", next_page))

    return None


class PagedResource:
    """Lazy, finite, restartable stream of items from a paginated endpoint.

    Each `async for` starts again from the first page. Iteration stops when the
    upstream reports no further page or after `max_pages` pages.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        extract: ItemExtractor = list_payload,
        max_pages: int = 10,
    ) -> None:
        if max_pages < 1:
            raise ValueError("max_pages must be at least 1")
        self.client = client
        self.url = url
        self.params = dict(params or {})
        self.headers = dict(headers or {})
        self.extract = extract
        self.max_pages = max_pages

    def __aiter__(self) -> AsyncIterator[Any]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[Any]:
        url: str = self.url
        params: dict[str, Any] | None = self.params
        pages_read = 0

        while True:
            response = await self.client.get(url, params=params, headers=self.headers)
            response.raise_for_status()
            pages_read += 1

            for item in self.extract(response.json()):
                yield item

            next_url = next_page_url(response)
            if next_url is None:
                return
            if pages_read >= self.max_pages:
                logger.warning(
                    "Stopped paging %s after %d pages; later pages were not read",
                    self.url,
                    pages_read,
                )
                return
            url, params = next_url, None

    async def collect(self) -> list[Any]:
        return [item async for item in self]
