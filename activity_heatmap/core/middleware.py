from collections import deque
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Iterable
from threading import RLock
from time import monotonic

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response


AGGREGATION_PATHS = frozenset({"/api/heatmap", "/api/heatmap/days", "/embed"})


class HeatmapRateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window limiter for the endpoints that fan out to GitHub and GitLab.

    Clients are keyed by socket address. `X-Forwarded-For` is only honoured
    when `trust_forwarded_for` is set, i.e. when the app runs behind a proxy
    that overwrites the header. Windows that have fully expired are dropped,
    so the number of tracked clients stays bounded by recent traffic.
    """

    def __init__(
        self,
        app,
        requests_per_window: int = 30,
        window_seconds: int = 60,
        limited_paths: Iterable[str] = AGGREGATION_PATHS,
        trust_forwarded_for: bool = False,
    ) -> None:
        super().__init__(app)
        self.max_requests = max(1, requests_per_window)
        self.window_seconds = max(1, window_seconds)
        self.limited_paths = frozenset(limited_paths)
        self.trust_forwarded_for = trust_forwarded_for
        self._windows: dict[str, deque[float]] = {}
        self._last_sweep = monotonic()
        self._lock = RLock()

    @property
    def tracked_clients(self) -> int:
        return len(self._windows)

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.method != "GET" or request.url.path not in self.limited_paths:
            return await call_next(request)

        retry_after = self.register(self.client_key(request), monotonic())
        if retry_after is not None:
            return JSONResponse(
                status_code=429,
                content={"detail": "Too Many Requests"},
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)

    def register(self, key: str, now: float) -> int | None:
        """Record one request for `key`; return Retry-After seconds when over limit."""

        cutoff = now - self.window_seconds
        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(cutoff)
                self._last_sweep = now

            window = self._windows.get(key)
            if window is not None:
                while window and window[0] <= cutoff:
                    window.popleft()
                if not window:
                    del self._windows[key]
                    window = None

            if window is not None and len(window) >= self.max_requests:
                return max(1, int(self.window_seconds - (now - window[0])))

            self._windows.setdefault(key, deque()).append(now)
            return None

    def _sweep(self, cutoff: float) -> None:
        expired = [key for key, window in self._windows.items() if window[-1] <= cutoff]
        for key in expired:
            del self._windows[key]

    def client_key(self, request: Request) -> str:
        if self.trust_forwarded_for:
            forwarded_for = request.headers.get("x-forwarded-for")
            if forwarded_for:
                first_hop = forwarded_for.split(",")[0].strip()
                if first_hop:
                    return first_hop

        if request.client and request.client.host:
            return request.client.host

        return "unknown"
