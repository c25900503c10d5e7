from datetime import date
from zoneinfo import ZoneInfo

from fastapi import APIRouter
from fastapi import Query
from fastapi import Response

from activity_heatmap.api.schemas.heatmap import DayCount
from activity_heatmap.api.schemas.heatmap import DayCountsResponse
from activity_heatmap.api.schemas.heatmap import HeatmapView
from activity_heatmap.services.aggregator import aggregate
from activity_heatmap.services.aggregator import current_month
from activity_heatmap.services.aggregator import total_events
from activity_heatmap.services.color_scale import normalize_mode
from activity_heatmap.services.renderer import build_interactive_view
from activity_heatmap.services.renderer import render_svg
from activity_heatmap.settings import Settings


router = APIRouter()

# Usernames end up inside search qualifiers, so only login characters pass.
GITHUB_LOGIN_PATTERN = r"^[A-Za-z0-9-]*$"
GITLAB_USERNAME_PATTERN = r"^[A-Za-z0-9_.-]*$"

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


async def aggregate_current_month(
    github: str, gitlab: str, settings: Settings
) -> dict[str, int]:
    year, month = current_month(ZoneInfo(settings.reporting_timezone))
    return await aggregate(github, gitlab, year, month, settings=settings)


@router.get("/")
async def root() -> dict[str, str]:
    """Return a basic service greeting."""

    return {"message": "Hello World"}


@router.get("/health/live")
def health_live() -> dict[str, str]:
    """Return the liveness status for health checks."""

    return {"status": "ok"}


@router.get("/api/heatmap")
async def get_heatmap_image(
    github: str = Query(default="", max_length=39, pattern=GITHUB_LOGIN_PATTERN),
    gitlab: str = Query(default="", max_length=255, pattern=GITLAB_USERNAME_PATTERN),
    mode: str = Query(default="light"),
    bg: str | None = Query(default=None, max_length=32),
) -> Response:
    """Return the current month's heatmap as an uncached SVG image."""

    settings = Settings()
    day_counts = await aggregate_current_month(github, gitlab, settings)
    svg = render_svg(day_counts, normalize_mode(mode), background=bg)
    return Response(content=svg, media_type="image/svg+xml", headers=NO_CACHE_HEADERS)


@router.get("/api/heatmap/days", response_model=DayCountsResponse)
async def get_heatmap_days(
    response: Response,
    github: str = Query(default="", max_length=39, pattern=GITHUB_LOGIN_PATTERN),
    gitlab: str = Query(default="", max_length=255, pattern=GITLAB_USERNAME_PATTERN),
) -> DayCountsResponse:
    """Return the current month's per-day event counts."""

    settings = Settings()
    day_counts = await aggregate_current_month(github, gitlab, settings)
    response.headers.update(NO_CACHE_HEADERS)

    first_day = date.fromisoformat(next(iter(day_counts)))
    return DayCountsResponse(
        year=first_day.year,
        month=first_day.month,
        total=total_events(day_counts),
        days=[
            DayCount(date=date.fromisoformat(key), count=count)
            for key, count in day_counts.items()
        ],
    )


@router.get("/embed", response_model=HeatmapView)
async def get_embed_view(
    response: Response,
    embed: bool = Query(default=True),
    theme: str = Query(default="light"),
    github: str = Query(default="", max_length=39, pattern=GITHUB_LOGIN_PATTERN),
    gitlab: str = Query(default="", max_length=255, pattern=GITLAB_USERNAME_PATTERN),
) -> HeatmapView:
    """Return the interactive heatmap tree for an embedded frame.

    `embed` is accepted for URL compatibility with generated embed codes; the
    payload is the same either way.
    """

    settings = Settings()
    day_counts = await aggregate_current_month(github, gitlab, settings)
    response.headers.update(NO_CACHE_HEADERS)
    return build_interactive_view(day_counts, normalize_mode(theme))
