from fastapi import FastAPI

from activity_heatmap.api.routes.heatmap import router
from activity_heatmap.core.log_config import configure_logging
from activity_heatmap.core.middleware import HeatmapRateLimitMiddleware
from activity_heatmap.core.observability import init_sentry
from activity_heatmap.settings import Settings


def create_app() -> FastAPI:
    """Build the FastAPI application from current environment settings."""

    settings = Settings()
    configure_logging(settings)
    init_sentry(settings)

    application = FastAPI(title="Activity Heatmap")
    application.add_middleware(
        HeatmapRateLimitMiddleware,
        requests_per_window=settings.rate_limit_per_minute,
        window_seconds=settings.rate_limit_window_seconds,
        trust_forwarded_for=settings.trust_forwarded_for,
    )
    application.include_router(router)
    return application


app = create_app()
