import logging

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from activity_heatmap.settings import Settings


def init_sentry(app_settings: Settings) -> None:
    """Initialize Sentry SDK when DSN is configured.

    Warning-level log records are forwarded as Sentry events.
    """

    if not app_settings.sentry_dsn:
        return

    sentry_sdk.init(
        dsn=app_settings.sentry_dsn,
        environment=app_settings.environment,
        release=app_settings.release,
        traces_sample_rate=app_settings.sentry_traces_sample_rate,
        send_default_pii=False,
        integrations=[LoggingIntegration(event_level=logging.WARNING)],
    )
