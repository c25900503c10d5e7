from pydantic import Field
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Values are read from process environment and optionally from `.env`.
    Platform credentials live here rather than in request parameters; a
    missing token means that platform is skipped during aggregation.
    """

    github_token: str | None = None
    gitlab_token: str | None = None
    github_api_base_url: str = "https://api.github.com"
    gitlab_api_base_url: str = "https://gitlab.com/api/v4"
    reporting_timezone: str = "Europe/Prague"
    page_size: int = Field(default=100, ge=1, le=100)
    max_pages: int = Field(default=10, ge=1)
    request_timeout_seconds: float = 15.0
    user_agent: str = "activity-heatmap"
    log_level: str = "INFO"
    sentry_dsn: str | None = None
    environment: str = "development"
    release: str | None = None
    sentry_traces_sample_rate: float = 0.1
    rate_limit_per_minute: int = 30
    rate_limit_window_seconds: int = 60
    trust_forwarded_for: bool = False

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
