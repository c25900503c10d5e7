import httpx
import pytest
from fastapi.testclient import TestClient

from activity_heatmap.main import app
from activity_heatmap.services.aggregator import empty_day_table
from activity_heatmap.services.source_fetcher import FETCHERS
from activity_heatmap.services.source_fetcher import Source
from activity_heatmap.settings import Settings


client = TestClient(app)


@pytest.fixture
def fake_aggregate(monkeypatch: pytest.MonkeyPatch) -> list[tuple[str, str, int, int]]:
    """Replace upstream aggregation with a fixed June 2025 table."""

    calls: list[tuple[str, str, int, int]] = []

    async def fake(
        github_username: str,
        gitlab_username: str,
        year: int,
        month: int,
        *,
        settings: Settings | None = None,
    ) -> dict[str, int]:
        calls.append((github_username, gitlab_username, year, month))
        table = empty_day_table(2025, 6)
        table["2025-06-05"] = 4
        table["2025-06-20"] = 2
        return table

    monkeypatch.setattr("activity_heatmap.api.routes.heatmap.aggregate", fake)
    monkeypatch.setattr(
        "activity_heatmap.api.routes.heatmap.current_month", lambda tz: (2025, 6)
    )
    return calls


def test_read_root_returns_hello_world() -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"message": "Hello World"}


def test_health_live_returns_ok() -> None:
    response = client.get("/health/live")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_settings_reads_tokens_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_example")
    monkeypatch.setenv("GITLAB_TOKEN", "glpat_example")
    monkeypatch.setenv("REPORTING_TIMEZONE", "UTC")

    settings = Settings()

    assert settings.github_token == "ghp_example"
    assert settings.gitlab_token == "glpat_example"
    assert settings.reporting_timezone == "UTC"


def test_heatmap_image_returns_uncached_svg(fake_aggregate) -> None:
    response = client.get(
        "/api/heatmap", params={"github": "octocat", "gitlab": "gluser", "mode": "dark"}
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("image/svg+xml")
    assert response.headers["cache-control"] == "no-cache, no-store, must-revalidate"
    assert response.headers["pragma"] == "no-cache"
    assert "June 2025 · 6 events" in response.text
    assert 'fill="#0d1117"' in response.text
    assert fake_aggregate == [("octocat", "gluser", 2025, 6)]


def test_heatmap_image_honours_background_override(fake_aggregate) -> None:
    response = client.get("/api/heatmap", params={"github": "octocat", "bg": "#123456"})

    assert response.status_code == 200
    assert 'fill="#123456"' in response.text


def test_heatmap_image_defaults_to_light_mode(fake_aggregate) -> None:
    response = client.get("/api/heatmap", params={"mode": "sepia"})

    assert response.status_code == 200
    assert 'fill="#ffffff"' in response.text
    assert 'fill="#0d1117"' not in response.text
    assert fake_aggregate == [("", "", 2025, 6)]


def test_heatmap_days_returns_month_table(fake_aggregate) -> None:
    response = client.get("/api/heatmap/days", params={"github": "octocat"})

    assert response.status_code == 200
    assert response.headers["cache-control"] == "no-cache, no-store, must-revalidate"
    payload = response.json()
    assert (payload["year"], payload["month"], payload["total"]) == (2025, 6, 6)
    assert len(payload["days"]) == 30
    assert payload["days"][4] == {"date": "2025-06-05", "count": 4}


def test_embed_view_returns_interactive_tree(fake_aggregate) -> None:
    response = client.get(
        "/embed",
        params={"embed": "true", "theme": "dark", "github": "octocat", "gitlab": ""},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["mode"] == "dark"
    assert payload["month_label"] == "June 2025"
    assert payload["total"] == 6
    assert len(payload["weeks"]) == 5
    first_cell = payload["weeks"][0]["cells"][0]
    assert first_cell["kind"] == "day"
    assert first_cell["label"] == "Date: 2025-06-01 — 0 events"


def test_heatmap_image_with_failing_upstream_shows_zero_heatmap(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Both platforms failing still yields an image rather than an error."""

    monkeypatch.setenv("GITHUB_TOKEN", "gh")
    monkeypatch.setenv("GITLAB_TOKEN", "gl")

    async def unreachable(client, query, settings, token):
        raise httpx.ConnectError("upstream unreachable")

    for source in Source:
        monkeypatch.setitem(FETCHERS, source, unreachable)

    response = client.get("/api/heatmap", params={"github": "octocat", "gitlab": "gl"})

    assert response.status_code == 200
    assert "· 0 events" in response.text


@pytest.mark.parametrize(
    ("path", "params"),
    [
        ("/api/heatmap", {"github": "octocat repo:acme/secret"}),
        ("/api/heatmap/days", {"github": "octocat+is:private"}),
        ("/embed", {"gitlab": "gl user"}),
    ],
)
def test_usernames_with_search_syntax_are_rejected(
    fake_aggregate, path: str, params: dict[str, str]
) -> None:
    response = client.get(path, params=params)

    assert response.status_code == 422
    assert fake_aggregate == []


def test_usernames_with_login_characters_are_accepted(fake_aggregate) -> None:
    response = client.get(
        "/api/heatmap/days", params={"github": "octo-cat", "gitlab": "gl.user_1"}
    )

    assert response.status_code == 200
    assert fake_aggregate == [("octo-cat", "gl.user_1", 2025, 6)]
