import pytest

from activity_heatmap.services.color_scale import LEGEND_COUNTS
from activity_heatmap.services.color_scale import PALETTES
from activity_heatmap.services.color_scale import contribution_level
from activity_heatmap.services.color_scale import get_color
from activity_heatmap.services.color_scale import normalize_mode


@pytest.mark.parametrize(
    ("count", "level"),
    [(0, 0), (1, 1), (2, 1), (3, 2), (5, 2), (6, 3), (9, 3), (10, 4), (10_000, 4)],
)
def test_contribution_level_bucket_boundaries(count: int, level: int) -> None:
    assert contribution_level(count) == level


def test_bucket_representatives_use_matching_palette_entries() -> None:
    for mode in ("light", "dark"):
        colors = [get_color(count, mode) for count in (0, 2, 5, 9, 10)]
        assert colors == list(PALETTES[mode])


def test_light_and_dark_differ_for_every_bucket() -> None:
    for count in LEGEND_COUNTS:
        assert get_color(count, "light") != get_color(count, "dark")


def test_legend_counts_cover_each_bucket_once() -> None:
    assert [contribution_level(count) for count in LEGEND_COUNTS] == [0, 1, 2, 3, 4]


def test_get_color_rejects_negative_count() -> None:
    with pytest.raises(ValueError):
        get_color(-1, "light")


def test_get_color_rejects_unknown_mode() -> None:
    with pytest.raises(ValueError):
        get_color(1, "sepia")  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("dark", "dark"),
        (" DARK ", "dark"),
        ("light", "light"),
        ("", "light"),
        (None, "light"),
        ("blue", "light"),
    ],
)
def test_normalize_mode(raw: str | None, expected: str) -> None:
    assert normalize_mode(raw) == expected
