from typing import Literal


Mode = Literal["light", "dark"]

LEGEND_COUNTS: tuple[int, ...] = (0, 1, 3, 6, 10)

# One color per contribution level 0..4.
PALETTES: dict[str, tuple[str, ...]] = {
    "light": ("#F3E5F5", "#CE93D8", "#AB47BC", "#8E24AA", "#6A1B9A"),
    "dark": ("#3A3A3A", "#6A1B9A", "#7B1FA2", "#8E24AA", "#9C27B0"),
}


def normalize_mode(raw_mode: str | None) -> Mode:
    """Return `dark` only for an explicit dark request, `light` otherwise."""

    if raw_mode is not None and raw_mode.strip().lower() == "dark":
        return "dark"
    return "light"


def contribution_level(count: int) -> int:
    """Map daily contribution count to a heatmap level in range 0..4."""

    if count < 0:
        raise ValueError("count must be non-negative")
    if count == 0:
        return 0
    if count < 3:
        return 1
    if count < 6:
        return 2
    if count < 10:
        return 3
    return 4


def get_color(count: int, mode: Mode) -> str:
    """Return the fill color for a day with `count` events."""

    try:
        palette = PALETTES[mode]
    except KeyError as exc:
        raise ValueError(f"unknown color mode: {mode!r}") from exc
    return palette[contribution_level(count)]
