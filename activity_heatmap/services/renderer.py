import calendar
import math
import re
from dataclasses import dataclass
from datetime import date
from xml.sax.saxutils import escape
from xml.sax.saxutils import quoteattr

from activity_heatmap.api.schemas.heatmap import HeatmapCell
from activity_heatmap.api.schemas.heatmap import HeatmapView
from activity_heatmap.api.schemas.heatmap import HeatmapWeek
from activity_heatmap.api.schemas.heatmap import LegendItem
from activity_heatmap.services.aggregator import total_events
from activity_heatmap.services.calendar_layout import CalendarGrid
from activity_heatmap.services.calendar_layout import DayCell
from activity_heatmap.services.calendar_layout import LEGEND_SWATCH_SIZE
from activity_heatmap.services.calendar_layout import build_grid
from activity_heatmap.services.calendar_layout import iter_cells
from activity_heatmap.services.calendar_layout import iter_weeks
from activity_heatmap.services.color_scale import LEGEND_COUNTS
from activity_heatmap.services.color_scale import Mode
from activity_heatmap.services.color_scale import contribution_level
from activity_heatmap.services.color_scale import get_color


EMPTY_CELL_COLOR = "transparent"
DEFAULT_BACKGROUNDS: dict[str, str] = {"light": "#ffffff", "dark": "#0d1117"}
TEXT_COLORS: dict[str, str] = {"light": "#24292f", "dark": "#e6edf3"}
FONT_FAMILY = "Segoe UI, Helvetica, Arial, sans-serif"

PADDING = 10
HEADER_FONT_SIZE = 14
HEADER_HEIGHT = 24
LEGEND_FONT_SIZE = 11
LEGEND_LABEL_GAP = 4
SECTION_GAP = 8
DAY_FONT_SIZE = 10
# Average glyph advance relative to font size, used instead of measuring text.
CHAR_WIDTH_RATIO = 0.6

BACKGROUND_PATTERN = re.compile(
    r"^(#[0-9a-fA-F]{3,4}|#[0-9a-fA-F]{6}|#[0-9a-fA-F]{8}|[a-zA-Z]{3,20})$"
)


def pluralize_events(count: int) -> str:
    return f"{count} event" if count == 1 else f"{count} events"


def month_label(year: int, month: int) -> str:
    return f"{calendar.month_name[month]} {year}"


def month_of_table(day_counts: dict[str, int]) -> tuple[int, int]:
    """Recover (year, month) from a day-count table's keys."""

    if not day_counts:
        raise ValueError("day-count table is empty")
    first_day = date.fromisoformat(min(day_counts))
    return first_day.year, first_day.month


def _day_key(grid: CalendarGrid, cell: DayCell) -> str:
    return cell.date_for(grid).isoformat()


def build_interactive_view(day_counts: dict[str, int], mode: Mode) -> HeatmapView:
    """Build the week-column tree rendered by the interactive heatmap."""

    year, month = month_of_table(day_counts)
    grid = build_grid(year, month)

    weeks: list[HeatmapWeek] = []
    for week_index, week_cells in enumerate(iter_weeks(grid)):
        cells: list[HeatmapCell] = []
        for cell in week_cells:
            if isinstance(cell, DayCell):
                key = _day_key(grid, cell)
                count = day_counts.get(key, 0)
                cells.append(
                    HeatmapCell(
                        kind="day",
                        index=cell.index,
                        column=cell.column,
                        row=cell.row,
                        size=grid.cell_size,
                        color=get_color(count, mode),
                        date=key,
                        day=cell.day,
                        count=count,
                        level=contribution_level(count),
                        label=f"Date: {key} — {pluralize_events(count)}",
                    )
                )
            else:
                cells.append(
                    HeatmapCell(
                        kind="empty",
                        index=cell.index,
                        column=cell.column,
                        row=cell.row,
                        size=grid.cell_size,
                        color=EMPTY_CELL_COLOR,
                    )
                )
        weeks.append(HeatmapWeek(index=week_index, cells=cells))

    return HeatmapView(
        year=year,
        month=month,
        month_label=month_label(year, month),
        mode=mode,
        total=total_events(day_counts),
        cell_size=grid.cell_size,
        spacing=grid.spacing,
        weeks=weeks,
        legend=[
            LegendItem(count=count, color=get_color(count, mode))
            for count in LEGEND_COUNTS
        ],
    )


def text_width(text: str, font_size: int) -> int:
    return math.ceil(len(text) * font_size * CHAR_WIDTH_RATIO)


@dataclass(frozen=True)
class SvgLayout:
    """Analytic geometry of the static image; no text measurement involved."""

    width: int
    height: int
    header_baseline: int
    legend_top: int
    grid_top: int
    less_width: int


def svg_dimensions(grid: CalendarGrid, header: str) -> SvgLayout:
    less_width = text_width("Less", LEGEND_FONT_SIZE)
    more_width = text_width("More", LEGEND_FONT_SIZE)
    swatches_width = (
        len(LEGEND_COUNTS) * (LEGEND_SWATCH_SIZE + grid.spacing) - grid.spacing
    )
    legend_width = less_width + swatches_width + more_width + 2 * LEGEND_LABEL_GAP
    content_width = max(grid.width, legend_width, text_width(header, HEADER_FONT_SIZE))

    legend_top = PADDING + HEADER_HEIGHT
    grid_top = legend_top + LEGEND_SWATCH_SIZE + SECTION_GAP
    return SvgLayout(
        width=2 * PADDING + content_width,
        height=grid_top + grid.height + PADDING,
        header_baseline=PADDING + HEADER_FONT_SIZE,
        legend_top=legend_top,
        grid_top=grid_top,
        less_width=less_width,
    )


def resolve_background(background: str | None, mode: Mode) -> str:
    """Use `background` when it is a plain CSS color token, else the mode default."""

    if background:
        candidate = background.strip()
        if BACKGROUND_PATTERN.match(candidate):
            return candidate
    return DEFAULT_BACKGROUNDS[mode]


def _legend_elements(grid: CalendarGrid, layout: SvgLayout, mode: Mode) -> list[str]:
    text_color = TEXT_COLORS[mode]
    middle_y = layout.legend_top + LEGEND_SWATCH_SIZE // 2
    elements = [
        f'<text x="{PADDING}" y="{middle_y}" fill="{text_color}" '
        f'font-size="{LEGEND_FONT_SIZE}" dominant-baseline="middle">Less</text>'
    ]

    x = PADDING + layout.less_width + LEGEND_LABEL_GAP
    for count in LEGEND_COUNTS:
        elements.append(
            f'<rect x="{x}" y="{layout.legend_top}" width="{LEGEND_SWATCH_SIZE}" '
            f'height="{LEGEND_SWATCH_SIZE}" fill="{get_color(count, mode)}" />'
        )
        x += LEGEND_SWATCH_SIZE + grid.spacing

    x += LEGEND_LABEL_GAP - grid.spacing
    elements.append(
        f'<text x="{x}" y="{middle_y}" fill="{text_color}" '
        f'font-size="{LEGEND_FONT_SIZE}" dominant-baseline="middle">More</text>'
    )
    return elements


def _grid_elements(
    grid: CalendarGrid, layout: SvgLayout, day_counts: dict[str, int], mode: Mode
) -> list[str]:
    elements: list[str] = []
    for cell in iter_cells(grid):
        x = PADDING + cell.x
        y = layout.grid_top + cell.y
        if not isinstance(cell, DayCell):
            elements.append(
                f'<rect x="{x}" y="{y}" width="{grid.cell_size}" '
                f'height="{grid.cell_size}" fill="{EMPTY_CELL_COLOR}" />'
            )
            continue

        key = _day_key(grid, cell)
        count = day_counts.get(key, 0)
        # Darker buckets need light text to keep the day number readable.
        if mode == "dark" or contribution_level(count) >= 2:
            label_color = "#ffffff"
        else:
            label_color = TEXT_COLORS["light"]
        center = grid.cell_size // 2
        elements.append(
            f'<g><title>{escape(f"{key}: {pluralize_events(count)}")}</title>'
            f'<rect x="{x}" y="{y}" width="{grid.cell_size}" height="{grid.cell_size}" '
            f'fill="{get_color(count, mode)}" />'
            f'<text x="{x + center}" y="{y + center}" fill="{label_color}" '
            f'font-size="{DAY_FONT_SIZE}" text-anchor="middle" '
            f'dominant-baseline="central">{cell.day}</text></g>'
        )
    return elements


def render_svg(
    day_counts: dict[str, int], mode: Mode, background: str | None = None
) -> str:
    """Render the month heatmap as a self-contained SVG document."""

    year, month = month_of_table(day_counts)
    grid = build_grid(year, month)
    header = f"{month_label(year, month)} · {pluralize_events(total_events(day_counts))}"
    layout = svg_dimensions(grid, header)

    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{layout.width}" '
        f'height="{layout.height}" viewBox="0 0 {layout.width} {layout.height}" '
        f"font-family={quoteattr(FONT_FAMILY)}>",
        f'<rect x="0" y="0" width="{layout.width}" height="{layout.height}" '
        f"fill={quoteattr(resolve_background(background, mode))} />",
        f'<text x="{PADDING}" y="{layout.header_baseline}" fill="{TEXT_COLORS[mode]}" '
        f'font-size="{HEADER_FONT_SIZE}" font-weight="600">{escape(header)}</text>',
        *_legend_elements(grid, layout, mode),
        *_grid_elements(grid, layout, day_counts, mode),
        "</svg>",
    ]
    return "\n".join(parts)
