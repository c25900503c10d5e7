from datetime import date
from typing import Literal

from pydantic import BaseModel


class HeatmapCell(BaseModel):
    """Single grid cell; empty cells pad the month to whole weeks."""

    kind: Literal["day", "empty"]
    index: int
    column: int
    row: int
    size: int
    color: str
    date: str | None = None
    day: int | None = None
    count: int | None = None
    level: int | None = None
    label: str | None = None


class HeatmapWeek(BaseModel):
    """Week column of exactly seven cells, Sunday first."""

    index: int
    cells: list[HeatmapCell]


class LegendItem(BaseModel):
    count: int
    color: str


class HeatmapView(BaseModel):
    """Interactive month heatmap tree consumed by the embeddable view."""

    year: int
    month: int
    month_label: str
    mode: Literal["light", "dark"]
    total: int
    cell_size: int
    spacing: int
    weeks: list[HeatmapWeek]
    legend: list[LegendItem]


class DayCount(BaseModel):
    date: date
    count: int


class DayCountsResponse(BaseModel):
    """Aggregated per-day event counts for one month."""

    year: int
    month: int
    total: int
    days: list[DayCount]
