import calendar
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date


CELL_SIZE = 30
CELL_SPACING = 2
LEGEND_SWATCH_SIZE = 20
DAYS_PER_WEEK = 7


@dataclass(frozen=True)
class CalendarGrid:
    """Month geometry: week columns of seven weekday rows, Sunday first."""

    year: int
    month: int
    start_weekday: int
    days_in_month: int
    weeks: int
    cell_size: int = CELL_SIZE
    spacing: int = CELL_SPACING

    @property
    def cell_count(self) -> int:
        return self.weeks * DAYS_PER_WEEK

    @property
    def pitch(self) -> int:
        return self.cell_size + self.spacing

    @property
    def width(self) -> int:
        return self.weeks * self.pitch

    @property
    def height(self) -> int:
        return DAYS_PER_WEEK * self.pitch


@dataclass(frozen=True)
class EmptyCell:
    index: int
    column: int
    row: int
    x: int
    y: int
    kind: str = "empty"


@dataclass(frozen=True)
class DayCell:
    index: int
    day: int
    column: int
    row: int
    x: int
    y: int
    kind: str = "day"

    def date_for(self, grid: CalendarGrid) -> date:
        return date(grid.year, grid.month, self.day)


def validate_year_month(year: int, month: int) -> None:
    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month}")
    if not 1 <= year <= 9999:
        raise ValueError(f"year must be in 1..9999, got {year}")


def build_grid(
    year: int,
    month: int,
    cell_size: int = CELL_SIZE,
    spacing: int = CELL_SPACING,
) -> CalendarGrid:
    """Compute the calendar geometry for one month."""

    validate_year_month(year, month)
    days_in_month = calendar.monthrange(year, month)[1]
    # date.weekday() counts from Monday; the grid counts from Sunday.
    start_weekday = (date(year, month, 1).weekday() + 1) % DAYS_PER_WEEK
    weeks = -(-(start_weekday + days_in_month) // DAYS_PER_WEEK)
    return CalendarGrid(
        year=year,
        month=month,
        start_weekday=start_weekday,
        days_in_month=days_in_month,
        weeks=weeks,
        cell_size=cell_size,
        spacing=spacing,
    )


def cell_at(grid: CalendarGrid, index: int) -> EmptyCell | DayCell:
    """Resolve one cell index in column-major scan order."""

    if not 0 <= index < grid.cell_count:
        raise IndexError(f"cell index {index} outside 0..{grid.cell_count - 1}")

    column, row = divmod(index, DAYS_PER_WEEK)
    x = column * grid.pitch
    y = row * grid.pitch
    day = index - grid.start_weekday + 1
    if index >= grid.start_weekday and day <= grid.days_in_month:
        return DayCell(index=index, day=day, column=column, row=row, x=x, y=y)
    return EmptyCell(index=index, column=column, row=row, x=x, y=y)


def iter_cells(grid: CalendarGrid) -> Iterator[EmptyCell | DayCell]:
    for index in range(grid.cell_count):
        yield cell_at(grid, index)


def iter_weeks(grid: CalendarGrid) -> Iterator[list[EmptyCell | DayCell]]:
    """Yield the grid one week column at a time, seven cells each."""

    cells = list(iter_cells(grid))
    for start in range(0, len(cells), DAYS_PER_WEEK):
        yield cells[start : start + DAYS_PER_WEEK]
