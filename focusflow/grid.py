# focusflow/grid.py
"""Month grid date arithmetic (Monday-first, always 6 x 7 cells)."""

from __future__ import annotations

import calendar
import datetime as dt
from typing import List, Tuple

from .model import CalendarCell
from .util.dates import pad2

GRID_CELLS = 42  # 6 weeks; row count never changes between months

MIN_YEAR = dt.MINYEAR
MAX_YEAR = dt.MAXYEAR


def year_in_range(year: int) -> bool:
    return MIN_YEAR <= int(year) <= MAX_YEAR


def days_in_month(year: int, month_index: int) -> int:
    return calendar.monthrange(int(year), int(month_index) + 1)[1]


def iso_from_parts(year: int, month_index: int, day: int) -> str:
    return f"{int(year):04d}-{pad2(int(month_index) + 1)}-{pad2(day)}"


def shift_month(year: int, month_index: int, delta: int) -> Tuple[int, int]:
    """Move (year, month_index) by `delta` months, wrapping years."""
    total = int(year) * 12 + int(month_index) + int(delta)
    return total // 12, total % 12


def start_weekday(year: int, month_index: int) -> int:
    """Weekday of the 1st, Monday=0..Sunday=6."""
    return dt.date(int(year), int(month_index) + 1, 1).weekday()


def weekday_labels() -> List[str]:
    # 2024-01-01 is a Monday.
    base = dt.date(2024, 1, 1)
    return [(base + dt.timedelta(days=i)).strftime("%a") for i in range(7)]


def build_grid(year: int, month_index: int) -> List[CalendarCell]:
    year = int(year)
    month_index = int(month_index)
    if not 0 <= month_index <= 11:
        raise ValueError(f"month must be in 0..11; got {month_index}")
    if not year_in_range(year):
        raise ValueError(f"year must be in {MIN_YEAR}..{MAX_YEAR}; got {year}")

    first = start_weekday(year, month_index)
    dim = days_in_month(year, month_index)
    prev_year, prev_month = shift_month(year, month_index, -1)
    next_year, next_month = shift_month(year, month_index, 1)
    # January of year 1 starts on a Monday, so year 0 is never looked up.
    dim_prev = days_in_month(prev_year, prev_month) if first else 0

    cells: List[CalendarCell] = []
    for i in range(GRID_CELLS):
        day = i - first + 1
        cell_year, cell_month, other = year, month_index, False
        if day < 1:
            cell_year, cell_month, other = prev_year, prev_month, True
            day = dim_prev + day
        elif day > dim:
            cell_year, cell_month, other = next_year, next_month, True
            day = day - dim
        cells.append(
            CalendarCell(
                index=i,
                iso=iso_from_parts(cell_year, cell_month, day),
                year=cell_year,
                month=cell_month,
                day=day,
                other_month=other,
            )
        )
    return cells


__all__ = [
    "GRID_CELLS",
    "MIN_YEAR",
    "MAX_YEAR",
    "year_in_range",
    "days_in_month",
    "iso_from_parts",
    "shift_month",
    "start_weekday",
    "weekday_labels",
    "build_grid",
]
