"""Month grid layout for calendar views.

Pure functions of (year, month); nothing here reads the store.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta

GRID_WEEKS = 6
GRID_CELLS = GRID_WEEKS * 7

SUNDAY = calendar.SUNDAY
MONDAY = calendar.MONDAY

_DAY_ABBR = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def _check(year: int, month: int) -> None:
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    if not 1 <= year <= 9999:
        raise ValueError(f"Invalid year: {year}")


def month_grid(year: int, month: int, first_weekday: int = SUNDAY) -> list[date | None]:
    """42 cells for a 6x7 grid; None marks days outside the month.

    The grid starts on the *first_weekday* on or before the 1st.
    """
    _check(year, month)
    first = date(year, month, 1)
    offset = (first.weekday() - first_weekday) % 7
    _, days_in_month = calendar.monthrange(year, month)

    cells: list[date | None] = [None] * offset
    cells.extend(first + timedelta(days=i) for i in range(days_in_month))
    cells.extend([None] * (GRID_CELLS - len(cells)))
    return cells


def month_weeks(year: int, month: int, first_weekday: int = SUNDAY) -> list[list[date | None]]:
    cells = month_grid(year, month, first_weekday)
    return [cells[i:i + 7] for i in range(0, GRID_CELLS, 7)]


def weekday_labels(first_weekday: int = SUNDAY) -> list[str]:
    return [_DAY_ABBR[(first_weekday + i) % 7] for i in range(7)]


def month_title(year: int, month: int) -> str:
    """e.g. "January 2024"."""
    _check(year, month)
    return f"{calendar.month_name[month]} {year}"


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    _check(year, month)
    index = year * 12 + (month - 1) + delta
    year, month = divmod(index, 12)
    month += 1
    _check(year, month)
    return year, month
