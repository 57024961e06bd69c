"""Typed data model for GreenDay.

Persisted models use from_dict/to_dict for JSON serialization.
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any
from zoneinfo import ZoneInfo

from loguru import logger

from greenday.errors import InvalidDateKey

DATE_KEY_FORMAT = "%Y-%m-%d"
DATE_KEY_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


# ── Day status ────────────────────────────────────────────────


class DayStatus(str, enum.Enum):
    """Colour of a single day.

    GREEN, RED and UNMARKED are the real states. TODAY is only ever returned
    by status lookups for the current, still unmarked day so views can
    highlight it; it is never stored.
    """

    GREEN = "green"
    RED = "red"
    UNMARKED = "unmarked"
    TODAY = "today"

    @property
    def is_marked(self) -> bool:
        return self in (DayStatus.GREEN, DayStatus.RED)

    def next(self) -> DayStatus:
        """Status after one toggle. A marked day never returns to UNMARKED."""
        if self is DayStatus.GREEN:
            return DayStatus.RED
        return DayStatus.GREEN


# ── Date keys ─────────────────────────────────────────────────


def to_date_key(value: Any, tz: ZoneInfo | None = None) -> date:
    """Normalize *value* to a calendar day.

    Accepts a ``date``, a ``datetime`` (aware values are converted to *tz*
    first) or a ``YYYY-MM-DD`` string.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None and tz is not None:
            value = value.astimezone(tz)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        s = value.strip()
        try:
            if not DATE_KEY_RE.fullmatch(s):
                raise ValueError(s)
            return datetime.strptime(s, DATE_KEY_FORMAT).date()
        except ValueError:
            raise InvalidDateKey(f"Invalid date key: {value!r} (expected YYYY-MM-DD)") from None
    raise InvalidDateKey(f"Invalid date key: {value!r}")


def format_date_key(d: date) -> str:
    return d.strftime(DATE_KEY_FORMAT)


def _parse_install_date(raw: Any, tz: ZoneInfo | None) -> date | None:
    """Install day from its stored form; None only when it is absent.

    A value that is present but unparseable raises InvalidDateKey.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        try:
            return datetime.fromtimestamp(raw, tz or ZoneInfo("UTC")).date()
        except (OverflowError, OSError, ValueError):
            raise InvalidDateKey(f"Invalid installDate: {raw!r}") from None
    if isinstance(raw, str):
        s = raw.strip()
        if "T" in s or " " in s:
            try:
                # The stored timestamp is start-of-day in the profile tz, so its
                # date part is the install day as the user saw it.
                return datetime.fromisoformat(s).date()
            except ValueError:
                pass
    try:
        return to_date_key(raw)
    except InvalidDateKey:
        raise InvalidDateKey(f"Invalid installDate: {raw!r}") from None


def _parse_date_list(raw: Any, key: str) -> list[date]:
    if not isinstance(raw, (list, tuple)):
        if raw not in (None, ""):
            logger.warning("Ignoring {}: expected a list, got {}", key, type(raw).__name__)
        return []
    out = []
    for item in raw:
        try:
            out.append(to_date_key(str(item)))
        except InvalidDateKey:
            logger.warning("Skipping malformed entry {!r} in {}", item, key)
    return out


# ── Persisted state ───────────────────────────────────────────


@dataclass
class TrackerState:
    """Everything the store keeps on disk."""

    install_date: date | None = None
    marks: dict[date, DayStatus] = field(default_factory=dict)

    @property
    def green_dates(self) -> list[date]:
        return sorted(d for d, s in self.marks.items() if s is DayStatus.GREEN)

    @property
    def red_dates(self) -> list[date]:
        return sorted(d for d, s in self.marks.items() if s is DayStatus.RED)

    @classmethod
    def from_dict(cls, d: dict[str, Any], tz: ZoneInfo | None = None) -> TrackerState:
        """Malformed day entries are skipped; a malformed installDate raises InvalidDateKey."""
        if not d or not isinstance(d, dict):
            return cls()
        marks: dict[date, DayStatus] = {}
        for day in _parse_date_list(d.get("redDates", d.get("red_dates")), "redDates"):
            marks[day] = DayStatus.RED
        # A day listed in both sequences counts as green.
        for day in _parse_date_list(d.get("greenDates", d.get("green_dates")), "greenDates"):
            marks[day] = DayStatus.GREEN
        return cls(
            install_date=_parse_install_date(d.get("installDate", d.get("install_date")), tz),
            marks=marks,
        )

    def to_dict(self, tz: ZoneInfo | None = None) -> dict[str, Any]:
        d: dict[str, Any] = {
            "greenDates": [format_date_key(x) for x in self.green_dates],
            "redDates": [format_date_key(x) for x in self.red_dates],
        }
        if self.install_date is not None:
            start = datetime.combine(self.install_date, time.min, tzinfo=tz or ZoneInfo("UTC"))
            d["installDate"] = start.isoformat()
        return d


# ── Score ─────────────────────────────────────────────────────


@dataclass
class ScoreSummary:
    total_available_days: int = 1
    total_marked_days: int = 0
    green_count: int = 0
    red_count: int = 0
    unmarked_days: int = 0
    score_percent: int = 0
    score_band: str = "none"
    hint: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalAvailableDays": self.total_available_days,
            "totalMarkedDays": self.total_marked_days,
            "greenCount": self.green_count,
            "redCount": self.red_count,
            "unmarkedDays": self.unmarked_days,
            "scorePercent": self.score_percent,
            "scoreBand": self.score_band,
            "hint": self.hint,
        }
