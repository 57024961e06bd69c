"""Clock abstraction so "today" can be injected and advanced in tests."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Protocol
from zoneinfo import ZoneInfo

from greenday.workspace import get_user_timezone


class Clock(Protocol):
    tz: ZoneInfo

    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    """Wall-clock time in the user's profile timezone."""

    def __init__(self, tz: ZoneInfo | None = None) -> None:
        self.tz = tz or ZoneInfo("UTC")

    @classmethod
    def from_profile(cls, root: Path | None = None) -> SystemClock:
        return cls(get_user_timezone(root))

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """A clock that only moves when told to."""

    def __init__(self, current: date | datetime, tz: ZoneInfo | None = None) -> None:
        self.tz = tz or ZoneInfo("UTC")
        if isinstance(current, datetime):
            self._now = current if current.tzinfo else current.replace(tzinfo=self.tz)
        else:
            self._now = datetime(current.year, current.month, current.day, 12, tzinfo=self.tz)

    def now(self) -> datetime:
        return self._now

    def today(self) -> date:
        return self._now.astimezone(self.tz).date()

    def set(self, current: date | datetime) -> None:
        if isinstance(current, datetime):
            self._now = current if current.tzinfo else current.replace(tzinfo=self.tz)
        else:
            self._now = datetime(current.year, current.month, current.day, 12, tzinfo=self.tz)

    def advance(self, days: int = 0, **kwargs: float) -> None:
        self._now += timedelta(days=days, **kwargs)
