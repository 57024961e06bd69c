"""Date-state store: day colours, install-date anchoring and eligibility.

One DateStateStore is owned by the running app and handed to whatever
renders it (TUI, web UI). It is not thread-safe; multi-threaded hosts
must serialize access to it.

Eligibility: a day can be toggled iff install_date <= day <= today.
Today is always eligible, even before it has been marked.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any, Callable

from loguru import logger

from greenday.clock import Clock, SystemClock
from greenday.errors import InvalidDateKey, StorageUnavailable
from greenday.hooks import HookRunner
from greenday.models import (
    DayStatus,
    ScoreSummary,
    TrackerState,
    format_date_key,
    to_date_key,
)
from greenday.storage import JsonFileStorage, Storage
from greenday.workspace import workspace_root

Subscriber = Callable[[str, dict[str, Any]], None]

HINT_START = "Start marking your days in the calendar to see your score!"
HINT_UNMARKED = (
    "Score is calculated only from days you've marked. "
    "Unmarked days don't count against you."
)


class DateStateStore:
    """Owns all persisted date-colour state."""

    def __init__(self, storage: Storage, clock: Clock | None = None) -> None:
        self.storage = storage
        self.clock: Clock = clock or SystemClock()
        self.storage_error: StorageUnavailable | None = None
        self._state = TrackerState()
        self._today = self.clock.today()
        self._subscribers: list[Subscriber] = []
        self._initialized = False
        self._loaded = False

    @classmethod
    def open(
        cls,
        root: Path | None = None,
        clock: Clock | None = None,
        hooks: bool = True,
    ) -> DateStateStore:
        """Build an initialized store over the workspace's state.json."""
        if root is None:
            root = workspace_root()
        store = cls(JsonFileStorage(root=root), clock or SystemClock.from_profile(root))
        if hooks:
            store.subscribe(HookRunner(root))
        store.initialize()
        return store

    # ── Lifecycle ─────────────────────────────────────────────

    def initialize(self) -> None:
        """Load marks and install date, anchoring the install date on first run.

        Safe to call again; a second call reloads from storage. If storage
        can't be read the store runs in memory for the rest of the session.
        """
        self._today = self.clock.today()
        try:
            state = self._load_state()
            self._loaded = True
        except StorageUnavailable as e:
            self._loaded = False
            self._storage_failed(e, "load")
            state = TrackerState()

        anchored = state.install_date is None
        if anchored:
            state.install_date = self._today
        self._state = state
        self._initialized = True

        if anchored:
            logger.info("Install date anchored to {}", format_date_key(self._today))
            if self._loaded:
                self._persist()
        logger.debug(
            "Loaded {} green / {} red days (installed {})",
            self.green_count, self.red_count, format_date_key(self.install_date),
        )

    def flush(self) -> None:
        """Write the full state now. Raises StorageUnavailable on failure.

        After a failed load this first re-reads storage and merges what is on
        disk with the marks made this session, so nothing on disk is lost.
        """
        self._ensure_ready()
        if not self._loaded:
            self._reload()
        try:
            self.storage.save(self._state.to_dict(self.clock.tz))
        except StorageUnavailable as e:
            self.storage_error = e
            raise
        if self.storage_error is not None:
            logger.info("Storage recovered, state written to {}", self.storage)
        self.storage_error = None

    @property
    def persistent(self) -> bool:
        """False while changes are only being kept in memory."""
        return self._loaded and self.storage_error is None

    # ── Observers ─────────────────────────────────────────────

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register callback(event, payload). Returns an unsubscribe function.

        Events: "toggle", "day_changed", "storage_error".
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self, event: str, payload: dict[str, Any]) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event, payload)
            except Exception:
                logger.opt(exception=True).warning("Subscriber {!r} failed on {}", callback, event)

    # ── Reads ─────────────────────────────────────────────────

    @property
    def today(self) -> date:
        return self._today

    @property
    def install_date(self) -> date:
        self._ensure_ready()
        return self._state.install_date

    @property
    def marks(self) -> dict[date, DayStatus]:
        return dict(self._state.marks)

    @property
    def green_dates(self) -> list[date]:
        return self._state.green_dates

    @property
    def red_dates(self) -> list[date]:
        return self._state.red_dates

    def status_of(self, value: Any) -> DayStatus:
        """Colour of a day. Unmarked today comes back as DayStatus.TODAY."""
        self._ensure_ready()
        key = self._key(value)
        status = self._state.marks.get(key)
        if status is not None:
            return status
        if key == self._today:
            return DayStatus.TODAY
        return DayStatus.UNMARKED

    def can_interact(self, value: Any) -> bool:
        """True iff install_date <= day <= today.

        The install date never moves, so if the clock reads earlier than it
        (say after a timezone change) no day, today included, is eligible
        until the clock catches up.
        """
        key = self._key(value)
        return self.install_date <= key <= self._today

    # ── Writes ────────────────────────────────────────────────

    def toggle(self, value: Any) -> DayStatus:
        """Advance a day's colour: unmarked -> green -> red -> green ...

        Days outside the eligible range are left alone and their current
        status is returned.
        """
        self._ensure_ready()
        key = self._key(value)
        if not self._loaded:
            # Storage may be back; the real install date decides eligibility.
            try:
                self._reload()
            except StorageUnavailable:
                logger.debug("State still unreadable: {}", self.storage_error)
        previous = self._state.marks.get(key, DayStatus.UNMARKED)
        if not self.can_interact(key):
            logger.debug(
                "Ignoring toggle of {}: outside {}..{}",
                format_date_key(key), format_date_key(self.install_date), format_date_key(self._today),
            )
            return previous

        status = previous.next()
        self._state.marks[key] = status
        persisted = self._persist()
        logger.debug("Toggled {}: {} -> {}", format_date_key(key), previous.value, status.value)
        self._publish("toggle", {
            "date": format_date_key(key),
            "previous": previous.value,
            "status": status.value,
            "persisted": persisted,
        })
        return status

    def refresh_today(self) -> bool:
        """Re-read the clock. Returns True if the current day changed."""
        current = self.clock.today()
        if current == self._today:
            return False
        previous, self._today = self._today, current
        logger.info("Day changed: {} -> {}", format_date_key(previous), format_date_key(current))
        self._publish("day_changed", {
            "previous": format_date_key(previous),
            "today": format_date_key(current),
        })
        return True

    # ── Metrics ───────────────────────────────────────────────

    @property
    def total_available_days(self) -> int:
        """Days from install to today, both ends included; never below 1."""
        return max((self._today - self.install_date).days + 1, 1)

    @property
    def total_marked_days(self) -> int:
        return len(self._state.marks)

    @property
    def green_count(self) -> int:
        return sum(1 for s in self._state.marks.values() if s is DayStatus.GREEN)

    @property
    def red_count(self) -> int:
        return sum(1 for s in self._state.marks.values() if s is DayStatus.RED)

    @property
    def unmarked_days(self) -> int:
        return max(self.total_available_days - self.total_marked_days, 0)

    @property
    def score_percent(self) -> int:
        """Green share of marked days, rounded up. 0 when nothing is marked."""
        marked = self.total_marked_days
        if marked == 0:
            return 0
        return -(-self.green_count * 100 // marked)

    @property
    def score_band(self) -> str:
        if self.total_marked_days == 0:
            return "none"
        score = self.score_percent
        if score >= 80:
            return "green"
        if score >= 50:
            return "orange"
        return "red"

    def score_summary(self) -> ScoreSummary:
        marked = self.total_marked_days
        available = self.total_available_days
        if marked == 0:
            hint = HINT_START
        elif marked < available:
            hint = HINT_UNMARKED
        else:
            hint = ""
        return ScoreSummary(
            total_available_days=available,
            total_marked_days=marked,
            green_count=self.green_count,
            red_count=self.red_count,
            unmarked_days=self.unmarked_days,
            score_percent=self.score_percent,
            score_band=self.score_band,
            hint=hint,
        )

    def debug_info(self) -> dict[str, Any]:
        info = {
            "installDate": format_date_key(self.install_date),
            "today": format_date_key(self._today),
            "greenDates": [format_date_key(d) for d in self.green_dates],
            "redDates": [format_date_key(d) for d in self.red_dates],
            "persistent": self.persistent,
            "storageError": str(self.storage_error) if self.storage_error else None,
            **self.score_summary().to_dict(),
        }
        logger.debug("Store state: {}", info)
        return info

    # ── Internals ─────────────────────────────────────────────

    def _ensure_ready(self) -> None:
        if not self._initialized:
            self.initialize()

    def _key(self, value: Any) -> date:
        return to_date_key(value, self.clock.tz)

    def _load_state(self) -> TrackerState:
        data = self.storage.load()
        try:
            return TrackerState.from_dict(data, self.clock.tz)
        except InvalidDateKey as e:
            raise StorageUnavailable(f"Cannot parse state: {e}", getattr(self.storage, "path", None)) from e

    def _reload(self) -> None:
        """Re-read storage after a failed load and merge in this session's marks."""
        try:
            on_disk = self._load_state()
        except StorageUnavailable as e:
            self.storage_error = e
            raise
        self._merge(on_disk)
        self._loaded = True

    def _persist(self) -> bool:
        if not self._loaded:
            # Never overwrite state we could not read; toggle and flush reload first.
            return False
        try:
            self.storage.save(self._state.to_dict(self.clock.tz))
        except StorageUnavailable as e:
            self._storage_failed(e, "save")
            return False
        if self.storage_error is not None:
            logger.info("Storage recovered, state written to {}", self.storage)
        self.storage_error = None
        return True

    def _storage_failed(self, error: StorageUnavailable, operation: str) -> None:
        self.storage_error = error
        logger.warning("State {} failed; changes will only last for this session: {}", operation, error)
        self._publish("storage_error", {"operation": operation, "error": str(error)})

    def _merge(self, on_disk: TrackerState) -> None:
        if on_disk.install_date is not None:
            self._state.install_date = on_disk.install_date
        self._state.marks = {**on_disk.marks, **self._state.marks}
