#!/usr/bin/env python3
"""GreenDay TUI — mark days green or red, powered by Textual."""

from __future__ import annotations

from datetime import date
from typing import Any

from loguru import logger
from textual import events, on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Grid, Horizontal, Vertical
from textual.reactive import reactive
from textual.widgets import Button, Footer, Header, Label, Static

from greenday import (
    SUNDAY,
    DateStateStore,
    StorageUnavailable,
    configure_logging,
    ensure_workspace,
    get_week_start,
    month_grid,
    month_title,
    shift_month,
    weekday_labels,
    workspace_root,
)
from greenday.calendar_grid import GRID_CELLS

DAY_CHECK_SECONDS = 60


CSS = """
Screen {
    layout: vertical;
}

#main-layout {
    height: 1fr;
    padding: 1 2;
}

.section-title {
    text-style: bold;
    color: $accent;
    margin: 0 0 1 0;
}

#weekday-row {
    height: 1;
}

.weekday {
    width: 1fr;
    content-align: center middle;
    text-style: bold;
    color: $text-muted;
}

#calendar-grid {
    grid-size: 7 6;
    grid-gutter: 0 1;
    height: auto;
}

.day-cell {
    width: 1fr;
    min-width: 6;
    height: 3;
}

.day-cell.green {
    background: $success;
    color: $text;
}

.day-cell.red {
    background: $error;
    color: $text;
}

.day-cell.today {
    border: tall $accent;
}

.day-cell.unmarked {
    background: $panel-lighten-1;
}

.day-cell.blank {
    background: transparent;
    border: none;
}

#score-screen {
    padding: 1 2;
}

#score-value {
    height: auto;
    content-align: center middle;
    text-style: bold;
    padding: 1 0;
}

#score-stats {
    height: auto;
    padding: 1 2;
    border: tall $primary-background-darken-2;
}

#score-hint {
    height: auto;
    color: $text-muted;
    padding: 1 2;
}
"""

STATUS_CLASSES = ("green", "red", "today", "unmarked", "blank")

BAND_STYLES = {
    "green": "green",
    "orange": "dark_orange",
    "red": "red",
    "none": "grey50",
}


# ── Views ──────────────────────────────────────────────────────


class CalendarScreen(Vertical):
    """Month title, weekday header and a 6x7 grid of day buttons."""

    def __init__(self, first_weekday: int = SUNDAY, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.first_weekday = first_weekday
        self.cell_dates: list[date | None] = [None] * GRID_CELLS

    def compose(self) -> ComposeResult:
        yield Label("", id="month-title", classes="section-title")
        yield Horizontal(
            *(Label(name, classes="weekday") for name in weekday_labels(self.first_weekday)),
            id="weekday-row",
        )
        yield Grid(
            *(Button("", id=f"cell-{i}", classes="day-cell blank") for i in range(GRID_CELLS)),
            id="calendar-grid",
        )

    def render_month(self, store: DateStateStore, year: int, month: int) -> None:
        self.query_one("#month-title", Label).update(month_title(year, month))
        self.cell_dates = month_grid(year, month, self.first_weekday)
        for i in range(GRID_CELLS):
            self.render_cell(store, i)

    def render_cell(self, store: DateStateStore, index: int) -> None:
        button = self.query_one(f"#cell-{index}", Button)
        day = self.cell_dates[index]
        for name in STATUS_CLASSES:
            button.remove_class(name)
        if day is None:
            button.label = ""
            button.disabled = True
            button.add_class("blank")
            return
        button.label = str(day.day)
        button.disabled = not store.can_interact(day)
        status = store.status_of(day)
        button.add_class(status.value)


class ScoreScreen(Vertical):
    """Success rate plus the day counts behind it."""

    def compose(self) -> ComposeResult:
        yield Label("Statistics", classes="section-title")
        yield Static(id="score-value")
        yield Static(id="score-stats")
        yield Static(id="score-hint")

    def render_score(self, store: DateStateStore) -> None:
        summary = store.score_summary()
        style = BAND_STYLES.get(summary.score_band, "white")
        self.query_one("#score-value", Static).update(
            f"[bold {style}]{summary.score_percent}%[/]\nSuccess Rate"
        )
        lines = [
            f"{summary.total_available_days:>5}  Days Available",
            f"{summary.total_marked_days:>5}  Days Marked",
            f"[green]{summary.green_count:>5}  Green Days[/]",
            f"[red]{summary.red_count:>5}  Red Days[/]",
        ]
        if summary.total_marked_days < summary.total_available_days:
            lines.append(f"[grey50]{summary.unmarked_days:>5}  Unmarked Days[/]")
        self.query_one("#score-stats", Static).update("\n".join(lines))
        self.query_one("#score-hint", Static).update(summary.hint)


# ── Main app ───────────────────────────────────────────────────


class GreenDayApp(App):
    """One tap per day: green for success, red for failure."""

    TITLE = "GreenDay"
    CSS = CSS

    BINDINGS = [
        Binding("c", "show_calendar", "Calendar"),
        Binding("s", "show_score", "Score"),
        Binding("left_square_bracket", "prev_month", "Prev month"),
        Binding("right_square_bracket", "next_month", "Next month"),
        Binding("t", "this_month", "Today"),
        Binding("q", "quit_app", "Quit"),
    ]

    current_view: reactive[str] = reactive("calendar")

    def __init__(self, store: DateStateStore, first_weekday: int = SUNDAY) -> None:
        super().__init__()
        self.store = store
        self.first_weekday = first_weekday
        self.year = store.today.year
        self.month = store.today.month
        self._unsubscribe = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield Vertical(
            CalendarScreen(self.first_weekday, id="calendar-screen"),
            ScoreScreen(id="score-screen"),
            id="main-layout",
        )
        yield Footer()

    def on_mount(self) -> None:
        self._unsubscribe = self.store.subscribe(self._on_store_event)
        self.set_interval(DAY_CHECK_SECONDS, self._check_day)
        self._switch_to("calendar")
        if self.store.storage_error is not None:
            self._warn_storage(str(self.store.storage_error))

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        try:
            self.store.flush()
        except StorageUnavailable as e:
            logger.warning("Final flush failed: {}", e)

    def _render_all(self) -> None:
        self.query_one(CalendarScreen).render_month(self.store, self.year, self.month)
        self.query_one(ScoreScreen).render_score(self.store)
        self._update_subtitle()

    def _update_subtitle(self) -> None:
        parts = [f"{self.store.score_percent}%", self.store.today.isoformat()]
        if not self.store.persistent:
            parts.append("[not saved]")
        self.sub_title = "  ".join(parts)

    # ── Day tracking ───────────────────────────────────────────

    def _check_day(self) -> None:
        self.store.refresh_today()

    def on_app_focus(self, event: events.AppFocus) -> None:
        self.store.refresh_today()

    def _on_store_event(self, event: str, payload: dict[str, Any]) -> None:
        if event == "day_changed":
            self._render_all()
        elif event == "storage_error":
            self._warn_storage(payload.get("error", ""))

    def _warn_storage(self, error: str) -> None:
        self.notify(
            f"Changes are kept for this session only: {error}",
            title="Storage unavailable",
            severity="warning",
        )

    # ── Toggling ───────────────────────────────────────────────

    @on(Button.Pressed, ".day-cell")
    def _on_day_pressed(self, event: Button.Pressed) -> None:
        calendar = self.query_one(CalendarScreen)
        index = int((event.button.id or "cell-0").removeprefix("cell-"))
        day = calendar.cell_dates[index]
        if day is None or not self.store.can_interact(day):
            return
        status = self.store.toggle(day)
        logger.debug("TUI toggled {} to {}", day, status.value)
        calendar.render_cell(self.store, index)
        self.query_one(ScoreScreen).render_score(self.store)
        self._update_subtitle()

    # ── Navigation ─────────────────────────────────────────────

    def action_show_calendar(self) -> None:
        self._switch_to("calendar")

    def action_show_score(self) -> None:
        if self.current_view == "score":
            self._switch_to("calendar")
            return
        self._switch_to("score")

    def action_prev_month(self) -> None:
        self.year, self.month = shift_month(self.year, self.month, -1)
        self._render_all()

    def action_next_month(self) -> None:
        self.year, self.month = shift_month(self.year, self.month, 1)
        self._render_all()

    def action_this_month(self) -> None:
        self.store.refresh_today()
        self.year, self.month = self.store.today.year, self.store.today.month
        self._render_all()

    def action_quit_app(self) -> None:
        self.exit()

    def _switch_to(self, view: str) -> None:
        self.query_one(CalendarScreen).display = view == "calendar"
        self.query_one(ScoreScreen).display = view == "score"
        self.current_view = view
        self._render_all()


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    configure_logging(console=False)
    root = workspace_root()
    try:
        ensure_workspace(root)
    except OSError as e:
        logger.warning("Cannot create workspace {}: {}", root, e)
    store = DateStateStore.open(root)
    app = GreenDayApp(store, first_weekday=get_week_start(root))
    app.run()


if __name__ == "__main__":
    main()
