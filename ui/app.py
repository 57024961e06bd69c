from __future__ import annotations

import os
import secrets
import threading
from contextlib import asynccontextmanager
from typing import Any

from loguru import logger

from greenday import (
    DateStateStore,
    InvalidDateKey,
    StorageUnavailable,
    configure_logging,
    ensure_workspace,
    format_date_key,
    get_week_start,
    month_grid,
    month_title,
    shift_month,
    weekday_labels,
    workspace_root,
)

from fastapi import FastAPI, Depends, HTTPException, Request, status
from fastapi import Body
from fastapi.responses import HTMLResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials


# ── Store lifecycle ───────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    root = workspace_root()
    try:
        ensure_workspace(root)
    except OSError as e:
        logger.warning("Cannot create workspace {}: {}", root, e)
    app.state.store = DateStateStore.open(root)
    app.state.week_start = get_week_start(root)
    logger.info("GreenDay UI serving {}", root)
    yield
    try:
        app.state.store.flush()
    except StorageUnavailable as e:
        logger.warning("Final flush failed: {}", e)


app = FastAPI(title="GreenDay UI", version="0.1.0", lifespan=lifespan)

# Request handlers run in a threadpool; one lock keeps each
# refresh-then-read/write sequence atomic against the single store.
store_lock = threading.Lock()


def get_store(request: Request) -> DateStateStore:
    return request.app.state.store


def get_week_start_setting(request: Request) -> int:
    return getattr(request.app.state, "week_start", 6)


# ── Auth ──────────────────────────────────────────────────────

security = HTTPBasic(auto_error=False)


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("GREENDAY_USERNAME", "")
    expected_password = os.environ.get("GREENDAY_PASSWORD", "")

    if credentials is None:
        if not expected_username or not expected_password:
            return "guest"
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    if not expected_username or not expected_password:
        return "guest"

    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


# ── Helpers ───────────────────────────────────────────────────

def _escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _check_month(year: int, month: int) -> None:
    if not 1 <= month <= 12 or not 1 <= year <= 9999:
        raise HTTPException(status_code=400, detail=f"Invalid month: {year}-{month}")


def _nav(year: int, month: int, delta: int) -> tuple[int, int]:
    try:
        return shift_month(year, month, delta)
    except ValueError:
        return year, month


def _calendar_cells(store: DateStateStore, year: int, month: int, week_start: int) -> list[dict[str, Any] | None]:
    cells: list[dict[str, Any] | None] = []
    for day in month_grid(year, month, week_start):
        if day is None:
            cells.append(None)
            continue
        cells.append({
            "date": format_date_key(day),
            "day": day.day,
            "status": store.status_of(day).value,
            "canInteract": store.can_interact(day),
        })
    return cells


def _storage_warning(store: DateStateStore) -> str | None:
    if store.persistent:
        return None
    return f"Changes are kept for this session only: {store.storage_error}"


PAGE_CSS = """
body { font-family: system-ui, sans-serif; max-width: 760px; margin: 2rem auto; color: #222; }
nav a { margin-right: 1rem; }
.grid { display: grid; grid-template-columns: repeat(7, 1fr); gap: 6px; margin: 1rem 0; }
.wd { text-align: center; font-size: .8rem; font-weight: 600; color: #666; }
.cell { height: 40px; border-radius: 50%; border: none; font-size: 1rem; font-weight: 500; }
.cell.green { background: #2e9d4b; color: #fff; }
.cell.red { background: #d64541; color: #fff; }
.cell.unmarked, .cell.today { background: #9a9a9a; color: #fff; }
.cell.today { outline: 2px solid #333; }
.cell:disabled { background: #e8e8e8; color: #aaa; }
.blank { height: 40px; }
.score { font-size: 4rem; font-weight: 700; }
.band-green { color: #2e9d4b; } .band-orange { color: #e67e22; } .band-red { color: #d64541; } .band-none { color: #999; }
.stats { background: #f2f2f7; border-radius: 12px; padding: 1rem; }
.muted { color: #777; }
.warn { background: #fff3cd; padding: .5rem 1rem; border-radius: 6px; }
"""

PAGE_JS = """
document.querySelectorAll('button[data-date]').forEach(function (b) {
  b.addEventListener('click', async function () {
    const r = await fetch('/api/toggle', {
      method: 'POST',
      headers: {'Content-Type': 'application/json'},
      body: JSON.stringify({date: b.dataset.date}),
    });
    if (r.ok) { location.reload(); }
  });
});
"""


# ── Endpoints ─────────────────────────────────────────────────

@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


@app.get("/", response_class=HTMLResponse)
def index(
    year: int | None = None,
    month: int | None = None,
    username: str = Depends(get_current_user),
    store: DateStateStore = Depends(get_store),
    week_start: int = Depends(get_week_start_setting),
) -> HTMLResponse:
    with store_lock:
        store.refresh_today()
        year = year or store.today.year
        month = month or store.today.month
        _check_month(year, month)
        cells = _calendar_cells(store, year, month, week_start)
        summary = store.score_summary()
        warning = _storage_warning(store)

    prev_y, prev_m = _nav(year, month, -1)
    next_y, next_m = _nav(year, month, 1)

    grid = [f'<div class="wd">{name}</div>' for name in weekday_labels(week_start)]
    for cell in cells:
        if cell is None:
            grid.append('<div class="blank"></div>')
            continue
        disabled = "" if cell["canInteract"] else " disabled"
        grid.append(
            f'<button class="cell {cell["status"]}" data-date="{cell["date"]}"{disabled}>{cell["day"]}</button>'
        )

    stats = [
        f"<div><b>{summary.total_available_days}</b> Days Available</div>",
        f"<div><b>{summary.total_marked_days}</b> Days Marked</div>",
        f'<div class="band-green"><b>{summary.green_count}</b> Green Days</div>',
        f'<div class="band-red"><b>{summary.red_count}</b> Red Days</div>',
    ]
    if summary.total_marked_days < summary.total_available_days:
        stats.append(f'<div class="muted"><b>{summary.unmarked_days}</b> Unmarked Days</div>')

    warn_html = f'<p class="warn">{_escape(warning)}</p>' if warning else ""
    hint_html = f'<p class="muted">{_escape(summary.hint)}</p>' if summary.hint else ""

    html = f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>GreenDay</title>
  <style>{PAGE_CSS}</style>
</head>
<body>
  {warn_html}
  <h1>{_escape(month_title(year, month))}</h1>
  <nav>
    <a href="/?year={prev_y}&month={prev_m}">&larr; prev</a>
    <a href="/">today</a>
    <a href="/?year={next_y}&month={next_m}">next &rarr;</a>
  </nav>
  <div class="grid">{''.join(grid)}</div>
  <h2>Statistics</h2>
  <div class="score band-{summary.score_band}">{summary.score_percent}%</div>
  <div class="muted">Success Rate</div>
  <div class="stats">{''.join(stats)}</div>
  {hint_html}
  <script>{PAGE_JS}</script>
</body>
</html>
"""
    return HTMLResponse(html)


@app.get("/api/calendar/{year}/{month}")
def api_calendar(
    year: int,
    month: int,
    username: str = Depends(get_current_user),
    store: DateStateStore = Depends(get_store),
    week_start: int = Depends(get_week_start_setting),
) -> dict[str, Any]:
    """42 grid cells for a month, null outside the month."""
    _check_month(year, month)
    with store_lock:
        store.refresh_today()
        cells = _calendar_cells(store, year, month, week_start)
        today = format_date_key(store.today)
    return {
        "year": year,
        "month": month,
        "title": month_title(year, month),
        "weekdays": weekday_labels(week_start),
        "today": today,
        "cells": cells,
    }


@app.get("/api/status/{date_str}")
def api_status(
    date_str: str,
    username: str = Depends(get_current_user),
    store: DateStateStore = Depends(get_store),
) -> dict[str, Any]:
    with store_lock:
        store.refresh_today()
        try:
            day_status = store.status_of(date_str)
            can_interact = store.can_interact(date_str)
        except InvalidDateKey as e:
            raise HTTPException(status_code=400, detail=str(e))
    return {"date": date_str, "status": day_status.value, "canInteract": can_interact}


@app.post("/api/toggle")
def api_toggle(
    payload: dict[str, Any] = Body(...),
    username: str = Depends(get_current_user),
    store: DateStateStore = Depends(get_store),
) -> dict[str, Any]:
    """Toggle a day's colour. Ineligible days come back unchanged."""
    date_str = payload.get("date")
    if not date_str:
        raise HTTPException(status_code=400, detail="Missing date")

    with store_lock:
        store.refresh_today()
        try:
            before = store.status_of(date_str)
            store.toggle(date_str)
            after = store.status_of(date_str)
        except InvalidDateKey as e:
            raise HTTPException(status_code=400, detail=str(e))
        result: dict[str, Any] = {
            "ok": True,
            "date": date_str,
            "status": after.value,
            "changed": before is not after,
            "persisted": store.persistent,
        }
        warning = _storage_warning(store)
    if warning:
        result["warning"] = warning
    return result


@app.get("/api/score")
def api_score(
    username: str = Depends(get_current_user),
    store: DateStateStore = Depends(get_store),
) -> dict[str, Any]:
    with store_lock:
        store.refresh_today()
        return store.score_summary().to_dict()


@app.post("/api/refresh_today")
def api_refresh_today(
    username: str = Depends(get_current_user),
    store: DateStateStore = Depends(get_store),
) -> dict[str, Any]:
    with store_lock:
        changed = store.refresh_today()
        return {"today": format_date_key(store.today), "changed": changed}


@app.get("/api/state")
def api_get_state(
    username: str = Depends(get_current_user),
    store: DateStateStore = Depends(get_store),
) -> dict[str, Any]:
    """Full state dump."""
    with store_lock:
        store.refresh_today()
        return store.debug_info()
