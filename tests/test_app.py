"""Tests for ui/app.py — HTTP API over the date-state store."""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from greenday.store import DateStateStore
from ui.app import app, get_store, get_week_start_setting


@pytest.fixture
def store(clock, flaky_storage):
    storage = flaky_storage({"installDate": "2024-01-10T00:00:00+00:00"})
    store = DateStateStore(storage, clock)
    store.initialize()
    return store


@pytest.fixture
def api(store):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_week_start_setting] = lambda: 6
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_healthz(api):
    assert api.get("/healthz").json() == {"ok": "true"}


def test_toggle_cycle(api):
    r = api.post("/api/toggle", json={"date": "2024-01-11"})
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "green"
    assert body["changed"] is True
    assert body["persisted"] is True
    assert "warning" not in body

    assert api.post("/api/toggle", json={"date": "2024-01-11"}).json()["status"] == "red"
    assert api.post("/api/toggle", json={"date": "2024-01-11"}).json()["status"] == "green"


def test_toggle_ineligible_is_noop(api, store):
    body = api.post("/api/toggle", json={"date": "2024-01-13"}).json()
    assert body["status"] == "unmarked"
    assert body["changed"] is False
    assert store.total_marked_days == 0


def test_toggle_bad_input(api):
    assert api.post("/api/toggle", json={}).status_code == 400
    assert api.post("/api/toggle", json={"date": "2024-02-31"}).status_code == 400


def test_toggle_storage_failure_warns(api, store):
    store.storage.fail_writes = True
    body = api.post("/api/toggle", json={"date": "2024-01-12"}).json()
    assert body["status"] == "green"
    assert body["persisted"] is False
    assert "session only" in body["warning"]


def test_status(api):
    assert api.get("/api/status/2024-01-12").json() == {
        "date": "2024-01-12", "status": "today", "canInteract": True,
    }
    assert api.get("/api/status/2024-01-09").json()["canInteract"] is False
    assert api.get("/api/status/whenever").status_code == 400
    assert api.get("/api/status/2024-1-12").status_code == 400


def test_calendar(api):
    body = api.get("/api/calendar/2024/1").json()
    assert body["title"] == "January 2024"
    assert body["weekdays"][0] == "Sun"
    assert body["today"] == "2024-01-12"
    cells = body["cells"]
    assert len(cells) == 42
    assert cells[0] is None
    assert cells[1]["date"] == "2024-01-01"
    by_date = {c["date"]: c for c in cells if c}
    assert by_date["2024-01-09"]["canInteract"] is False
    assert by_date["2024-01-10"]["canInteract"] is True
    assert by_date["2024-01-12"]["status"] == "today"
    assert by_date["2024-01-13"]["canInteract"] is False


def test_calendar_invalid_month(api):
    assert api.get("/api/calendar/2024/13").status_code == 400


def test_score(api):
    api.post("/api/toggle", json={"date": "2024-01-10"})
    api.post("/api/toggle", json={"date": "2024-01-11"})
    api.post("/api/toggle", json={"date": "2024-01-11"})
    body = api.get("/api/score").json()
    assert body["totalAvailableDays"] == 3
    assert body["totalMarkedDays"] == 2
    assert body["greenCount"] == 1
    assert body["redCount"] == 1
    assert body["scorePercent"] == 50
    assert body["scoreBand"] == "orange"


def test_refresh_today(api, clock):
    assert api.post("/api/refresh_today").json() == {"today": "2024-01-12", "changed": False}
    clock.advance(days=1)
    assert api.post("/api/refresh_today").json() == {"today": "2024-01-13", "changed": True}


def test_requests_pick_up_day_change(api, clock):
    clock.advance(days=1)
    body = api.post("/api/toggle", json={"date": "2024-01-13"}).json()
    assert body["status"] == "green"


def test_state_dump(api):
    body = api.get("/api/state").json()
    assert body["installDate"] == "2024-01-10"
    assert body["today"] == "2024-01-12"
    assert body["persistent"] is True


def test_index_page(api):
    r = api.get("/?year=2024&month=1")
    assert r.status_code == 200
    assert "January 2024" in r.text
    assert 'data-date="2024-01-12"' in r.text
    assert "Success Rate" in r.text


def test_basic_auth(api, monkeypatch):
    monkeypatch.setenv("GREENDAY_USERNAME", "me")
    monkeypatch.setenv("GREENDAY_PASSWORD", "secret")
    assert api.get("/api/score").status_code == 401
    assert api.get("/api/score", auth=("me", "wrong")).status_code == 401
    assert api.get("/api/score", auth=("me", "secret")).status_code == 200


def test_lifespan_opens_store_from_workspace(workspace, monkeypatch):
    monkeypatch.setenv("GREENDAY_LOG_LEVEL", "WARNING")
    with TestClient(app) as client:
        store = app.state.store
        assert store.install_date == date(2024, 1, 10)
        assert client.get("/api/state").json()["greenDates"] == ["2024-01-10", "2024-01-12"]
