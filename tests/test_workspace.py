"""Tests for greenday/workspace.py and greenday/clock.py."""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from greenday.clock import FixedClock, SystemClock
from greenday.workspace import (
    ensure_workspace,
    get_user_timezone,
    get_week_start,
    load_profile,
    profile_path,
    state_path,
    workspace_root,
)


def test_workspace_root_from_env(workspace):
    assert workspace_root() == workspace.resolve()
    assert state_path() == workspace.resolve() / "tracker" / "state.json"


def test_profile_defaults_when_missing(tmp_path):
    profile = load_profile(tmp_path)
    assert profile == {"timezone": "UTC", "week_start": "sun"}
    assert get_user_timezone(tmp_path) == ZoneInfo("UTC")
    assert get_week_start(tmp_path) == 6


def test_profile_values(workspace):
    profile_path(workspace).write_text("timezone: Asia/Tokyo\nweek_start: monday\n", encoding="utf-8")
    assert get_user_timezone(workspace) == ZoneInfo("Asia/Tokyo")
    assert get_week_start(workspace) == 0


def test_bad_profile_values_fall_back(workspace):
    profile_path(workspace).write_text("timezone: Mars/Olympus\nweek_start: someday\n", encoding="utf-8")
    assert get_user_timezone(workspace) == ZoneInfo("UTC")
    assert get_week_start(workspace) == 6


def test_unparseable_profile_falls_back(workspace):
    profile_path(workspace).write_text("timezone: [unclosed\n", encoding="utf-8")
    assert load_profile(workspace)["timezone"] == "UTC"


def test_non_utf8_profile_falls_back(workspace):
    profile_path(workspace).write_bytes(b"timezone: \xff\xfe UTC\n")
    assert load_profile(workspace)["timezone"] == "UTC"
    assert SystemClock.from_profile(workspace).tz == ZoneInfo("UTC")


def test_ensure_workspace_writes_default_profile(tmp_path):
    root = tmp_path / "fresh"
    ensure_workspace(root)
    assert load_profile(root) == {"timezone": "UTC", "week_start": "sun"}
    # Existing profile is left alone.
    profile_path(root).write_text("timezone: Asia/Tokyo\n", encoding="utf-8")
    ensure_workspace(root)
    assert load_profile(root)["timezone"] == "Asia/Tokyo"


def test_system_clock_uses_profile_timezone(workspace):
    profile_path(workspace).write_text("timezone: Asia/Tokyo\n", encoding="utf-8")
    clock = SystemClock.from_profile(workspace)
    assert clock.tz == ZoneInfo("Asia/Tokyo")
    assert clock.now().tzinfo == ZoneInfo("Asia/Tokyo")
    assert clock.today() == clock.now().date()


def test_fixed_clock_advance_and_set():
    clock = FixedClock(date(2024, 1, 12))
    assert clock.today() == date(2024, 1, 12)
    clock.advance(hours=11)
    assert clock.today() == date(2024, 1, 12)
    clock.advance(hours=1)
    assert clock.today() == date(2024, 1, 13)
    clock.set(datetime(2024, 2, 1, 8, 0))
    assert clock.today() == date(2024, 2, 1)
