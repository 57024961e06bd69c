"""Tests for greenday/models.py — date keys and persisted state."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from greenday.errors import InvalidDateKey
from greenday.models import (
    DayStatus,
    ScoreSummary,
    TrackerState,
    format_date_key,
    to_date_key,
)


def test_to_date_key_accepts_date_string_and_datetime():
    assert to_date_key(date(2024, 1, 10)) == date(2024, 1, 10)
    assert to_date_key("2024-01-10") == date(2024, 1, 10)
    assert to_date_key(" 2024-01-10 ") == date(2024, 1, 10)
    assert to_date_key(datetime(2024, 1, 10, 23, 59)) == date(2024, 1, 10)


def test_to_date_key_converts_aware_datetime():
    moment = datetime(2024, 1, 10, 2, 0, tzinfo=timezone.utc)
    assert to_date_key(moment, ZoneInfo("America/Los_Angeles")) == date(2024, 1, 9)
    assert to_date_key(moment, ZoneInfo("Asia/Tokyo")) == date(2024, 1, 10)


@pytest.mark.parametrize("bad", ["", "2024-02-30", "2024-1-5", "24-01-05", "10/01/2024", "2024-01-10T10:00", None, 20240110, [2024, 1, 10]])
def test_to_date_key_rejects_malformed(bad):
    with pytest.raises(InvalidDateKey):
        to_date_key(bad)


def test_format_date_key():
    assert format_date_key(date(2024, 3, 5)) == "2024-03-05"


def test_day_status_cycle():
    assert DayStatus.UNMARKED.next() is DayStatus.GREEN
    assert DayStatus.TODAY.next() is DayStatus.GREEN
    assert DayStatus.GREEN.next() is DayStatus.RED
    assert DayStatus.RED.next() is DayStatus.GREEN
    assert DayStatus.GREEN.is_marked and DayStatus.RED.is_marked
    assert not DayStatus.UNMARKED.is_marked and not DayStatus.TODAY.is_marked


def test_tracker_state_from_dict():
    state = TrackerState.from_dict({
        "greenDates": ["2024-01-12", "2024-01-10"],
        "redDates": ["2024-01-11"],
        "installDate": "2024-01-10T00:00:00+01:00",
        "somethingElse": 1,
    })
    assert state.install_date == date(2024, 1, 10)
    assert state.green_dates == [date(2024, 1, 10), date(2024, 1, 12)]
    assert state.red_dates == [date(2024, 1, 11)]


def test_tracker_state_empty():
    state = TrackerState.from_dict({})
    assert state.install_date is None
    assert state.marks == {}
    assert TrackerState.from_dict(None).marks == {}


def test_tracker_state_day_in_both_lists_counts_green():
    state = TrackerState.from_dict({"greenDates": ["2024-01-10"], "redDates": ["2024-01-10"]})
    assert state.marks == {date(2024, 1, 10): DayStatus.GREEN}


def test_tracker_state_skips_malformed_entries():
    state = TrackerState.from_dict({
        "greenDates": ["2024-01-10", "garbage", 7],
        "redDates": "2024-01-11",
    })
    assert state.marks == {date(2024, 1, 10): DayStatus.GREEN}
    assert state.install_date is None


@pytest.mark.parametrize("raw", ["not a date", "10/01/2024", [2024, 1, 10], 1e20])
def test_tracker_state_rejects_malformed_install_date(raw):
    with pytest.raises(InvalidDateKey):
        TrackerState.from_dict({"installDate": raw, "greenDates": ["2024-01-10"]})


def test_tracker_state_install_date_from_epoch_seconds():
    state = TrackerState.from_dict({"installDate": 1704844800}, ZoneInfo("UTC"))
    assert state.install_date == date(2024, 1, 10)


def test_tracker_state_to_dict_is_sorted_and_start_of_day():
    state = TrackerState(
        install_date=date(2024, 1, 10),
        marks={
            date(2024, 1, 12): DayStatus.GREEN,
            date(2024, 1, 10): DayStatus.GREEN,
            date(2024, 1, 11): DayStatus.RED,
        },
    )
    d = state.to_dict(ZoneInfo("Europe/Berlin"))
    assert d["greenDates"] == ["2024-01-10", "2024-01-12"]
    assert d["redDates"] == ["2024-01-11"]
    assert d["installDate"] == "2024-01-10T00:00:00+01:00"
    assert TrackerState.from_dict(d) == state


def test_score_summary_to_dict_camel_case():
    d = ScoreSummary(total_available_days=3, total_marked_days=2, green_count=1, red_count=1,
                     unmarked_days=1, score_percent=50, score_band="orange").to_dict()
    assert d["totalAvailableDays"] == 3
    assert d["scorePercent"] == 50
    assert d["scoreBand"] == "orange"
