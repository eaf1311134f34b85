from datetime import date, datetime, timedelta
from types import SimpleNamespace

import pytest

from occasio.models.enums import EventStatus
from occasio.services.event_status import (
    calculate_event_status,
    event_window,
    parse_wall_clock,
    refresh_event_status,
    write_event_status,
)


def _event(start_time="10:00", end_time=None, status=EventStatus.UPCOMING, day=date(2030, 1, 1)):
    return SimpleNamespace(
        id=1, event_date=day, start_time=start_time, end_time=end_time, status=status
    )


TWO_HOURS = timedelta(hours=2)


@pytest.mark.parametrize(
    "now, expected",
    [
        (datetime(2030, 1, 1, 9, 59), EventStatus.UPCOMING),
        (datetime(2030, 1, 1, 10, 0), EventStatus.ONGOING),
        (datetime(2030, 1, 1, 11, 59), EventStatus.ONGOING),
        (datetime(2030, 1, 1, 12, 0), EventStatus.COMPLETED),
        (datetime(2030, 1, 2, 0, 0), EventStatus.COMPLETED),
    ],
)
def test_default_window_is_start_plus_two_hours(now, expected):
    event = _event()
    assert calculate_event_status(event, now=now, default_duration=TWO_HOURS) == expected


def test_explicit_end_time_bounds_the_window():
    event = _event(start_time="10:00", end_time="10:30")

    assert calculate_event_status(event, now=datetime(2030, 1, 1, 10, 29)) == EventStatus.ONGOING
    assert calculate_event_status(event, now=datetime(2030, 1, 1, 10, 30)) == EventStatus.COMPLETED


def test_cancelled_is_sticky():
    event = _event(status=EventStatus.CANCELLED)

    for now in (datetime(2029, 1, 1), datetime(2030, 1, 1, 10, 30), datetime(2031, 1, 1)):
        assert calculate_event_status(event, now=now) == EventStatus.CANCELLED


def test_stale_stored_status_is_ignored():
    event = _event(status=EventStatus.COMPLETED)
    assert calculate_event_status(event, now=datetime(2029, 12, 31)) == EventStatus.UPCOMING


def test_duration_comes_from_config(app):
    app.config["EVENT_DEFAULT_DURATION_HOURS"] = 4
    event = _event()

    assert calculate_event_status(event, now=datetime(2030, 1, 1, 13, 0)) == EventStatus.ONGOING
    assert calculate_event_status(event, now=datetime(2030, 1, 1, 14, 0)) == EventStatus.COMPLETED


def test_uses_clock_when_now_omitted(app, fixed_clock):
    event = _event(day=fixed_clock.date(), start_time="11:30")
    assert calculate_event_status(event) == EventStatus.ONGOING


def test_event_window():
    start, end = event_window(date(2030, 1, 1), "09:15", default_duration=TWO_HOURS)
    assert start == datetime(2030, 1, 1, 9, 15)
    assert end == datetime(2030, 1, 1, 11, 15)


@pytest.mark.parametrize("value", ["", "9", "25:00", "10:60", "ab:cd", "1:2:3:4"])
def test_parse_wall_clock_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_wall_clock(value)


def test_parse_wall_clock_accepts_seconds():
    assert parse_wall_clock("08:05:59").strftime("%H:%M") == "08:05"


def test_refresh_is_skipped_when_status_unchanged(app):
    event = _event(status=EventStatus.ONGOING)
    assert refresh_event_status(event, EventStatus.ONGOING) is False


def test_refresh_never_touches_cancelled(app):
    app.config["EVENT_STATUS_WRITE_BACK"] = True
    event = _event(status=EventStatus.CANCELLED)
    assert refresh_event_status(event, EventStatus.COMPLETED) is False


def test_refresh_disabled_by_config(app):
    event = _event(status=EventStatus.UPCOMING)
    assert refresh_event_status(event, EventStatus.ONGOING) is False


def test_write_event_status_persists(app, db, make_event, organizer):
    event = make_event(organizer=organizer)

    assert write_event_status(app, event.id, EventStatus.ONGOING) is True
    db.session.refresh(event)
    assert event.status == EventStatus.ONGOING


def test_write_event_status_does_not_overwrite_cancelled(app, db, make_event, organizer):
    event = make_event(organizer=organizer, status=EventStatus.CANCELLED)

    write_event_status(app, event.id, EventStatus.COMPLETED)
    db.session.refresh(event)
    assert event.status == EventStatus.CANCELLED


def test_write_event_status_swallows_failures(app, monkeypatch):
    from occasio.repositories.event_repository import EventRepository

    def boom(event_id, status):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(EventRepository, "update_status", staticmethod(boom))
    assert write_event_status(app, 1, EventStatus.COMPLETED) is False
