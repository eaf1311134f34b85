"""
Derives an event's effective lifecycle status from the clock.

The ``status`` column on ``events`` is only a cache: reads recompute the
status with ``calculate_event_status`` and, when the cache is stale, refresh it
in the background with ``refresh_event_status``.
"""
from datetime import datetime, time, timedelta
from threading import Thread
from typing import Optional, Tuple

import pytz
from flask import current_app, has_app_context

from occasio.extensions import db
from occasio.models.enums import EventStatus

DEFAULT_EVENT_DURATION_HOURS = 2


def local_now() -> datetime:
    """
    Current naive wall-clock time in the zone events are scheduled in.

    ``EVENT_TIMEZONE`` names a pytz zone; when unset the server's local time
    is used.
    """
    tz_name = current_app.config.get("EVENT_TIMEZONE") if has_app_context() else None
    if tz_name:
        return datetime.now(pytz.timezone(tz_name)).replace(tzinfo=None)
    return datetime.now()


def default_event_duration() -> timedelta:
    hours = DEFAULT_EVENT_DURATION_HOURS
    if has_app_context():
        hours = current_app.config.get("EVENT_DEFAULT_DURATION_HOURS", hours)
    return timedelta(hours=float(hours))


def parse_wall_clock(value: str) -> time:
    """Parse "HH:MM" or "HH:MM:SS"; seconds are ignored."""
    parts = (value or "").strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    return time(hours, minutes)


def event_window(
    event_date,
    start_time: str,
    end_time: Optional[str] = None,
    default_duration: Optional[timedelta] = None,
) -> Tuple[datetime, datetime]:
    """Return the ``[start, end)`` interval during which an event is ongoing."""
    start = datetime.combine(event_date, parse_wall_clock(start_time))
    if end_time:
        end = datetime.combine(event_date, parse_wall_clock(end_time))
    else:
        end = start + (default_duration or default_event_duration())
    return start, end


def calculate_event_status(
    event,
    now: Optional[datetime] = None,
    default_duration: Optional[timedelta] = None,
) -> EventStatus:
    """
    Compute the effective status of ``event`` at ``now``.

    A cancelled event stays cancelled. Otherwise the event is upcoming before
    its start, ongoing inside ``[start, end)`` and completed from ``end`` on.
    ``end`` defaults to start plus ``EVENT_DEFAULT_DURATION_HOURS``.
    """
    if event.status == EventStatus.CANCELLED:
        return EventStatus.CANCELLED

    now = now or local_now()
    start, end = event_window(
        event.event_date, event.start_time, event.end_time, default_duration
    )

    if now < start:
        return EventStatus.UPCOMING
    if now < end:
        return EventStatus.ONGOING
    return EventStatus.COMPLETED


def write_event_status(app, event_id: int, status: EventStatus) -> bool:
    """Persist a recomputed status. Failures are logged, never raised."""
    from occasio.repositories.event_repository import EventRepository

    with app.app_context():
        try:
            EventRepository.update_status(event_id, status)
            return True
        except Exception as e:
            db.session.rollback()
            app.logger.error(
                f"Failed to update status of event {event_id} to {status.value}: {str(e)}",
                exc_info=True,
            )
            return False


def refresh_event_status(event, computed: EventStatus) -> bool:
    """
    Schedule a cache refresh if the stored status of ``event`` is stale.

    Cancelled events are never touched. Returns True when a write was
    scheduled. Disabled by ``EVENT_STATUS_WRITE_BACK = False``.
    """
    if computed == event.status or event.status == EventStatus.CANCELLED:
        return False

    app = current_app._get_current_object()
    if not app.config.get("EVENT_STATUS_WRITE_BACK", True):
        return False

    try:
        Thread(
            target=write_event_status, args=(app, event.id, computed), daemon=True
        ).start()
    except RuntimeError as e:
        app.logger.error(f"Could not schedule status refresh for event {event.id}: {e}")
        return False
    return True


def resolve_event_status(event, now: Optional[datetime] = None) -> EventStatus:
    """Compute the effective status and refresh the cached one if needed."""
    computed = calculate_event_status(event, now=now)
    refresh_event_status(event, computed)
    return computed
