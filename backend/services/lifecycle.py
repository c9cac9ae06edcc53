"""Temporal rules for event and RSVP mutations.

Creating or editing an event is gated by the calendar date only, so a same-day
event is always accepted. RSVPing is gated by the event's full end timestamp,
so an event that already ended today no longer accepts responses.
"""

from dataclasses import dataclass
import datetime as dt
from datetime import date, datetime, time

from backend.core.errors import EventPassedError, InvalidTimeRangeError, PastDateError

EVENT_STATUS_PAST = 'past'
EVENT_STATUS_UPCOMING = 'upcoming'


@dataclass
class EventChanges:
    """Partial update for an event. ``None`` means the field is not supplied."""

    title: str | None = None
    description: str | None = None
    date: dt.date | None = None
    start_time: time | None = None
    end_time: time | None = None
    location: str | None = None

    def supplied(self) -> dict:
        return {field: value for field, value in vars(self).items() if value is not None}


def validate_event_window(event_date: date, start_time: time, end_time: time, today: date) -> None:
    if event_date < today:
        raise PastDateError()

    if start_time >= end_time:
        raise InvalidTimeRangeError()


def validate_event_changes(changes: EventChanges, today: date) -> None:
    if changes.date is not None and changes.date < today:
        raise PastDateError()

    if (
        changes.start_time is not None
        and changes.end_time is not None
        and changes.start_time >= changes.end_time
    ):
        raise InvalidTimeRangeError()


def event_end(event_date: date, end_time: time) -> datetime:
    return datetime.combine(event_date, end_time)


def validate_rsvp_eligibility(event, now: datetime) -> None:
    if event_end(event.date, event.end_time) < now:
        raise EventPassedError()


def event_status(event_date: date, end_time: time, now: datetime) -> str:
    today = now.date()
    if event_date < today:
        return EVENT_STATUS_PAST
    if event_date == today and end_time < now.time():
        return EVENT_STATUS_PAST
    return EVENT_STATUS_UPCOMING
