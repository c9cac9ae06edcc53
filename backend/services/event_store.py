import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, time

from sqlalchemy import case, func

from backend.core.errors import NotFoundError, ValidationError
from backend.database import Database, paginate
from backend.models.event import Event
from backend.models.rsvp import Rsvp
from backend.models.user import User
from backend.services.lifecycle import EventChanges, validate_event_changes, validate_event_window

logger = logging.getLogger(__name__)

EVENT_NOT_FOUND = 'Event not found'


@dataclass
class EventFields:
    title: str
    date: date
    start_time: time
    end_time: time
    location: str
    description: str | None = None


@dataclass
class RsvpCounts:
    going: int = 0
    maybe: int = 0
    decline: int = 0

    @property
    def total(self) -> int:
        return self.going + self.maybe + self.decline


@dataclass
class EventListing:
    event: Event
    created_by_name: str | None
    rsvp_counts: RsvpCounts | None = None


def _count_columns():
    return (
        func.count(case((Rsvp.status == 'going', 1))).label('going_count'),
        func.count(case((Rsvp.status == 'maybe', 1))).label('maybe_count'),
        func.count(case((Rsvp.status == 'decline', 1))).label('decline_count'),
    )


class EventStore:
    """Event CRUD plus read-side enrichment (creator name, inline RSVP counts)."""

    def __init__(self, database: Database, clock: Callable[[], datetime] = datetime.now):
        self.database = database
        self._clock = clock

    def _listing_query(self, db, include_rsvp_counts: bool):
        query = db.query(Event, User.name).outerjoin(User, Event.created_by == User.id)
        if include_rsvp_counts:
            query = (
                query.add_columns(*_count_columns())
                .outerjoin(Rsvp, Rsvp.event_id == Event.id)
                .group_by(Event.id, User.name)
            )
        return query

    @staticmethod
    def _to_listing(row, include_rsvp_counts: bool) -> EventListing:
        if not include_rsvp_counts:
            event, created_by_name = row
            return EventListing(event=event, created_by_name=created_by_name)

        event, created_by_name, going, maybe, decline = row
        return EventListing(
            event=event,
            created_by_name=created_by_name,
            rsvp_counts=RsvpCounts(going=going or 0, maybe=maybe or 0, decline=decline or 0),
        )

    def list_events(
        self,
        upcoming_only: bool = True,
        include_rsvp_counts: bool = False,
        page: int = 1,
        limit: int | None = None,
    ) -> list[EventListing]:
        with self.database.session() as db:
            query = self._listing_query(db, include_rsvp_counts)
            if upcoming_only:
                query = query.filter(Event.date >= self._clock().date())

            query = query.order_by(Event.date.asc(), Event.start_time.asc())
            rows = paginate(query, page, limit).all()

        return [self._to_listing(row, include_rsvp_counts) for row in rows]

    def get(self, event_id: int, include_rsvp_counts: bool = False) -> EventListing:
        with self.database.session() as db:
            row = self._listing_query(db, include_rsvp_counts).filter(Event.id == event_id).first()

        if row is None:
            raise NotFoundError(EVENT_NOT_FOUND)
        return self._to_listing(row, include_rsvp_counts)

    def list_by_creator(self, user_id: int, page: int = 1, limit: int | None = None) -> list[EventListing]:
        with self.database.session() as db:
            query = self._listing_query(db, include_rsvp_counts=False).filter(Event.created_by == user_id)
            rows = paginate(query.order_by(Event.created_at.desc(), Event.id.desc()), page, limit).all()

        return [self._to_listing(row, include_rsvp_counts=False) for row in rows]

    def create(self, fields: EventFields, created_by: int | None) -> Event:
        now = self._clock()
        validate_event_window(fields.date, fields.start_time, fields.end_time, now.date())

        with self.database.session() as db:
            event = Event(
                title=fields.title,
                description=fields.description,
                date=fields.date,
                start_time=fields.start_time,
                end_time=fields.end_time,
                location=fields.location,
                created_by=created_by,
                created_at=now,
                updated_at=now,
            )
            db.add(event)
            db.commit()
            db.refresh(event)

        logger.info('Event %s created by user %s', event.id, created_by)
        return event

    def update(self, event_id: int, changes: EventChanges) -> Event:
        now = self._clock()

        with self.database.session() as db:
            event = db.get(Event, event_id)
            if event is None:
                raise NotFoundError(EVENT_NOT_FOUND)

            validate_event_changes(changes, now.date())

            supplied = changes.supplied()
            if not supplied:
                raise ValidationError('No fields to update')

            for field, value in supplied.items():
                setattr(event, field, value)
            event.updated_at = now

            db.commit()
            db.refresh(event)

        logger.info('Event %s updated (%s)', event_id, ', '.join(sorted(supplied)))
        return event

    def delete(self, event_id: int) -> None:
        with self.database.session() as db:
            event = db.get(Event, event_id)
            if event is None:
                raise NotFoundError(EVENT_NOT_FOUND)

            removed = db.query(Rsvp).filter(Rsvp.event_id == event_id).delete(synchronize_session=False)
            db.delete(event)
            db.commit()

        logger.info('Event %s deleted along with %s RSVP(s)', event_id, removed)
