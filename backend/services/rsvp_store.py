"""RSVP persistence: one response per user and event, updated in place."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from backend.core.errors import ConflictError, NotFoundError
from backend.database import Database, paginate
from backend.models.event import Event
from backend.models.rsvp import Rsvp, status_rank
from backend.models.user import User
from backend.services.event_store import EVENT_NOT_FOUND
from backend.services.lifecycle import event_status, validate_rsvp_eligibility

logger = logging.getLogger(__name__)


@dataclass
class UpsertResult:
    rsvp: Rsvp
    created: bool


@dataclass
class UserRsvp:
    """An RSVP joined to its event, with the event's derived past/upcoming status."""

    rsvp: Rsvp
    event: Event
    event_status: str
    organizer_name: str | None = None


@dataclass
class EventRsvp:
    rsvp: Rsvp
    user_name: str
    user_email: str


@dataclass
class StatusCount:
    status: str
    count: int


class RsvpStore:
    def __init__(self, database: Database, clock: Callable[[], datetime] = datetime.now):
        self.database = database
        self._clock = clock

    @staticmethod
    def _find_pair(db, user_id: int, event_id: int) -> Rsvp | None:
        return db.query(Rsvp).filter(Rsvp.user_id == user_id, Rsvp.event_id == event_id).first()

    @staticmethod
    def _apply_status(db, rsvp: Rsvp, status: str, now: datetime) -> Rsvp:
        rsvp.status = status
        rsvp.updated_at = now
        db.commit()
        db.refresh(rsvp)
        return rsvp

    def upsert(self, user_id: int, event_id: int, status: str) -> UpsertResult:
        """Create the user's RSVP for an event, or update its status in place.

        The ``(user_id, event_id)`` uniqueness constraint arbitrates concurrent
        first submissions: the losing insert is rolled back and re-applied as
        an update of the row that won.
        """
        now = self._clock()

        with self.database.session() as db:
            event = db.get(Event, event_id)
            if event is None:
                raise NotFoundError(EVENT_NOT_FOUND)

            validate_rsvp_eligibility(event, now)

            existing = self._find_pair(db, user_id, event_id)
            if existing is not None:
                rsvp = self._apply_status(db, existing, status, now)
                logger.info('RSVP of user %s for event %s updated to %s', user_id, event_id, status)
                return UpsertResult(rsvp=rsvp, created=False)

            rsvp = Rsvp(
                user_id=user_id,
                event_id=event_id,
                status=status,
                created_at=now,
                updated_at=now,
            )
            db.add(rsvp)
            try:
                db.commit()
            except IntegrityError as error:
                db.rollback()
                existing = self._find_pair(db, user_id, event_id)
                if existing is None:
                    raise ConflictError('RSVP could not be saved') from error

                logger.info('Concurrent RSVP for user %s and event %s; retrying as update', user_id, event_id)
                rsvp = self._apply_status(db, existing, status, now)
                return UpsertResult(rsvp=rsvp, created=False)

            db.refresh(rsvp)

        logger.info('RSVP of user %s for event %s created as %s', user_id, event_id, status)
        return UpsertResult(rsvp=rsvp, created=True)

    def delete(self, user_id: int, event_id: int) -> None:
        with self.database.session() as db:
            removed = (
                db.query(Rsvp)
                .filter(Rsvp.user_id == user_id, Rsvp.event_id == event_id)
                .delete(synchronize_session=False)
            )
            if not removed:
                raise NotFoundError('RSVP not found')
            db.commit()

        logger.info('RSVP of user %s for event %s deleted', user_id, event_id)

    def find_by_user(
        self,
        user_id: int,
        upcoming_only: bool = False,
        page: int = 1,
        limit: int | None = None,
    ) -> list[UserRsvp]:
        # Descending on purpose: the furthest-out events come first.
        now = self._clock()

        with self.database.session() as db:
            query = (
                db.query(Rsvp, Event, User.name)
                .join(Event, Rsvp.event_id == Event.id)
                .outerjoin(User, Event.created_by == User.id)
                .filter(Rsvp.user_id == user_id)
            )
            if upcoming_only:
                query = query.filter(Event.date >= now.date())

            query = query.order_by(Event.date.desc(), Event.start_time.desc())
            rows = paginate(query, page, limit).all()

        return [
            UserRsvp(
                rsvp=rsvp,
                event=event,
                event_status=event_status(event.date, event.end_time, now),
                organizer_name=organizer_name,
            )
            for rsvp, event, organizer_name in rows
        ]

    def find_for_event(self, user_id: int, event_id: int) -> UserRsvp | None:
        now = self._clock()

        with self.database.session() as db:
            row = (
                db.query(Rsvp, Event)
                .join(Event, Rsvp.event_id == Event.id)
                .filter(Rsvp.user_id == user_id, Rsvp.event_id == event_id)
                .first()
            )

        if row is None:
            return None

        rsvp, event = row
        return UserRsvp(rsvp=rsvp, event=event, event_status=event_status(event.date, event.end_time, now))

    def find_by_event(self, event_id: int, page: int = 1, limit: int | None = 50) -> list[EventRsvp]:
        with self.database.session() as db:
            query = (
                db.query(Rsvp, User.name, User.email)
                .join(User, Rsvp.user_id == User.id)
                .filter(Rsvp.event_id == event_id)
                .order_by(Rsvp.created_at.desc(), Rsvp.id.desc())
            )
            rows = paginate(query, page, limit).all()

        return [EventRsvp(rsvp=rsvp, user_name=name, user_email=email) for rsvp, name, email in rows]

    def user_stats(self, user_id: int) -> list[StatusCount]:
        """Counts of the user's responses to events dated today or later."""
        today = self._clock().date()

        with self.database.session() as db:
            rows = (
                db.query(Rsvp.status, func.count(Rsvp.id))
                .join(Event, Rsvp.event_id == Event.id)
                .filter(Rsvp.user_id == user_id, Event.date >= today)
                .group_by(Rsvp.status)
                .order_by(status_rank())
                .all()
            )

        return [StatusCount(status=status, count=count) for status, count in rows]
