from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import func

from backend.database import Database
from backend.models.rsvp import Rsvp, status_rank
from backend.models.user import User
from backend.services.rsvp_store import StatusCount


@dataclass
class RsvpUser:
    user_id: int
    name: str
    email: str
    rsvp_date: datetime


@dataclass
class RsvpSummary:
    counts: list[StatusCount] = field(default_factory=list)
    users_by_status: dict[str, list[RsvpUser]] = field(default_factory=dict)


class RsvpAggregator:
    """Per-event RSVP summaries.

    Only statuses that have at least one RSVP appear in the result; callers
    must not expect all three keys.
    """

    def __init__(self, database: Database):
        self.database = database

    def summarize(self, event_id: int) -> RsvpSummary:
        with self.database.session() as db:
            count_rows = (
                db.query(Rsvp.status, func.count(Rsvp.id))
                .filter(Rsvp.event_id == event_id)
                .group_by(Rsvp.status)
                .order_by(status_rank())
                .all()
            )
            user_rows = (
                db.query(Rsvp.status, User.id, User.name, User.email, Rsvp.created_at)
                .join(User, Rsvp.user_id == User.id)
                .filter(Rsvp.event_id == event_id)
                .order_by(status_rank(), User.name.asc())
                .all()
            )

        summary = RsvpSummary(counts=[StatusCount(status=status, count=count) for status, count in count_rows])
        for status, user_id, name, email, rsvp_date in user_rows:
            summary.users_by_status.setdefault(status, []).append(
                RsvpUser(user_id=user_id, name=name, email=email, rsvp_date=rsvp_date)
            )
        return summary
