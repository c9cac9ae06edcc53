"""RSVP model definitions."""

from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, case
from backend.database import Base

RSVP_STATUSES = ('going', 'maybe', 'decline')


class Rsvp(Base):
    """A user's response to an event. At most one per user and event."""
    __tablename__ = "rsvps"
    __table_args__ = (
        UniqueConstraint('user_id', 'event_id', name='uq_rsvps_user_event'),
        CheckConstraint(
            "status IN ({})".format(", ".join(f"'{status}'" for status in RSVP_STATUSES)),
            name='ck_rsvps_status',
        ),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)
    status = Column(String(50), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now)


def status_rank():
    """SQL expression ordering statuses going, maybe, decline."""
    return case(
        {status: rank for rank, status in enumerate(RSVP_STATUSES, start=1)},
        value=Rsvp.status,
    )
