from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from fastapi import Depends, Request

from backend.database import Database
from backend.services.aggregator import RsvpAggregator
from backend.services.event_store import EventStore
from backend.services.rsvp_store import RsvpStore
from backend.services.user_store import UserStore


@dataclass
class Services:
    database: Database
    users: UserStore
    events: EventStore
    rsvps: RsvpStore
    aggregator: RsvpAggregator


def build_services(database: Database, clock: Callable[[], datetime] = datetime.now) -> Services:
    return Services(
        database=database,
        users=UserStore(database, clock=clock),
        events=EventStore(database, clock=clock),
        rsvps=RsvpStore(database, clock=clock),
        aggregator=RsvpAggregator(database),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_user_store(services: Services = Depends(get_services)) -> UserStore:
    return services.users


def get_event_store(services: Services = Depends(get_services)) -> EventStore:
    return services.events


def get_rsvp_store(services: Services = Depends(get_services)) -> RsvpStore:
    return services.rsvps


def get_aggregator(services: Services = Depends(get_services)) -> RsvpAggregator:
    return services.aggregator
