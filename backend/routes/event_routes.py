import datetime as dt
from datetime import date, datetime, time

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator

from backend.auth.dependencies import CurrentUser, get_current_user, require_admin
from backend.dependencies import get_aggregator, get_event_store, get_rsvp_store
from backend.models.event import Event
from backend.services.aggregator import RsvpAggregator
from backend.services.event_store import EventFields, EventListing, EventStore
from backend.services.lifecycle import EventChanges
from backend.services.rsvp_store import RsvpStore

router = APIRouter(tags=['events'])

MAX_PAGE_LIMIT = 100


def _required_text(value: str, label: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError(f'{label} is required.')
    return normalized


class CreateEventRequest(BaseModel):
    title: str
    description: str | None = None
    date: date
    start_time: time
    end_time: time
    location: str

    @field_validator('title')
    @classmethod
    def validate_title(cls, value: str) -> str:
        return _required_text(value, 'Title')

    @field_validator('location')
    @classmethod
    def validate_location(cls, value: str) -> str:
        return _required_text(value, 'Location')


class UpdateEventRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    date: dt.date | None = None
    start_time: time | None = None
    end_time: time | None = None
    location: str | None = None

    @field_validator('title', 'description', 'location')
    @classmethod
    def blank_means_unchanged(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class EventResponse(BaseModel):
    id: int
    title: str
    description: str | None = None
    date: date
    start_time: time
    end_time: time
    location: str
    created_by: int | None = None
    created_by_name: str | None = None
    created_at: datetime
    updated_at: datetime
    total_rsvps: int | None = None
    going_count: int | None = None
    maybe_count: int | None = None
    decline_count: int | None = None

    class Config:
        from_attributes = True


class StatusCountResponse(BaseModel):
    status: str
    count: int


class RsvpUserResponse(BaseModel):
    user_id: int
    name: str
    email: str
    rsvp_date: datetime


class RsvpSummaryResponse(BaseModel):
    summary: list[StatusCountResponse]
    users: dict[str, list[RsvpUserResponse]]


class EventRsvpResponse(BaseModel):
    id: int
    user_id: int
    event_id: int
    status: str
    created_at: datetime
    updated_at: datetime
    user_name: str
    user_email: str


def to_event_response(event: Event, created_by_name: str | None = None) -> EventResponse:
    response = EventResponse.model_validate(event)
    response.created_by_name = created_by_name
    return response


def listing_to_response(listing: EventListing) -> EventResponse:
    response = to_event_response(listing.event, listing.created_by_name)
    counts = listing.rsvp_counts
    if counts is not None:
        response.total_rsvps = counts.total
        response.going_count = counts.going
        response.maybe_count = counts.maybe
        response.decline_count = counts.decline
    return response


@router.get('', response_model=list[EventResponse])
def list_events(
    upcoming_only: bool = Query(default=True),
    include_rsvp_counts: bool = Query(default=True),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=MAX_PAGE_LIMIT),
    current_user: CurrentUser = Depends(get_current_user),
    events: EventStore = Depends(get_event_store),
):
    listings = events.list_events(
        upcoming_only=upcoming_only,
        include_rsvp_counts=include_rsvp_counts,
        page=page,
        limit=limit,
    )
    return [listing_to_response(listing) for listing in listings]


@router.get('/{event_id}', response_model=EventResponse)
def get_event(
    event_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    events: EventStore = Depends(get_event_store),
):
    return listing_to_response(events.get(event_id, include_rsvp_counts=True))


@router.post('', response_model=EventResponse, status_code=status.HTTP_201_CREATED)
def create_event(
    data: CreateEventRequest,
    admin: CurrentUser = Depends(require_admin),
    events: EventStore = Depends(get_event_store),
):
    fields = EventFields(
        title=data.title,
        description=data.description,
        date=data.date,
        start_time=data.start_time,
        end_time=data.end_time,
        location=data.location,
    )
    return to_event_response(events.create(fields, created_by=admin.user_id))


@router.put('/{event_id}', response_model=EventResponse)
def update_event(
    event_id: int,
    data: UpdateEventRequest,
    admin: CurrentUser = Depends(require_admin),
    events: EventStore = Depends(get_event_store),
):
    changes = EventChanges(
        title=data.title,
        description=data.description,
        date=data.date,
        start_time=data.start_time,
        end_time=data.end_time,
        location=data.location,
    )
    return to_event_response(events.update(event_id, changes))


@router.delete('/{event_id}')
def delete_event(
    event_id: int,
    admin: CurrentUser = Depends(require_admin),
    events: EventStore = Depends(get_event_store),
):
    events.delete(event_id)
    return {'message': 'Event deleted successfully'}


@router.get('/{event_id}/rsvp-summary', response_model=RsvpSummaryResponse)
def get_rsvp_summary(
    event_id: int,
    admin: CurrentUser = Depends(require_admin),
    aggregator: RsvpAggregator = Depends(get_aggregator),
):
    summary = aggregator.summarize(event_id)
    return RsvpSummaryResponse(
        summary=[StatusCountResponse(status=item.status, count=item.count) for item in summary.counts],
        users={
            rsvp_status: [
                RsvpUserResponse(
                    user_id=user.user_id,
                    name=user.name,
                    email=user.email,
                    rsvp_date=user.rsvp_date,
                )
                for user in users
            ]
            for rsvp_status, users in summary.users_by_status.items()
        },
    )


@router.get('/{event_id}/rsvps', response_model=list[EventRsvpResponse])
def list_event_rsvps(
    event_id: int,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=MAX_PAGE_LIMIT),
    admin: CurrentUser = Depends(require_admin),
    rsvps: RsvpStore = Depends(get_rsvp_store),
):
    return [
        EventRsvpResponse(
            id=item.rsvp.id,
            user_id=item.rsvp.user_id,
            event_id=item.rsvp.event_id,
            status=item.rsvp.status,
            created_at=item.rsvp.created_at,
            updated_at=item.rsvp.updated_at,
            user_name=item.user_name,
            user_email=item.user_email,
        )
        for item in rsvps.find_by_event(event_id, page=page, limit=limit)
    ]
