from datetime import date, datetime, time
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from backend.auth.dependencies import CurrentUser, get_current_user
from backend.dependencies import get_rsvp_store
from backend.models.rsvp import Rsvp
from backend.services.rsvp_store import RsvpStore, UserRsvp

router = APIRouter(tags=['rsvps'])


class RsvpRequest(BaseModel):
    event_id: int
    status: Literal['going', 'maybe', 'decline']


class RsvpResponse(BaseModel):
    id: int
    user_id: int
    event_id: int
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class UpsertRsvpResponse(BaseModel):
    message: str
    rsvp: RsvpResponse


class UserRsvpResponse(RsvpResponse):
    title: str
    description: str | None = None
    date: date
    start_time: time
    end_time: time
    location: str
    organizer_name: str | None = None
    event_status: str


class StatusCountResponse(BaseModel):
    status: str
    count: int


def to_rsvp_response(rsvp: Rsvp) -> RsvpResponse:
    return RsvpResponse.model_validate(rsvp)


def to_user_rsvp_response(item: UserRsvp) -> UserRsvpResponse:
    rsvp, event = item.rsvp, item.event
    return UserRsvpResponse(
        id=rsvp.id,
        user_id=rsvp.user_id,
        event_id=rsvp.event_id,
        status=rsvp.status,
        created_at=rsvp.created_at,
        updated_at=rsvp.updated_at,
        title=event.title,
        description=event.description,
        date=event.date,
        start_time=event.start_time,
        end_time=event.end_time,
        location=event.location,
        organizer_name=item.organizer_name,
        event_status=item.event_status,
    )


@router.get('/my-rsvps', response_model=list[UserRsvpResponse])
def list_my_rsvps(
    upcoming_only: bool = Query(default=False),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    rsvps: RsvpStore = Depends(get_rsvp_store),
):
    items = rsvps.find_by_user(current_user.user_id, upcoming_only=upcoming_only, page=page, limit=limit)
    return [to_user_rsvp_response(item) for item in items]


@router.get('/stats', response_model=list[StatusCountResponse])
def get_my_rsvp_stats(
    current_user: CurrentUser = Depends(get_current_user),
    rsvps: RsvpStore = Depends(get_rsvp_store),
):
    return [
        StatusCountResponse(status=item.status, count=item.count)
        for item in rsvps.user_stats(current_user.user_id)
    ]


@router.post('', response_model=UpsertRsvpResponse)
def upsert_rsvp(
    data: RsvpRequest,
    current_user: CurrentUser = Depends(get_current_user),
    rsvps: RsvpStore = Depends(get_rsvp_store),
):
    result = rsvps.upsert(current_user.user_id, data.event_id, data.status)
    message = 'RSVP created successfully' if result.created else 'RSVP updated successfully'
    return UpsertRsvpResponse(message=message, rsvp=to_rsvp_response(result.rsvp))


@router.get('/event/{event_id}')
def get_my_event_rsvp(
    event_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    rsvps: RsvpStore = Depends(get_rsvp_store),
):
    item = rsvps.find_for_event(current_user.user_id, event_id)
    if item is None:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={'rsvp': None})

    return {'rsvp': to_user_rsvp_response(item).model_dump(mode='json')}


@router.delete('/event/{event_id}')
def delete_my_event_rsvp(
    event_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    rsvps: RsvpStore = Depends(get_rsvp_store),
):
    rsvps.delete(current_user.user_id, event_id)
    return {'message': 'RSVP deleted successfully'}
