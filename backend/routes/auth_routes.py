import logging
from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator

from backend.auth import jwt_handler
from backend.auth.dependencies import CurrentUser, get_current_user
from backend.auth.passwords import MAX_PASSWORD_BYTES
from backend.core import config
from backend.dependencies import get_user_store
from backend.models.user import User
from backend.services.user_store import ProfileChanges, UserStore

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)


def _validate_email(value: str) -> str:
    normalized = value.strip().lower()
    if not normalized or '@' not in normalized:
        raise ValueError('A valid email is required.')
    return normalized


def _validate_name(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError('Name is required.')
    return normalized


class RegisterRequest(BaseModel):
    email: str
    password: str
    name: str
    role: Literal['admin', 'user'] = 'user'

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _validate_email(value)

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _validate_name(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < config.MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {config.MIN_PASSWORD_LENGTH} characters.')
        if len(value.encode('utf-8')) > MAX_PASSWORD_BYTES:
            raise ValueError(f'Password must be at most {MAX_PASSWORD_BYTES} bytes.')
        return value


class LoginRequest(BaseModel):
    email: str
    password: str


class ProfileUpdateRequest(BaseModel):
    name: str | None = None
    email: str | None = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        return None if value is None else _validate_email(value)

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        return None if value is None else _validate_name(value)


class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    role: str
    created_at: datetime

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserResponse


def _issue_token(user: User) -> str:
    return jwt_handler.create_access_token(user_id=user.id, email=user.email, role=user.role)


@router.post('/register', response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, users: UserStore = Depends(get_user_store)):
    user = users.register(email=data.email, password=data.password, name=data.name, role=data.role)
    return AuthResponse(
        message='User registered successfully',
        token=_issue_token(user),
        user=UserResponse.model_validate(user),
    )


@router.post('/login', response_model=AuthResponse)
def login(data: LoginRequest, users: UserStore = Depends(get_user_store)):
    user = users.authenticate(data.email, data.password)
    if user is None:
        logger.info('Failed login attempt for %s', data.email.strip().lower())
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail='Invalid email or password',
        )

    return AuthResponse(
        message='Login successful',
        token=_issue_token(user),
        user=UserResponse.model_validate(user),
    )


@router.get('/profile', response_model=UserResponse)
def get_profile(
    current_user: CurrentUser = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
):
    return users.get(current_user.user_id)


@router.put('/profile', response_model=UserResponse)
def update_profile(
    data: ProfileUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
):
    changes = ProfileChanges(name=data.name, email=data.email)
    return users.update_profile(current_user.user_id, changes)
