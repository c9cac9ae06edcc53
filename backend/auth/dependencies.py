from dataclasses import dataclass

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from backend.auth import jwt_handler
from backend.core.errors import NotFoundError
from backend.dependencies import get_user_store
from backend.services.user_store import UserStore

security = HTTPBearer(auto_error=False)

ADMIN_ROLE = 'admin'


@dataclass
class CurrentUser:
    user_id: int
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    users: UserStore = Depends(get_user_store),
) -> CurrentUser:
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Access token required")

    try:
        payload = jwt_handler.decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError as exc:
        raise _unauthorized("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise _unauthorized("Invalid token") from exc

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError) as exc:
        raise _unauthorized("Invalid token subject") from exc

    try:
        user = users.get(user_id)
    except NotFoundError as exc:
        raise _unauthorized("User not found") from exc

    return CurrentUser(user_id=user.id, email=user.email, role=user.role)


def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions. Required roles: admin",
        )
    return current_user
