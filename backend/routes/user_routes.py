from fastapi import APIRouter, Depends, HTTPException, Query, status

from backend.auth.dependencies import CurrentUser, require_admin
from backend.dependencies import get_user_store
from backend.routes.auth_routes import UserResponse
from backend.services.user_store import UserStore

router = APIRouter(tags=['users'])


@router.get('', response_model=list[UserResponse])
def list_users(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=100),
    admin: CurrentUser = Depends(require_admin),
    users: UserStore = Depends(get_user_store),
):
    return users.list_users(page=page, limit=limit)


@router.delete('/{user_id}')
def delete_user(
    user_id: int,
    admin: CurrentUser = Depends(require_admin),
    users: UserStore = Depends(get_user_store),
):
    if user_id == admin.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Admins cannot delete their own account.',
        )

    users.delete(user_id)
    return {'message': 'User deleted successfully'}
