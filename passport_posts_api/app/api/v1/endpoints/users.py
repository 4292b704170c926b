"""
User management endpoints for API v1.

All routes are restricted to the administrator except
``PATCH /users/{id}/change-password``, which a user may also call for
their own account.
"""

from typing import List

from fastapi import APIRouter, Depends

from passport_posts_api.app.core.errors import Forbidden
from passport_posts_api.app.core.security import ROLE_ADMIN, get_current_user, is_admin, require_roles
from passport_posts_api.app.schemas.base import DataResponse, ListResponse, MessageResponse
from passport_posts_api.app.schemas.user import PasswordChange, PasswordReset, UserRead, UserUpdate
from passport_posts_api.app.services.user_service import UserService


router = APIRouter()


@router.get("", response_model=ListResponse[UserRead])
async def list_users(current_user: dict = Depends(require_roles(ROLE_ADMIN))) -> ListResponse[UserRead]:
    """List regular users, newest first."""
    users: List[UserRead] = await UserService.list_users()
    return ListResponse(count=len(users), data=users)


@router.get("/{user_id}", response_model=DataResponse[UserRead])
async def get_user(user_id: int, current_user: dict = Depends(require_roles(ROLE_ADMIN))) -> DataResponse[UserRead]:
    return DataResponse(data=await UserService.get_user(user_id))


@router.put("/{user_id}", response_model=DataResponse[UserRead])
async def update_user(
    user_id: int,
    body: UserUpdate,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> DataResponse[UserRead]:
    """Update ``fullName``, ``mobileNumber`` and ``isActive``.

    Setting ``role`` to ``admin`` is rejected with 400; any other role
    value is ignored.
    """
    updates = body.model_dump(exclude_unset=True)
    user = await UserService.update_user(user_id, updates, acting_user_id=current_user["user_id"])
    return DataResponse(data=user)


@router.patch("/{user_id}/toggle-status", response_model=DataResponse[UserRead])
async def toggle_user_status(
    user_id: int,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> DataResponse[UserRead]:
    user = await UserService.toggle_status(user_id, acting_user_id=current_user["user_id"])
    return DataResponse(data=user)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(user_id: int, current_user: dict = Depends(require_roles(ROLE_ADMIN))) -> MessageResponse:
    await UserService.delete_user(user_id, acting_user_id=current_user["user_id"])
    return MessageResponse(message="User deleted successfully")


@router.patch("/{user_id}/reset-password", response_model=MessageResponse)
async def reset_user_password(
    user_id: int,
    body: PasswordReset,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> MessageResponse:
    await UserService.reset_password(user_id, body.new_password)
    return MessageResponse(message="Password reset successfully")


@router.patch("/{user_id}/change-password", response_model=MessageResponse)
async def change_user_password(
    user_id: int,
    body: PasswordChange,
    current_user: dict = Depends(get_current_user),
) -> MessageResponse:
    """Change a password.

    A user may change their own password after confirming the current
    one; the administrator may change anyone's without it.
    """
    admin = is_admin(current_user)
    if current_user["user_id"] != user_id and not admin:
        raise Forbidden("Not authorized to change this user's password")
    await UserService.change_password(
        user_id,
        body.current_password,
        body.new_password,
        verify_current=not admin,
    )
    return MessageResponse(message="Password changed successfully")
