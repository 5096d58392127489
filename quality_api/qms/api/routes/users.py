from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from qms.core.deps import get_session, require_roles
from qms.core.roles import ADMINISTRATOR
from qms.schemas.auth import AdminPasswordSet, Message, UserCreate, UserRead, UserUpdate
from qms.services.users import UserService

router = APIRouter(prefix="/users", tags=["Users"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[UserRead],
    summary="List users",
    description="List every user, ordered by name.",
    dependencies=[Depends(require_roles(ADMINISTRATOR))],
)
async def list_users(session: AsyncSession = Depends(get_session)) -> List[UserRead]:
    return [UserRead.model_validate(u) for u in await UserService(session).list_users()]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
    description="Create a user. The email must be unused and confirmPassword must match.",
    dependencies=[Depends(require_roles(ADMINISTRATOR))],
)
async def create_user(
    payload: UserCreate,
    session: AsyncSession = Depends(get_session),
) -> UserRead:
    user = await UserService(session).create_user(payload)
    return UserRead.model_validate(user)


# PUBLIC_INTERFACE
@router.get(
    "/{user_id}",
    response_model=UserRead,
    summary="Get user",
    dependencies=[Depends(require_roles(ADMINISTRATOR))],
)
async def get_user(
    user_id: str = Path(..., description="User ID"),
    session: AsyncSession = Depends(get_session),
) -> UserRead:
    return UserRead.model_validate(await UserService(session).get_user(user_id))


# PUBLIC_INTERFACE
@router.patch(
    "/{user_id}",
    response_model=UserRead,
    summary="Update user",
    description="Update profile fields; omitted fields are unchanged.",
    dependencies=[Depends(require_roles(ADMINISTRATOR))],
)
async def update_user(
    payload: UserUpdate,
    user_id: str = Path(..., description="User ID"),
    session: AsyncSession = Depends(get_session),
) -> UserRead:
    return UserRead.model_validate(await UserService(session).update_user(user_id, payload))


# PUBLIC_INTERFACE
@router.delete(
    "/{user_id}",
    response_model=Message,
    summary="Delete user",
    dependencies=[Depends(require_roles(ADMINISTRATOR))],
)
async def delete_user(
    user_id: str = Path(..., description="User ID"),
    session: AsyncSession = Depends(get_session),
) -> Message:
    await UserService(session).delete_user(user_id)
    return Message(message="User deleted")


# PUBLIC_INTERFACE
@router.post(
    "/{user_id}/password",
    response_model=Message,
    summary="Set user password",
    description="Set a new password for a user (at least 6 characters).",
    dependencies=[Depends(require_roles(ADMINISTRATOR))],
)
async def set_user_password(
    payload: AdminPasswordSet,
    user_id: str = Path(..., description="User ID"),
    session: AsyncSession = Depends(get_session),
) -> Message:
    await UserService(session).set_password(user_id, payload.new_password)
    return Message(message="Password updated")
