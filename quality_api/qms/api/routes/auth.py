from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from qms.core.deps import get_current_active_user, get_session
from qms.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    verify_password,
)
from qms.db.models.security import User
from qms.repositories.security import UserRepository
from qms.schemas.auth import (
    Message,
    PasswordChange,
    PasswordResetConfirm,
    PasswordResetRequest,
    RefreshRequest,
    TokenPair,
    UserRead,
)
from qms.services.users import UserService

router = APIRouter(prefix="/auth", tags=["Auth"])


def _issue_tokens(user: User) -> TokenPair:
    access = create_access_token(subject=user.id, role=user.role)
    refresh = create_refresh_token(subject=user.id)
    return TokenPair(access_token=access, refresh_token=refresh)


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=TokenPair,
    summary="Login",
    description="Authenticate using OAuth2 password form (username = email) and receive access/refresh tokens.",
)
async def login_for_tokens(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: AsyncSession = Depends(get_session),
) -> TokenPair:
    """Authenticate user and issue tokens."""
    repo = UserRepository(session)
    user = await repo.get_user_by_email(form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=400, detail="User is inactive")
    return _issue_tokens(user)


# PUBLIC_INTERFACE
@router.post(
    "/refresh",
    response_model=TokenPair,
    summary="Refresh access token",
    description="Issue a new access token from a valid refresh token.",
)
async def refresh_token(
    payload: RefreshRequest,
    session: AsyncSession = Depends(get_session),
) -> TokenPair:
    """Validate refresh token and issue a new access token pair."""
    try:
        claims: Dict[str, Any] = decode_token(payload.refresh_token)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    if claims.get("type") != "refresh":
        raise HTTPException(status_code=401, detail="Invalid token type")

    user = await UserRepository(session).get_user_by_id(str(claims.get("sub")))
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return _issue_tokens(user)


# PUBLIC_INTERFACE
@router.post(
    "/logout",
    response_model=Message,
    summary="Logout",
    description="Stateless logout. Clients should discard tokens. No server state maintained.",
)
async def logout() -> Message:
    """Acknowledge logout in stateless JWT systems."""
    return Message(message="Logged out")


# PUBLIC_INTERFACE
@router.get(
    "/me",
    response_model=UserRead,
    summary="Read current user",
    description="Return the current authenticated user.",
)
async def read_current_user(user: User = Depends(get_current_active_user)) -> UserRead:
    """Return current user profile."""
    return UserRead.model_validate(user)


# PUBLIC_INTERFACE
@router.post(
    "/password",
    response_model=Message,
    summary="Change own password",
    description="Change the signed-in user's password. The current password is required.",
)
async def change_password(
    payload: PasswordChange,
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> Message:
    await UserService(session).change_own_password(user, payload.current_password, payload.new_password)
    return Message(message="Password updated")


# PUBLIC_INTERFACE
@router.post(
    "/password-reset/request",
    response_model=Message,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Request password reset",
    description="Issue a reset token for the account. The response never reveals whether the email exists.",
)
async def request_password_reset(
    payload: PasswordResetRequest,
    session: AsyncSession = Depends(get_session),
) -> Message:
    await UserService(session).request_password_reset(payload.email)
    return Message(message="If the account exists, password reset instructions have been sent")


# PUBLIC_INTERFACE
@router.post(
    "/password-reset/confirm",
    response_model=Message,
    summary="Confirm password reset",
    description="Set a new password using a reset token.",
)
async def confirm_password_reset(
    payload: PasswordResetConfirm,
    session: AsyncSession = Depends(get_session),
) -> Message:
    await UserService(session).confirm_password_reset(payload.token, payload.new_password)
    return Message(message="Password updated")
