from __future__ import annotations

import logging
from typing import List, Optional

from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from qms.core.errors import ConflictError, NotFoundError, PermissionDeniedError, QmsError
from qms.core.security import (
    create_password_reset_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from qms.db.models.security import User
from qms.repositories.security import UserRepository
from qms.schemas.auth import UserCreate, UserUpdate
from qms.services.base import BaseService

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class UserService(BaseService):
    """Account management: profiles, passwords and password resets."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = UserRepository(session)

    # PUBLIC_INTERFACE
    async def list_users(self) -> List[User]:
        return await self.repo.list_users()

    # PUBLIC_INTERFACE
    async def get_user(self, user_id: str) -> User:
        user = await self.repo.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User '{user_id}' not found")
        return user

    # PUBLIC_INTERFACE
    async def create_user(self, payload: UserCreate, user_id: Optional[str] = None) -> User:
        """Create an account; the email must not be in use."""
        if await self.repo.get_user_by_email(payload.email):
            raise ConflictError("A user with this email already exists")
        user = await self.repo.create_user(
            name=payload.name,
            email=payload.email,
            role=payload.role,
            document_type=payload.document_type,
            document_number=payload.document_number,
            avatar_url=payload.avatar_url,
            hashed_password=get_password_hash(payload.password),
            user_id=user_id,
        )
        logger.info("Created user %s with role %s", user.id, user.role)
        return user

    # PUBLIC_INTERFACE
    async def update_user(self, user_id: str, payload: UserUpdate) -> User:
        await self.get_user(user_id)
        if payload.email:
            other = await self.repo.get_user_by_email(payload.email)
            if other is not None and other.id != user_id:
                raise ConflictError("A user with this email already exists")
        user = await self.repo.update_user(user_id, **payload.model_dump(exclude_unset=True))
        return user

    # PUBLIC_INTERFACE
    async def delete_user(self, user_id: str) -> None:
        if not await self.repo.delete_user(user_id):
            raise NotFoundError(f"User '{user_id}' not found")
        logger.info("Deleted user %s", user_id)

    # PUBLIC_INTERFACE
    async def set_password(self, user_id: str, new_password: str) -> None:
        """Administrator password reset for another account."""
        if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
            raise QmsError(f"The password must be at least {MIN_PASSWORD_LENGTH} characters long")
        await self.get_user(user_id)
        await self.repo.update_user(user_id, hashed_password=get_password_hash(new_password))
        logger.info("Password of user %s set by an administrator", user_id)

    # PUBLIC_INTERFACE
    async def change_own_password(self, user: User, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.hashed_password):
            raise PermissionDeniedError("Current password is incorrect")
        await self.repo.update_user(user.id, hashed_password=get_password_hash(new_password))

    # PUBLIC_INTERFACE
    async def request_password_reset(self, email: str) -> Optional[str]:
        """
        Issue a reset token for the account, if there is one.

        The token is logged for delivery; callers must answer the same way
        whether or not the account exists.
        """
        user = await self.repo.get_user_by_email(email)
        if user is None or not user.is_active:
            logger.info("Password reset requested for unknown or inactive account")
            return None
        token = create_password_reset_token(user.id, user.email)
        logger.info("Password reset token issued for user %s: %s", user.id, token)
        return token

    # PUBLIC_INTERFACE
    async def confirm_password_reset(self, token: str, new_password: str) -> User:
        try:
            claims = decode_token(token)
        except JWTError as exc:
            raise QmsError("Invalid or expired reset token") from exc
        if claims.get("type") != "password_reset":
            raise QmsError("Invalid or expired reset token")
        user = await self.repo.get_user_by_id(str(claims.get("sub")))
        if user is None or user.email.lower() != str(claims.get("email", "")).lower():
            raise QmsError("Invalid or expired reset token")
        await self.repo.update_user(user.id, hashed_password=get_password_hash(new_password))
        logger.info("Password reset completed for user %s", user.id)
        return user
