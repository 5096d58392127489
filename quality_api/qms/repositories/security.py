from __future__ import annotations

from typing import Any, List, Optional
from uuid import uuid4

from sqlalchemy import delete, func, select

from qms.db.models.security import User
from .base import BaseRepository


class UserRepository(BaseRepository):
    """Repository for plant users."""

    async def get_user_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(func.lower(User.email) == email.lower())
        return await self.scalar_one_or_none(stmt)

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        stmt = select(User).where(User.id == user_id)
        return await self.scalar_one_or_none(stmt)

    async def count_users(self) -> int:
        result = await self.execute(select(func.count(User.id)))
        return int(result.scalar_one())

    async def list_users(self) -> List[User]:
        stmt = select(User).order_by(User.name)
        return list(await self.scalars(stmt))

    async def create_user(
        self,
        *,
        name: str,
        email: str,
        role: str,
        document_type: str,
        document_number: str,
        hashed_password: str,
        avatar_url: Optional[str] = None,
        user_id: Optional[str] = None,
        is_active: bool = True,
    ) -> User:
        user = User(
            id=user_id or uuid4().hex,
            name=name,
            email=email,
            role=role,
            document_type=document_type,
            document_number=document_number,
            avatar_url=avatar_url,
            hashed_password=hashed_password,
            is_active=is_active,
        )
        await self.add(user)
        await self.commit()
        return user

    async def update_user(self, user_id: str, **values: Any) -> Optional[User]:
        """Apply the non-None values to the user; returns None when not found."""
        user = await self.get_user_by_id(user_id)
        if user is None:
            return None
        changed = False
        for key, value in values.items():
            if value is not None:
                setattr(user, key, value)
                changed = True
        if changed:
            await self.commit()
        return user

    async def delete_user(self, user_id: str) -> bool:
        result = await self.execute(delete(User).where(User.id == user_id))
        await self.commit()
        return bool(result.rowcount)
