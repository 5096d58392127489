from __future__ import annotations

from typing import Any, Iterable

from sqlalchemy import Executable
from sqlalchemy.ext.asyncio import AsyncSession


class BaseRepository:
    """
    Shared session helpers for the document, notification and user repositories.

    Methods that represent a complete write (add_or_update, remove...) commit
    before returning; add/add_all only stage entities.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def execute(self, statement: Executable):
        return await self.session.execute(statement)

    async def scalars(self, statement: Executable):
        """Execute and return the ORM rows of the first column."""
        result = await self.execute(statement)
        return result.scalars()

    async def scalar_one_or_none(self, statement: Executable):
        result = await self.execute(statement)
        return result.scalar_one_or_none()

    async def commit(self) -> None:
        await self.session.commit()

    async def add_all(self, entities: Iterable[Any]) -> None:
        self.session.add_all(list(entities))

    async def add(self, entity: Any) -> None:
        self.session.add(entity)
