from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from qms.repositories.documents import DocumentRepository


def today_iso() -> str:
    """Current date as YYYY-MM-DD (UTC)."""
    return datetime.now(timezone.utc).date().isoformat()


def now_hhmm() -> str:
    """Current time as HH:MM (UTC)."""
    return datetime.now(timezone.utc).strftime("%H:%M")


class BaseService:
    """
    Base class for services. Holds a session shared by the repositories a
    service uses; most services work on document collections, so a
    DocumentRepository is always available as ``self.documents``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.documents = DocumentRepository(session)
