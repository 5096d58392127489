from __future__ import annotations

from typing import Any, List, Optional, Sequence
from uuid import uuid4

from sqlalchemy import select

from qms.db.base import utcnow
from qms.db.models.notifications import Notification
from .base import BaseRepository


class NotificationRepository(BaseRepository):
    """Persistence for notifications and their reply threads."""

    async def get(self, notification_id: str) -> Optional[Notification]:
        stmt = select(Notification).where(Notification.id == notification_id)
        return await self.scalar_one_or_none(stmt)

    async def list_all(self) -> List[Notification]:
        """All notifications, newest first."""
        stmt = select(Notification).order_by(Notification.created_at.desc(), Notification.id)
        return list(await self.scalars(stmt))

    async def create(
        self,
        *,
        title: str,
        message: str,
        sender_id: str,
        sender_name: str,
        recipient: str,
        image_url: Optional[str] = None,
        link: Optional[str] = None,
    ) -> Notification:
        notification = Notification(
            id=uuid4().hex,
            title=title,
            message=message,
            image_url=image_url,
            sender_id=sender_id,
            sender_name=sender_name,
            recipient=recipient,
            link=link,
            read_by=[],
            deleted_by=[],
            replies=[],
            created_at=utcnow(),
        )
        await self.add(notification)
        await self.commit()
        return notification

    async def mark_read(self, notifications: Sequence[Notification], user_id: str) -> int:
        """Add user_id to read_by on each notification; returns how many changed."""
        changed = 0
        for n in notifications:
            if user_id not in (n.read_by or []):
                n.read_by = [*(n.read_by or []), user_id]
                changed += 1
        if changed:
            await self.commit()
        return changed

    async def mark_deleted(self, notifications: Sequence[Notification], user_id: str) -> int:
        """Add user_id to deleted_by on each notification; returns how many changed."""
        changed = 0
        for n in notifications:
            if user_id not in (n.deleted_by or []):
                n.deleted_by = [*(n.deleted_by or []), user_id]
                changed += 1
        if changed:
            await self.commit()
        return changed

    async def append_reply(
        self, notification: Notification, reply: dict[str, Any], reset_read: bool = False
    ) -> Notification:
        """
        Append a reply and mark the notification read for its author.

        With reset_read the thread becomes unread for everyone but the author.
        """
        notification.replies = [*(notification.replies or []), reply]
        author = reply["sender_id"]
        if reset_read:
            notification.read_by = [author]
        elif author not in (notification.read_by or []):
            notification.read_by = [*(notification.read_by or []), author]
        await self.commit()
        return notification
