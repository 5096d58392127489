from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from qms.db.base import Base, JSONType, UTCDateTime, utcnow


class Notification(Base):
    """
    Internal message, doubling as a chat thread through its replies.

    ``recipient`` is 'all', a role name or a user id. ``read_by``,
    ``deleted_by`` and ``replies`` are JSON lists; assign new lists on change
    so the ORM picks up the mutation.
    """
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_recipient", "recipient"),
        Index("ix_notifications_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sender_id: Mapped[str] = mapped_column(Text, nullable=False)
    sender_name: Mapped[str] = mapped_column(Text, nullable=False)
    recipient: Mapped[str] = mapped_column(Text, nullable=False)
    link: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    read_by: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    deleted_by: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    replies: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
