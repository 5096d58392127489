from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

UNREAD_COUNT = "notifications.unread"


class WsEnvelope(BaseModel):
    """JSON frame pushed over /ws/notifications."""
    type: Literal["notifications.unread"] = Field(UNREAD_COUNT, description="Message type")
    payload: Dict[str, Any] = Field(default_factory=dict, description="e.g. {unreadCount: 3}")
    at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="Timestamp (UTC).")
    user_id: Optional[str] = Field(default=None, description="Addressed user id")

    # PUBLIC_INTERFACE
    @classmethod
    def unread(cls, user_id: str, count: int) -> "WsEnvelope":
        """Frame carrying a user's unread notification count."""
        return cls(type=UNREAD_COUNT, payload={"unreadCount": count}, user_id=user_id)
