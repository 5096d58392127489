from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class ReplyRead(BaseModel):
    """A reply in a notification thread."""
    message: str = Field(..., description="Reply text")
    sender_id: str = Field(..., description="Author user id")
    sender_name: str = Field(..., description="Author display name")
    created_at: datetime = Field(..., description="Reply timestamp (UTC)")
    image_url: Optional[str] = Field(None, description="Attached image URL")


class NotificationRead(BaseModel):
    """Notification read model."""
    id: str = Field(..., description="Notification ID")
    title: str = Field(...)
    message: str = Field(...)
    image_url: Optional[str] = Field(None)
    sender_id: str = Field(...)
    sender_name: str = Field(...)
    recipient: str = Field(..., description="'all', a role name or a user id")
    link: Optional[str] = Field(None, description="In-app route the notification points to")
    read_by: List[str] = Field(default_factory=list)
    deleted_by: List[str] = Field(default_factory=list)
    replies: List[ReplyRead] = Field(default_factory=list)
    created_at: datetime = Field(...)

    class Config:
        from_attributes = True


class NotificationCreate(BaseModel):
    """Send a notification/message to 'all', a role or a user."""
    title: str = Field(..., min_length=1)
    message: str = Field("", description="Body text")
    recipient: str = Field(..., min_length=1, description="'all', a role name or a user id")
    link: Optional[str] = Field(None)
    image_url: Optional[str] = Field(None)


class ReplyCreate(BaseModel):
    """Reply to a notification thread."""
    message: str = Field("", description="Reply text")
    image_url: Optional[str] = Field(None)


class BellView(BaseModel):
    """Notifications visible to the user, grouped the way the bell shows them."""
    new: List[NotificationRead] = Field(default_factory=list, description="Unread")
    today: List[NotificationRead] = Field(default_factory=list, description="Read, created today")
    older: List[NotificationRead] = Field(default_factory=list, description="Read, created before today")
    unread_count: int = Field(0)


class UnreadCount(BaseModel):
    unread_count: int = Field(..., description="Visible notifications the user has not read")


class ConversationRead(BaseModel):
    """A chat conversation: everyone, a role channel or a direct thread with a user."""
    id: str = Field(..., description="'all', a role name or the other user's id")
    type: Literal["all", "role", "user"] = Field(...)
    name: str = Field(...)
    avatar_url: Optional[str] = Field(None)
    last_message: str = Field("")
    last_message_at: Optional[datetime] = Field(None)
    unread_count: int = Field(0)


class ChatMessage(BaseModel):
    """A notification or reply flattened into a chat timeline entry."""
    id: str = Field(...)
    message: str = Field("")
    image_url: Optional[str] = Field(None)
    sender_id: str = Field(...)
    sender_name: str = Field(...)
    created_at: Optional[datetime] = Field(None)
    link: Optional[str] = Field(None)


class ChatMessageCreate(BaseModel):
    """Post into a conversation."""
    message: str = Field("", description="Message text")
    image_url: Optional[str] = Field(None)
