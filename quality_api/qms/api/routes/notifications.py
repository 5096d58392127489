from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from qms.core.deps import get_current_active_user, get_session
from qms.db.models.security import User
from qms.schemas.notifications import (
    BellView,
    ChatMessage,
    ChatMessageCreate,
    ConversationRead,
    NotificationCreate,
    NotificationRead,
    ReplyCreate,
    UnreadCount,
)
from qms.services.notifications import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])
chat_router = APIRouter(prefix="/chat", tags=["Chat"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=BellView,
    summary="Notification bell",
    description="Visible notifications grouped into new (unread), today and older.",
)
async def bell(
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> BellView:
    return await NotificationService(session).bell(user)


# PUBLIC_INTERFACE
@router.get(
    "/unread-count",
    response_model=UnreadCount,
    summary="Unread count",
)
async def get_unread_count(
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> UnreadCount:
    return UnreadCount(unread_count=await NotificationService(session).unread_count(user))


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=NotificationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Send notification",
    description="Send a message to everyone ('all'), a role or a single user. The caller is the sender.",
)
async def send_notification(
    payload: NotificationCreate,
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> NotificationRead:
    created = await NotificationService(session).send_notification(
        title=payload.title,
        message=payload.message,
        sender_id=user.id,
        sender_name=user.name,
        recipient=payload.recipient,
        link=payload.link,
        image_url=payload.image_url,
    )
    return NotificationRead.model_validate(created)


# PUBLIC_INTERFACE
@router.post(
    "/read-all",
    response_model=UnreadCount,
    summary="Mark all as read",
)
async def mark_all_read(
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> UnreadCount:
    service = NotificationService(session)
    await service.mark_all_read(user)
    return UnreadCount(unread_count=await service.unread_count(user))


# PUBLIC_INTERFACE
@router.post(
    "/clear",
    response_model=UnreadCount,
    summary="Clear bell",
    description="Hide every visible notification from the caller's bell. Conversations keep them.",
)
async def clear_all(
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> UnreadCount:
    service = NotificationService(session)
    await service.clear_all(user)
    return UnreadCount(unread_count=await service.unread_count(user))


# PUBLIC_INTERFACE
@router.post(
    "/{notification_id}/read",
    response_model=NotificationRead,
    summary="Mark as read",
)
async def mark_read(
    notification_id: str = Path(...),
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> NotificationRead:
    return NotificationRead.model_validate(await NotificationService(session).mark_read(user, notification_id))


# PUBLIC_INTERFACE
@router.post(
    "/{notification_id}/replies",
    response_model=NotificationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Reply",
    description=(
        "Append a reply. Only recipients, the sender and earlier repliers may reply. "
        "The original sender is notified unless they are the one replying."
    ),
)
async def reply(
    payload: ReplyCreate,
    notification_id: str = Path(...),
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> NotificationRead:
    n = await NotificationService(session).reply(user, notification_id, payload.message, payload.image_url)
    return NotificationRead.model_validate(n)


# PUBLIC_INTERFACE
@chat_router.get(
    "/conversations",
    response_model=List[ConversationRead],
    summary="List conversations",
    description="Non-empty conversations of the caller, newest first.",
)
async def list_conversations(
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> List[ConversationRead]:
    return await NotificationService(session).conversations(user)


# PUBLIC_INTERFACE
@chat_router.get(
    "/conversations/{conversation_id}/messages",
    response_model=List[ChatMessage],
    summary="Conversation messages",
    description="Notifications and replies of the conversation in time order. Opening it marks it read.",
)
async def conversation_messages(
    conversation_id: str = Path(..., description="'all', a role name or a user id"),
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> List[ChatMessage]:
    service = NotificationService(session)
    messages = await service.conversation_messages(user, conversation_id)
    await service.mark_conversation_read(user, conversation_id)
    return messages


# PUBLIC_INTERFACE
@chat_router.post(
    "/conversations/{conversation_id}/messages",
    response_model=NotificationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Post message",
)
async def post_message(
    payload: ChatMessageCreate,
    conversation_id: str = Path(..., description="'all', a role name or a user id"),
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session),
) -> NotificationRead:
    n = await NotificationService(session).post_to_conversation(
        user, conversation_id, payload.message, payload.image_url
    )
    return NotificationRead.model_validate(n)
