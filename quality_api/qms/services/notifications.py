from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from qms.core import roles
from qms.core.errors import NotFoundError, PermissionDeniedError, QmsError
from qms.db.models.notifications import Notification
from qms.db.models.security import User
from qms.repositories.notifications import NotificationRepository
from qms.repositories.security import UserRepository
from qms.schemas.notifications import (
    BellView,
    ChatMessage,
    ConversationRead,
    NotificationRead,
)
from qms.services.base import BaseService
from qms.services.realtime import broadcast_manager

logger = logging.getLogger(__name__)

ROLE_CONVERSATION_NAMES: Dict[str, str] = {
    roles.ADMINISTRATOR: "Administradores",
    roles.QUALITY: "Calidad",
    roles.PRODUCTION: "Producción",
}
GENERAL_CONVERSATION_NAME = "General"
IMAGE_PLACEHOLDER = "📷 Imagen"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


# Visibility rules. They take anything exposing the Notification attributes.

# PUBLIC_INTERFACE
def is_recipient(n: Notification, user_id: str, role: str) -> bool:
    """Addressed to everyone, to the user's role or to the user."""
    return n.recipient in (roles.EVERYONE, role, user_id)


# PUBLIC_INTERFACE
def is_participant(n: Notification, user_id: str) -> bool:
    """The user sent the notification or replied to it."""
    return n.sender_id == user_id or any(r.get("sender_id") == user_id for r in (n.replies or []))


# PUBLIC_INTERFACE
def in_user_feed(n: Notification, user_id: str, role: str) -> bool:
    """Part of the user's chat/notification feed (deleted ones included)."""
    return is_recipient(n, user_id, role) or is_participant(n, user_id)


# PUBLIC_INTERFACE
def is_visible(n: Notification, user_id: str, role: str) -> bool:
    """Shown in the user's bell: in the feed and not cleared by the user."""
    return in_user_feed(n, user_id, role) and user_id not in (n.deleted_by or [])


# PUBLIC_INTERFACE
def is_unread(n: Notification, user_id: str) -> bool:
    return user_id not in (n.read_by or [])


# PUBLIC_INTERFACE
def can_reply(n: Notification, user_id: str, role: str) -> bool:
    return in_user_feed(n, user_id, role)


# PUBLIC_INTERFACE
def unread_count(notifications: Iterable[Notification], user_id: str, role: str) -> int:
    """Visible notifications the user has not read yet."""
    return sum(1 for n in notifications if is_visible(n, user_id, role) and is_unread(n, user_id))


# PUBLIC_INTERFACE
def classify(
    notifications: Iterable[Notification], user_id: str, role: str, today: Optional[date] = None
) -> Dict[str, List[Notification]]:
    """
    Split the visible notifications into new (unread), today (read, created
    today) and older (read, created before today).
    """
    today = today or datetime.now(timezone.utc).date()
    groups: Dict[str, List[Notification]] = {"new": [], "today": [], "older": []}
    for n in notifications:
        if not is_visible(n, user_id, role):
            continue
        if is_unread(n, user_id):
            groups["new"].append(n)
        elif n.created_at and n.created_at.date() == today:
            groups["today"].append(n)
        else:
            groups["older"].append(n)
    return groups


def _parse_ts(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        ts = value
    else:
        try:
            ts = datetime.fromisoformat(str(value))
        except ValueError:
            return None
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def _by_created(n: Notification) -> datetime:
    return n.created_at or _EPOCH


# PUBLIC_INTERFACE
def conversation_id_for(n: Notification, user_id: str) -> str:
    """The conversation a notification belongs to from the user's point of view."""
    if n.recipient == roles.EVERYONE:
        return roles.EVERYONE
    if n.recipient in ROLE_CONVERSATION_NAMES:
        return n.recipient
    return n.recipient if n.sender_id == user_id else n.sender_id


# PUBLIC_INTERFACE
def build_conversations(
    notifications: Sequence[Notification], users: Sequence[User], user_id: str, role: str
) -> List[ConversationRead]:
    """
    Group the user's feed into conversations.

    There is one conversation for everyone, one per role and one per other user.
    Only conversations with messages are returned, most recent activity first.
    """
    convs: Dict[str, Dict[str, Any]] = {
        roles.EVERYONE: {"id": roles.EVERYONE, "type": "all", "name": GENERAL_CONVERSATION_NAME, "avatar_url": ""},
    }
    for role_name, label in ROLE_CONVERSATION_NAMES.items():
        convs[role_name] = {"id": role_name, "type": "role", "name": label, "avatar_url": None}
    for u in users:
        if u.id != user_id:
            convs[u.id] = {"id": u.id, "type": "user", "name": u.name, "avatar_url": u.avatar_url}

    members: Dict[str, List[Notification]] = {}
    for n in notifications:
        if not in_user_feed(n, user_id, role):
            continue
        cid = conversation_id_for(n, user_id)
        if cid in convs:
            members.setdefault(cid, []).append(n)

    result: List[ConversationRead] = []
    for cid, items in members.items():
        items.sort(key=_by_created)
        last = items[-1]
        replies = sorted(last.replies or [], key=lambda r: _parse_ts(r.get("created_at")) or _EPOCH)
        if replies:
            latest = replies[-1]
            text = IMAGE_PLACEHOLDER if latest.get("image_url") else latest.get("message", "")
            at = _parse_ts(latest.get("created_at"))
        else:
            text = IMAGE_PLACEHOLDER if last.image_url else last.message
            at = last.created_at
        result.append(
            ConversationRead(
                **convs[cid],
                last_message=text,
                last_message_at=at,
                unread_count=sum(1 for n in items if is_unread(n, user_id)),
            )
        )
    result.sort(key=lambda c: c.last_message_at or _EPOCH, reverse=True)
    return result


# PUBLIC_INTERFACE
def conversation_messages(notifications: Sequence[Notification]) -> List[ChatMessage]:
    """Flatten notifications and their replies into one chronological timeline."""
    messages: List[ChatMessage] = []
    for n in notifications:
        messages.append(
            ChatMessage(
                id=n.id,
                message=n.message,
                image_url=n.image_url,
                sender_id=n.sender_id,
                sender_name=n.sender_name,
                created_at=n.created_at,
                link=n.link,
            )
        )
        for i, r in enumerate(n.replies or []):
            messages.append(
                ChatMessage(
                    id=f"{n.id}-reply-{i}",
                    message=r.get("message", ""),
                    image_url=r.get("image_url"),
                    sender_id=r.get("sender_id", ""),
                    sender_name=r.get("sender_name", ""),
                    created_at=_parse_ts(r.get("created_at")),
                )
            )
    messages.sort(key=lambda m: m.created_at or _EPOCH)
    return messages


# Keyword -> route, checked in order against the lower-cased message.
_LINK_KEYWORDS: List[tuple[str, str]] = [
    ("luminometria", "/quality/luminometry"),
    ("sensorial", "/quality/sensory"),
    ("inspeccion de area", "/quality/area-inspection"),
    ("en proceso", "/quality/in-process"),
    ("producto terminado", "/quality/finished-product"),
    ("dotacion", "/pcc/endowment"),
    ("pcc", "/pcc/inspection"),
    ("basculas", "/quality/scales"),
    ("básculas", "/quality/scales"),
    ("utensilios", "/pcc/utensils"),
    ("higiene", "/hygiene"),
    ("usuarios", "/users"),
    ("produccion", "/production"),
    ("producción", "/production"),
    ("calidad", "/quality"),
    ("reportes", "/reports"),
    ("formulaciones", "/formulations"),
]


# PUBLIC_INTERFACE
def detect_internal_link(
    message: str, lots: Iterable[Mapping[str, Any]], recipient_role: Optional[str] = None
) -> str:
    """
    Guess the in-app route an activity message refers to.

    Module keywords win; then a mentioned lot or item links to that item's
    production page; otherwise the role's dashboard.
    """
    lower = (message or "").lower()
    for keyword, route in _LINK_KEYWORDS:
        if keyword in lower:
            return route
    for lot in lots:
        lot_code = str(lot.get("lot") or "").lower()
        item = str(lot.get("item") or "")
        if (lot_code and lot_code in lower) or (item and item.lower() in lower):
            if item:
                return f"/production/{item}"
            break
    return roles.dashboard_path(recipient_role or roles.ADMINISTRATOR)


def _reply(user: User, message: str, image_url: Optional[str]) -> Dict[str, Any]:
    reply: Dict[str, Any] = {
        "message": message,
        "sender_id": user.id,
        "sender_name": user.name,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    if image_url:
        reply["image_url"] = image_url
    return reply


class NotificationService(BaseService):
    """
    Sending, reading and replying to notifications, plus the chat view over them.

    Every change pushes fresh unread counts to connected websocket clients.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = NotificationRepository(session)
        self.users = UserRepository(session)

    # PUBLIC_INTERFACE
    async def send_notification(
        self,
        *,
        title: str,
        message: str,
        sender_id: str,
        sender_name: str,
        recipient: str,
        link: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> Notification:
        """Create a notification with empty read/deleted/reply lists. Empty links are dropped."""
        created = await self.repo.create(
            title=title,
            message=message,
            sender_id=sender_id,
            sender_name=sender_name,
            recipient=recipient,
            link=link or None,
            image_url=image_url or None,
        )
        logger.info("Notification %s sent to %s: %s", created.id, recipient, title)
        await self.publish_unread_counts()
        return created

    # PUBLIC_INTERFACE
    async def send_system_notification(
        self, *, title: str, message: str, recipient: str, link: Optional[str] = None
    ) -> Notification:
        """Send a notification authored by the system."""
        return await self.send_notification(
            title=title,
            message=message,
            sender_id=roles.SYSTEM_SENDER_ID,
            sender_name=roles.SYSTEM_SENDER_NAME,
            recipient=recipient,
            link=link,
        )

    # PUBLIC_INTERFACE
    async def notify_safely(self, **kwargs: Any) -> Optional[Notification]:
        """send_notification for side effects of another action; failures are logged, not raised."""
        try:
            return await self.send_notification(**kwargs)
        except Exception:
            logger.exception("Failed to send notification '%s'", kwargs.get("title"))
            await self.session.rollback()
            return None

    # PUBLIC_INTERFACE
    async def bell(self, user: User, today: Optional[date] = None) -> BellView:
        notifications = await self.repo.list_all()
        groups = classify(notifications, user.id, user.role, today=today)
        return BellView(
            new=[NotificationRead.model_validate(n) for n in groups["new"]],
            today=[NotificationRead.model_validate(n) for n in groups["today"]],
            older=[NotificationRead.model_validate(n) for n in groups["older"]],
            unread_count=len(groups["new"]),
        )

    # PUBLIC_INTERFACE
    async def unread_count(self, user: User) -> int:
        return unread_count(await self.repo.list_all(), user.id, user.role)

    # PUBLIC_INTERFACE
    async def mark_all_read(self, user: User) -> int:
        """Mark every visible unread notification as read (opening the bell)."""
        notifications = await self.repo.list_all()
        pending = [n for n in notifications if is_visible(n, user.id, user.role) and is_unread(n, user.id)]
        changed = await self.repo.mark_read(pending, user.id)
        if changed:
            await self.publish_unread_counts()
        return changed

    # PUBLIC_INTERFACE
    async def mark_read(self, user: User, notification_id: str) -> Notification:
        n = await self._get_in_feed(user, notification_id)
        if await self.repo.mark_read([n], user.id):
            await self.publish_unread_counts()
        return n

    # PUBLIC_INTERFACE
    async def clear_all(self, user: User) -> int:
        """Hide every visible notification from the user's bell."""
        notifications = await self.repo.list_all()
        visible = [n for n in notifications if is_visible(n, user.id, user.role)]
        changed = await self.repo.mark_deleted(visible, user.id)
        if changed:
            await self.publish_unread_counts()
        return changed

    # PUBLIC_INTERFACE
    async def reply(self, user: User, notification_id: str, message: str, image_url: Optional[str] = None) -> Notification:
        """
        Append a reply to a notification thread.

        Replying to someone else's notification also notifies its sender.
        """
        if not (message or "").strip() and not image_url:
            raise QmsError("A reply needs a message or an image")
        n = await self.repo.get(notification_id)
        if n is None:
            raise NotFoundError("Notification not found")
        if not can_reply(n, user.id, user.role):
            raise PermissionDeniedError("You cannot reply to this notification")

        await self.repo.append_reply(n, _reply(user, message, image_url))
        if user.id != n.sender_id:
            await self.send_notification(
                title=f"Re: {n.title}",
                message=f"Hay una nueva respuesta de {user.name}.",
                sender_id=user.id,
                sender_name=user.name,
                recipient=n.sender_id,
                link=f"/chat?id={n.sender_id}",
            )
        else:
            await self.publish_unread_counts()
        return n

    # PUBLIC_INTERFACE
    async def conversations(self, user: User) -> List[ConversationRead]:
        notifications = await self.repo.list_all()
        users = await self.users.list_users()
        return build_conversations(notifications, users, user.id, user.role)

    async def _conversation_notifications(self, user: User, conversation_id: str) -> List[Notification]:
        notifications = await self.repo.list_all()
        items = [
            n
            for n in notifications
            if in_user_feed(n, user.id, user.role) and conversation_id_for(n, user.id) == conversation_id
        ]
        items.sort(key=_by_created)
        return items

    # PUBLIC_INTERFACE
    async def conversation_messages(self, user: User, conversation_id: str) -> List[ChatMessage]:
        return conversation_messages(await self._conversation_notifications(user, conversation_id))

    # PUBLIC_INTERFACE
    async def mark_conversation_read(self, user: User, conversation_id: str) -> int:
        items = await self._conversation_notifications(user, conversation_id)
        changed = await self.repo.mark_read(items, user.id)
        if changed:
            await self.publish_unread_counts()
        return changed

    # PUBLIC_INTERFACE
    async def post_to_conversation(
        self, user: User, conversation_id: str, message: str, image_url: Optional[str] = None
    ) -> Notification:
        """
        Write into a conversation.

        An existing conversation continues as a reply on its latest notification
        and becomes unread for everyone but the author. An empty one starts with
        a new notification addressed to the conversation id.
        """
        if not (message or "").strip() and not image_url:
            raise QmsError("A message needs text or an image")
        if conversation_id not in (roles.EVERYONE, *ROLE_CONVERSATION_NAMES) and not await self.users.get_user_by_id(
            conversation_id
        ):
            raise NotFoundError("Conversation not found")

        items = await self._conversation_notifications(user, conversation_id)
        if items:
            latest = items[-1]
            await self.repo.append_reply(latest, _reply(user, message, image_url), reset_read=True)
            await self.publish_unread_counts()
            return latest
        return await self.send_notification(
            title=f"Mensaje de {user.name}",
            message=message,
            sender_id=user.id,
            sender_name=user.name,
            recipient=conversation_id,
            image_url=image_url,
        )

    # PUBLIC_INTERFACE
    async def publish_unread_counts(self) -> None:
        """Recompute and push unread counts to every connected user; never raises."""
        connected = broadcast_manager.connected_users()
        if not connected:
            return
        try:
            notifications = await self.repo.list_all()
            for uid, role in connected:
                await broadcast_manager.publish_unread_count(uid, unread_count(notifications, uid, role))
        except Exception:
            logger.exception("Failed to publish unread counts")

    async def _get_in_feed(self, user: User, notification_id: str) -> Notification:
        n = await self.repo.get(notification_id)
        if n is None or not in_user_feed(n, user.id, user.role):
            raise NotFoundError("Notification not found")
        return n
