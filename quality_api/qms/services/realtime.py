from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Set, Tuple

from starlette.websockets import WebSocket, WebSocketState

from qms.schemas.realtime import WsEnvelope

logger = logging.getLogger(__name__)


class BroadcastManager:
    """
    Simple in-process pub-sub manager for WebSocket topics.

    Topics:
      - notifications:{user_id}  one per signed-in user; receives unread counts
    """

    def __init__(self) -> None:
        self._topics: Dict[str, Set[WebSocket]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._global_lock = asyncio.Lock()
        # user_id -> role of connected users, needed to recompute their counts
        self._identities: Dict[str, str] = {}

    def _topic_lock(self, topic: str) -> asyncio.Lock:
        if topic not in self._locks:
            self._locks[topic] = asyncio.Lock()
        return self._locks[topic]

    # PUBLIC_INTERFACE
    def user_topic(self, user_id: str) -> str:
        """Return the notifications topic name for a user."""
        return f"notifications:{user_id}"

    async def _ensure_topic(self, topic: str) -> None:
        async with self._global_lock:
            if topic not in self._topics:
                self._topics[topic] = set()

    # PUBLIC_INTERFACE
    async def connect(self, topic: str, websocket: WebSocket) -> None:
        """Add an accepted websocket to the topic subscribers."""
        await self._ensure_topic(topic)
        async with self._topic_lock(topic):
            self._topics[topic].add(websocket)
            logger.info("WebSocket connected to topic=%s; subscribers=%d", topic, len(self._topics[topic]))

    # PUBLIC_INTERFACE
    async def disconnect(self, topic: str, websocket: WebSocket) -> None:
        """Remove websocket from topic subscribers."""
        if topic not in self._topics:
            return
        async with self._topic_lock(topic):
            self._topics[topic].discard(websocket)
            logger.info("WebSocket disconnected from topic=%s; subscribers=%d", topic, len(self._topics[topic]))

    # PUBLIC_INTERFACE
    async def connect_user(self, user_id: str, role: str, websocket: WebSocket) -> str:
        """Subscribe a user's socket to their topic and remember their role."""
        self._identities[user_id] = role
        topic = self.user_topic(user_id)
        await self.connect(topic, websocket)
        return topic

    # PUBLIC_INTERFACE
    async def disconnect_user(self, user_id: str, websocket: WebSocket) -> None:
        topic = self.user_topic(user_id)
        await self.disconnect(topic, websocket)
        if not self._topics.get(topic):
            self._identities.pop(user_id, None)

    # PUBLIC_INTERFACE
    def connected_users(self) -> List[Tuple[str, str]]:
        """(user_id, role) of users with at least one open socket."""
        return [
            (uid, role)
            for uid, role in list(self._identities.items())
            if self._topics.get(self.user_topic(uid))
        ]

    # PUBLIC_INTERFACE
    async def broadcast(self, topic: str, message: dict) -> None:
        """Send a dict message to all subscribers in the topic, dropping dead sockets."""
        await self._ensure_topic(topic)
        async with self._topic_lock(topic):
            to_drop: list[WebSocket] = []
            for ws in list(self._topics[topic]):
                try:
                    if ws.application_state == WebSocketState.DISCONNECTED or ws.client_state == WebSocketState.DISCONNECTED:
                        to_drop.append(ws)
                        continue
                    await ws.send_json(message)
                except Exception:
                    logger.exception("Failed to send message to websocket; scheduling drop")
                    to_drop.append(ws)
            for ws in to_drop:
                self._topics[topic].discard(ws)

    # PUBLIC_INTERFACE
    async def publish_unread_count(self, user_id: str, count: int) -> None:
        """Push the user's unread notification count."""
        env = WsEnvelope.unread(user_id, count)
        await self.broadcast(self.user_topic(user_id), env.model_dump(mode="json"))


# Singleton instance
broadcast_manager = BroadcastManager()
