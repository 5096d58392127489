import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from starlette.websockets import WebSocketDisconnect, WebSocketState

from qms.api.main import app
from qms.core.security import create_access_token, get_password_hash
from qms.db import session as db_session
from qms.db.base import Base
from qms.repositories.security import UserRepository
from qms.services.realtime import BroadcastManager, broadcast_manager

API = "/api/v1"


async def _create_schema(engine):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _add_user(role, is_active=True):
    async with db_session.get_session_maker()() as s:
        return await UserRepository(s).create_user(
            name=f"{role} WS",
            email=f"{role.lower()}-{is_active}@tropical.com",
            role=role,
            document_type="CC",
            document_number=f"{role}-{is_active}",
            hashed_password=get_password_hash("secret123"),
            is_active=is_active,
        )


def _token(user):
    return create_access_token(subject=user.id, role=user.role)


@pytest.fixture
def live(monkeypatch):
    """TestClient whose event loop also owns the in-memory database."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    monkeypatch.setattr(db_session, "_ENGINE", engine)
    monkeypatch.setattr(db_session, "_SESSION_MAKER", async_sessionmaker(bind=engine, expire_on_commit=False))
    with TestClient(app) as client:
        client.portal.call(_create_schema, engine)
        yield client
        client.portal.call(engine.dispose)


def test_unread_count_is_pushed_after_send(live):
    admin = live.portal.call(_add_user, "Administrator")
    quality = live.portal.call(_add_user, "Quality")

    with live.websocket_connect(f"/ws/notifications?token={_token(quality)}") as ws:
        first = ws.receive_json()
        assert first["type"] == "notifications.unread"
        assert first["payload"] == {"unreadCount": 0}
        assert first["user_id"] == quality.id
        assert (quality.id, "Quality") in broadcast_manager.connected_users()

        sent = live.post(
            f"{API}/notifications",
            json={"title": "Revisión", "message": "Revisar higiene", "recipient": "Quality"},
            headers={"Authorization": f"Bearer {_token(admin)}"},
        )
        assert sent.status_code == 201

        pushed = ws.receive_json()
        assert pushed["payload"] == {"unreadCount": 1}


def test_invalid_token_closes_with_4401(live):
    with live.websocket_connect("/ws/notifications?token=not-a-jwt") as ws:
        with pytest.raises(WebSocketDisconnect) as exc_info:
            ws.receive_json()
    assert exc_info.value.code == 4401


def test_missing_token_closes_with_4401(live):
    with live.websocket_connect("/ws/notifications") as ws:
        with pytest.raises(WebSocketDisconnect) as exc_info:
            ws.receive_json()
    assert exc_info.value.code == 4401


def test_inactive_user_closes_with_4403(live):
    blocked = live.portal.call(_add_user, "Production", False)

    with live.websocket_connect(f"/ws/notifications?token={_token(blocked)}") as ws:
        with pytest.raises(WebSocketDisconnect) as exc_info:
            ws.receive_json()
    assert exc_info.value.code == 4403


class _Socket:
    def __init__(self, state=WebSocketState.CONNECTED):
        self.application_state = state
        self.client_state = state
        self.sent = []

    async def send_json(self, message):
        self.sent.append(message)


async def test_broadcast_manager_tracks_connected_users():
    manager = BroadcastManager()
    ws = _Socket()

    topic = await manager.connect_user("u1", "Quality", ws)
    await manager.publish_unread_count("u1", 3)

    assert topic == "notifications:u1"
    assert manager.connected_users() == [("u1", "Quality")]
    assert ws.sent[0]["type"] == "notifications.unread"
    assert ws.sent[0]["payload"] == {"unreadCount": 3}

    await manager.disconnect_user("u1", ws)
    assert manager.connected_users() == []


async def test_broadcast_drops_closed_sockets():
    manager = BroadcastManager()
    closed = _Socket(WebSocketState.DISCONNECTED)
    await manager.connect_user("u1", "Production", closed)

    await manager.publish_unread_count("u1", 1)

    assert closed.sent == []
    assert manager.connected_users() == []
