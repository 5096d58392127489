from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest

from qms.core.errors import NotFoundError, PermissionDeniedError, QmsError
from qms.services.notifications import (
    NotificationService,
    build_conversations,
    classify,
    conversation_id_for,
    conversation_messages,
    detect_internal_link,
    is_visible,
    unread_count,
)


def _n(**kw):
    values = {
        "id": "n1",
        "title": "Aviso",
        "message": "Hola",
        "image_url": None,
        "sender_id": "system",
        "sender_name": "Sistema",
        "recipient": "all",
        "link": None,
        "read_by": [],
        "deleted_by": [],
        "replies": [],
        "created_at": datetime(2024, 5, 21, 9, 0, tzinfo=timezone.utc),
    }
    values.update(kw)
    return SimpleNamespace(**values)


def test_visibility_by_recipient_participation_and_clearing():
    to_role = _n(recipient="Quality")
    replied = _n(recipient="someone-else", replies=[{"sender_id": "u1", "message": "ok"}])
    cleared = _n(recipient="all", deleted_by=["u1"])

    assert is_visible(to_role, "u1", "Quality")
    assert not is_visible(to_role, "u1", "Production")
    assert is_visible(replied, "u1", "Production")
    assert not is_visible(cleared, "u1", "Quality")


def test_unread_count_ignores_read_and_cleared():
    items = [_n(id="a"), _n(id="b", read_by=["u1"]), _n(id="c", deleted_by=["u1"])]
    assert unread_count(items, "u1", "Quality") == 1


def test_classify_splits_new_today_and_older():
    today = date(2024, 5, 21)
    items = [
        _n(id="new"),
        _n(id="today", read_by=["u1"]),
        _n(id="older", read_by=["u1"], created_at=datetime(2024, 5, 1, tzinfo=timezone.utc)),
    ]
    groups = classify(items, "u1", "Quality", today=today)
    assert [[n.id for n in groups[k]] for k in ("new", "today", "older")] == [["new"], ["today"], ["older"]]


def test_conversation_id_for_direct_messages():
    mine = _n(sender_id="u1", recipient="u2")
    theirs = _n(sender_id="u2", recipient="u1")
    assert conversation_id_for(mine, "u1") == "u2"
    assert conversation_id_for(theirs, "u1") == "u2"
    assert conversation_id_for(_n(recipient="Production"), "u1") == "Production"


def test_build_conversations_latest_first_with_image_placeholder():
    users = [SimpleNamespace(id="u1", name="Ana", avatar_url=None), SimpleNamespace(id="u2", name="Iván", avatar_url="a.png")]
    items = [
        _n(id="g", recipient="all", created_at=datetime(2024, 5, 20, tzinfo=timezone.utc), read_by=["u1"]),
        _n(
            id="d",
            sender_id="u2",
            sender_name="Iván",
            recipient="u1",
            created_at=datetime(2024, 5, 21, tzinfo=timezone.utc),
            replies=[{"sender_id": "u2", "message": "", "image_url": "x.png", "created_at": "2024-05-21T10:00:00+00:00"}],
        ),
    ]
    convs = build_conversations(items, users, "u1", "Administrator")

    assert [c.id for c in convs] == ["u2", "all"]
    assert convs[0].name == "Iván"
    assert convs[0].last_message == "📷 Imagen"
    assert convs[0].unread_count == 1
    assert convs[1].unread_count == 0


def test_conversation_messages_interleave_replies():
    first = _n(id="a", created_at=datetime(2024, 5, 21, 8, tzinfo=timezone.utc), replies=[
        {"sender_id": "u2", "sender_name": "Iván", "message": "tarde", "created_at": "2024-05-21T11:00:00+00:00"},
    ])
    second = _n(id="b", created_at=datetime(2024, 5, 21, 9, tzinfo=timezone.utc))
    messages = conversation_messages([first, second])
    assert [m.id for m in messages] == ["a", "b", "a-reply-0"]


@pytest.mark.parametrize(
    "message, expected",
    [
        ("Nuevo registro de luminometria", "/quality/luminometry"),
        ("Revisar básculas de piso", "/quality/scales"),
        ("El lote P202405-101 está listo", "/production/PROD-SK-100"),
        ("Mensaje sin referencia", "/dashboard/quality"),
    ],
)
def test_detect_internal_link(message, expected):
    lots = [{"lot": "P202405-101", "item": "PROD-SK-100"}]
    assert detect_internal_link(message, lots, "Quality") == expected


async def test_reply_by_outsider_is_forbidden(session, admin, quality_user, production_user):
    service = NotificationService(session)
    n = await service.send_notification(
        title="Privado", message="solo calidad", sender_id=admin.id, sender_name=admin.name, recipient=quality_user.id
    )

    with pytest.raises(PermissionDeniedError):
        await service.reply(production_user, n.id, "hola")
    with pytest.raises(QmsError):
        await service.reply(quality_user, n.id, "   ")
    with pytest.raises(NotFoundError):
        await service.reply(quality_user, "missing", "hola")


async def test_reply_notifies_original_sender(session, admin, quality_user):
    service = NotificationService(session)
    n = await service.send_notification(
        title="Revisión", message="revisar", sender_id=admin.id, sender_name=admin.name, recipient="Quality"
    )

    updated = await service.reply(quality_user, n.id, "listo")

    assert updated.replies[-1]["sender_id"] == quality_user.id
    assert quality_user.id in updated.read_by
    # the sender has not read their own message either
    assert await service.unread_count(admin) == 2
    bell = await service.bell(admin)
    answer = next(n for n in bell.new if n.title == "Re: Revisión")
    assert answer.link == f"/chat?id={admin.id}"


async def test_mark_all_read_and_clear(session, admin, quality_user):
    service = NotificationService(session)
    for title in ("uno", "dos"):
        await service.send_system_notification(title=title, message="", recipient="all")

    assert await service.mark_all_read(quality_user) == 2
    assert await service.unread_count(quality_user) == 0
    assert await service.unread_count(admin) == 2
    assert await service.clear_all(quality_user) == 2
    bell = await service.bell(quality_user)
    assert bell.new == bell.today == bell.older == []


async def test_post_to_conversation_starts_then_continues_thread(session, admin, quality_user):
    service = NotificationService(session)

    started = await service.post_to_conversation(admin, quality_user.id, "hola")
    continued = await service.post_to_conversation(quality_user, admin.id, "hola de vuelta")

    assert continued.id == started.id
    assert continued.read_by == [quality_user.id]
    messages = await service.conversation_messages(admin, quality_user.id)
    assert [m.message for m in messages] == ["hola", "hola de vuelta"]

    assert await service.mark_conversation_read(admin, quality_user.id) == 1
    convs = await service.conversations(admin)
    assert convs[0].id == quality_user.id
    assert convs[0].unread_count == 0


async def test_post_to_unknown_conversation(session, admin):
    with pytest.raises(NotFoundError):
        await NotificationService(session).post_to_conversation(admin, "nobody", "hola")
