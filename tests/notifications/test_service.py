import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.database import commit
from learnix.models import NotificationLevel, NotificationType
from learnix.notifications import service
from learnix.notifications.manager import ConnectionManager, user_room

API = "/api/v1/notifications"


class FakeSocket:
    def __init__(self) -> None:
        self.sent: list[dict] = []

    async def send_json(self, message: dict) -> None:
        self.sent.append(message)


async def _notify(db: AsyncSession, user, title: str = "Hello", **kwargs):
    note = await service.create_notification(
        db, user.id, title, f"{title} message",
        notification_type=NotificationType.ENROLLMENT,
        **kwargs,
    )
    await commit(db)
    return note


@pytest.mark.asyncio
async def test_create_pushes_notification_and_count(db: AsyncSession, student) -> None:
    connections = ConnectionManager()
    socket = FakeSocket()
    connections.join(socket, user_room(student.id))

    note = await _notify(
        db, student,
        level=NotificationLevel.SUCCESS,
        extra={"course_id": "c1"},
        link="/courses/c1",
        connections=connections,
    )
    assert note.is_read is False

    event, count = socket.sent
    assert event["event"] == "notification"
    assert event["data"]["id"] == str(note.id)
    assert event["data"]["type"] == "success"
    assert event["data"]["metadata"] == {"course_id": "c1"}
    assert count == {"event": "unread-count", "data": {"count": 1}}


@pytest.mark.asyncio
async def test_push_failure_does_not_fail_caller(db: AsyncSession, student) -> None:
    class Broken(ConnectionManager):
        async def emit_to_user(self, user_id, event, data):
            raise RuntimeError("boom")

    note = await _notify(db, student, connections=Broken())
    assert note.id is not None


@pytest.mark.asyncio
async def test_push_waits_for_commit_and_is_dropped_on_rollback(db: AsyncSession, student) -> None:
    student_id = student.id
    connections = ConnectionManager()
    socket = FakeSocket()
    connections.join(socket, user_room(student_id))

    await service.create_notification(
        db, student_id, "Rolled back", "never stored",
        notification_type=NotificationType.ENROLLMENT,
        connections=connections,
    )
    assert socket.sent == []
    await db.rollback()
    await commit(db)
    assert socket.sent == []

    await service.create_notification(
        db, student_id, "Kept", "stored",
        notification_type=NotificationType.ENROLLMENT,
        connections=connections,
    )
    assert socket.sent == []
    await commit(db)
    assert [m["event"] for m in socket.sent] == ["notification", "unread-count"]
    assert socket.sent[0]["data"]["title"] == "Kept"
    assert socket.sent[1]["data"] == {"count": 1}


def test_quiz_result_emoji() -> None:
    assert service.quiz_result_emoji(95) == "🌟"
    assert service.quiz_result_emoji(60) == "👍"
    assert service.quiz_result_emoji(10) == "📝"


@pytest.mark.asyncio
async def test_list_and_mark_read(
    client: AsyncClient, db: AsyncSession, student, headers
) -> None:
    first = await _notify(db, student, "First")
    await _notify(db, student, "Second")

    listing = await client.get(API, headers=headers(student))
    assert listing.status_code == 200
    body = listing.json()
    assert body["meta"]["total"] == 2
    assert body["unread_count"] == 2
    assert {item["title"] for item in body["items"]} == {"First", "Second"}

    read = await client.patch(f"{API}/{first.id}/read", headers=headers(student))
    assert read.status_code == 200
    assert read.json()["is_read"] is True

    count = await client.get(f"{API}/unread-count", headers=headers(student))
    assert count.json() == {"count": 1}

    all_read = await client.patch(f"{API}/read-all", headers=headers(student))
    assert all_read.json() == {"success": True}
    count = await client.get(f"{API}/unread-count", headers=headers(student))
    assert count.json() == {"count": 0}


@pytest.mark.asyncio
async def test_cannot_read_other_users_notification(
    client: AsyncClient, db: AsyncSession, student, instructor, headers
) -> None:
    note = await _notify(db, student)
    resp = await client.patch(f"{API}/{note.id}/read", headers=headers(instructor))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_notifications_require_login(client: AsyncClient) -> None:
    assert (await client.get(API)).status_code == 401
