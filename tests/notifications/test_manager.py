import pytest
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient

from learnix.main import app
from learnix.notifications.manager import ConnectionManager, user_room


class FakeSocket:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[dict] = []

    async def send_json(self, message: dict) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(message)


def test_user_room_name() -> None:
    assert user_room("abc") == "user:abc"


def test_join_and_leave() -> None:
    manager = ConnectionManager()
    first, second = FakeSocket(), FakeSocket()
    manager.join(first, "user:1")
    manager.join(second, "user:1")
    assert manager.connection_count("user:1") == 2

    manager.leave(first, "user:1")
    assert manager.connection_count("user:1") == 1
    manager.leave(second, "user:1")
    assert "user:1" not in manager.rooms
    # Leaving an unknown room is harmless
    manager.leave(second, "user:2")


@pytest.mark.asyncio
async def test_broadcast_drops_broken_sockets() -> None:
    manager = ConnectionManager()
    healthy, broken = FakeSocket(), FakeSocket(fail=True)
    manager.join(healthy, "user:1")
    manager.join(broken, "user:1")

    delivered = await manager.broadcast("user:1", {"event": "ping"})
    assert delivered == 1
    assert healthy.sent == [{"event": "ping"}]
    assert manager.connection_count("user:1") == 1


@pytest.mark.asyncio
async def test_emit_to_offline_user() -> None:
    assert await ConnectionManager().emit_to_user("nobody", "notification", {}) == 0


@pytest.mark.asyncio
async def test_emit_wraps_event_and_data() -> None:
    manager = ConnectionManager()
    socket = FakeSocket()
    manager.join(socket, user_room("42"))
    await manager.emit_to_user("42", "unread-count", {"count": 3})
    assert socket.sent == [{"event": "unread-count", "data": {"count": 3}}]


@pytest.mark.parametrize("path", ["/ws/notifications", "/ws/notifications?token=not-a-jwt"])
def test_socket_rejects_unauthenticated(path: str) -> None:
    client = TestClient(app)
    with pytest.raises(WebSocketDisconnect) as info:
        with client.websocket_connect(path) as ws:
            ws.receive_json()
    assert info.value.code == 1008
