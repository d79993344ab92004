"""In-process WebSocket rooms for notification push.

One room per user (``user:<id>``); a user may hold several sockets (tabs).
Delivery is best effort: nothing is queued for offline users and a socket that
fails a send is dropped from its room.
"""
import logging
from typing import Any
from uuid import UUID

from fastapi import WebSocket

logger = logging.getLogger(__name__)


def user_room(user_id: UUID | str) -> str:
    return f"user:{user_id}"


class ConnectionManager:
    def __init__(self) -> None:
        self.rooms: dict[str, list[WebSocket]] = {}

    def join(self, websocket: WebSocket, room: str) -> None:
        self.rooms.setdefault(room, []).append(websocket)

    def leave(self, websocket: WebSocket, room: str) -> None:
        sockets = self.rooms.get(room)
        if not sockets:
            return
        if websocket in sockets:
            sockets.remove(websocket)
        # Drop empty rooms so the map only holds online users
        if not sockets:
            del self.rooms[room]

    def connection_count(self, room: str) -> int:
        return len(self.rooms.get(room, []))

    async def broadcast(self, room: str, message: dict[str, Any]) -> int:
        """Send *message* to every socket in *room*; returns how many sends succeeded."""
        delivered = 0
        # Copy: leave() mutates the list while we iterate
        for connection in list(self.rooms.get(room, [])):
            try:
                await connection.send_json(message)
                delivered += 1
            except Exception as exc:
                logger.error("WebSocket send to %s failed: %s", room, exc)
                self.leave(connection, room)
        return delivered

    async def emit_to_user(self, user_id: UUID | str, event: str, data: Any) -> int:
        return await self.broadcast(user_room(user_id), {"event": event, "data": data})


manager = ConnectionManager()
