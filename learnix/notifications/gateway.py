"""WebSocket endpoint ``/ws/notifications``.

The client authenticates with the same JWT as the REST API: ``?token=`` first,
then an ``Authorization: Bearer`` header, then the encrypted session cookie.
Unauthenticated or blocked users are closed with 1008 (policy violation).
"""
import logging
from uuid import UUID

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from learnix.config import get_settings
from learnix.database import get_session_factory
from learnix.exceptions import TokenInvalidError
from learnix.notifications import service
from learnix.notifications.manager import manager, user_room
from learnix.security import (
    ACCESS_TOKEN_COOKIE,
    decode_access_token,
    token_from_authorization,
    token_from_cookie,
)
from learnix.users import service as users_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _socket_token(websocket: WebSocket) -> str | None:
    settings = get_settings()
    return (
        websocket.query_params.get("token")
        or token_from_authorization(websocket.headers.get("authorization"))
        or token_from_cookie(websocket.cookies.get(ACCESS_TOKEN_COOKIE), settings)
    )


async def _authenticate(websocket: WebSocket) -> UUID | None:
    token = _socket_token(websocket)
    if not token:
        return None
    try:
        payload = decode_access_token(token)
        user_id = UUID(payload["sub"])
    except (TokenInvalidError, ValueError, KeyError):
        return None

    async with get_session_factory()() as db:
        user = await users_service.get_user_by_id(db, user_id)
        if user is None or not user.is_active:
            return None
    return user_id


@router.websocket("/ws/notifications")
async def notifications_socket(websocket: WebSocket) -> None:
    user_id = await _authenticate(websocket)
    if user_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    room = user_room(user_id)
    manager.join(websocket, room)
    logger.info("WebSocket connected for user %s", user_id)
    try:
        async with get_session_factory()() as db:
            count = await service.get_unread_count(db, user_id)
        await websocket.send_json({"event": "unread-count", "data": {"count": count}})
        # Server-push only; incoming frames just keep the connection alive
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        manager.leave(websocket, room)
        logger.info("WebSocket disconnected for user %s", user_id)
