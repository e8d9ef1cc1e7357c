from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Union

from fastapi import WebSocket

from .schemas import WireModel

logger = logging.getLogger(__name__)

Payload = Union[WireModel, Dict[str, Any]]


def _encode(payload: Payload) -> Dict[str, Any]:
    if isinstance(payload, WireModel):
        return payload.to_wire()
    return payload


class EventBroadcaster:
    """Deliver room events to the sockets connected to each room.

    Sockets are keyed by room name and username. Every delivery is best
    effort: a user without a live socket is skipped and a failed send is
    logged and dropped.
    """

    def __init__(self):
        self.connections: Dict[str, Dict[str, WebSocket]] = {}

    def attach(self, room_name: str, username: str, websocket: WebSocket) -> None:
        self.connections.setdefault(room_name, {})[username] = websocket

    def detach(self, room_name: str, username: str, websocket: WebSocket) -> bool:
        """Forget ``websocket``.

        Returns False when it is no longer the socket registered for the
        user, e.g. because the room was closed or the user reconnected.
        """
        sockets = self.connections.get(room_name)
        if not sockets or sockets.get(username) is not websocket:
            return False

        del sockets[username]
        if not sockets:
            del self.connections[room_name]
        return True

    def is_current(self, room_name: str, username: str, websocket: WebSocket) -> bool:
        return self.connections.get(room_name, {}).get(username) is websocket

    async def send(self, websocket: WebSocket, payload: Payload, room_name: str = "-", username: str = "-") -> None:
        try:
            await websocket.send_json(_encode(payload))
        except Exception as exc:
            # Connection may already be closed.
            logger.debug("[send-fail] room=%s user=%s reason=%r", room_name, username, exc)

    async def close(self, websocket: WebSocket, room_name: str = "-", username: str = "-", code: int = 1000) -> None:
        try:
            await websocket.close(code=code)
        except Exception as exc:
            logger.debug("[close-fail] room=%s user=%s reason=%r", room_name, username, exc)

    async def deliver_to_user(self, room_name: str, username: str, payload: Payload) -> None:
        websocket = self.connections.get(room_name, {}).get(username)
        if websocket is None:
            return
        await self.send(websocket, payload, room_name, username)

    async def deliver_to_room(self, room_name: str, payload: Payload, exclude: str | None = None) -> None:
        data = _encode(payload)
        for username, websocket in list(self.connections.get(room_name, {}).items()):
            if username == exclude:
                continue
            await self.send(websocket, data, room_name, username)

    async def deliver_each(self, room_name: str, payloads: Mapping[str, Payload]) -> None:
        """Send every user its own payload."""
        for username, payload in payloads.items():
            await self.deliver_to_user(room_name, username, payload)

    async def close_room_connections(self, room_name: str) -> None:
        # detach first so the closing sockets are not treated as user disconnects
        sockets = self.connections.pop(room_name, {})
        for username, websocket in sockets.items():
            await self.close(websocket, room_name, username)


broadcaster = EventBroadcaster()
