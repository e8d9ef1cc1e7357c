from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .errors import InvalidRequest, RoomNotFound
from .room import Room
from .schemas import JoinResult, RoomAvailabilityOut, RoomJoinabilityOut, Standing

logger = logging.getLogger(__name__)


def _is_blank(value: Optional[str]) -> bool:
    return not value or not value.strip()


class SessionRegistry:
    """Every live room, keyed by name. Rooms are looked up by name on each
    event rather than held onto, so a removed room is gone for good."""

    def __init__(self):
        self.rooms: Dict[str, Room] = {}

    def get(self, name: str) -> Room | None:
        return self.rooms.get(name)

    def require(self, name: str) -> Room:
        room = self.rooms.get(name)
        if room is None:
            raise RoomNotFound(f"Room {name!r} does not exist")
        return room

    def check_name_available(self, name: str) -> RoomAvailabilityOut:
        if _is_blank(name):
            return RoomAvailabilityOut(available=False, reason="empty")
        if name in self.rooms:
            return RoomAvailabilityOut(available=False, reason="taken")
        return RoomAvailabilityOut(available=True)

    def check_join_eligible(self, name: str, username: str) -> RoomJoinabilityOut:
        if _is_blank(username):
            return RoomJoinabilityOut(eligible=False, reason="empty")

        room = self.rooms.get(name)
        if room is None:
            return RoomJoinabilityOut(eligible=False, reason="no-room")

        existing = room.users.get(username)
        if existing is not None and existing.connected:
            return RoomJoinabilityOut(eligible=False, reason="name-in-use")
        return RoomJoinabilityOut(eligible=True)

    def check_admission(self, name: str, username: str) -> RoomJoinabilityOut:
        """Check run by the room socket: a missing room may be created."""
        if name in self.rooms:
            return self.check_join_eligible(name, username)
        if _is_blank(name) or _is_blank(username):
            return RoomJoinabilityOut(eligible=False, reason="empty")
        return RoomJoinabilityOut(eligible=True)

    def create_or_join(self, name: str, username: str) -> JoinResult:
        if _is_blank(name) or _is_blank(username):
            raise InvalidRequest("Room name and username are required", reason="empty")

        room = self.rooms.get(name)
        if room is None:
            room = Room(name=name)
            self.rooms[name] = room
            logger.info("Room %s created by %s", name, username)

        user = room.join(username)
        return JoinResult(is_creator=user.is_creator)

    def remove(self, name: str) -> Room | None:
        return self.rooms.pop(name, None)

    def end_room(self, name: str, username: str) -> List[Standing]:
        """Final standings of a room ended by its creator; the room is deleted."""
        room = self.require(name)
        final = room.finish(username)
        self.remove(name)
        return final


registry = SessionRegistry()
