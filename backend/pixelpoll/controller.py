from __future__ import annotations

import logging

from fastapi import WebSocket
from pydantic import ValidationError

from .errors import RoomError
from .events import EventBroadcaster, broadcaster
from .models import Question
from .registry import SessionRegistry, registry
from .schemas import (
    EndQuestionIn,
    EndRoomIn,
    ErrorOut,
    JoinErrorOut,
    QuestionEndedOut,
    QuestionStartedOut,
    RoomEndedOut,
    StartQuestionIn,
    SubmitAnswerIn,
    UserInfoOut,
    UserJoinedOut,
    UserLeftOut,
    client_message_adapter,
)

logger = logging.getLogger(__name__)

ROOM_ENDED_BY_CREATOR = "ended-by-creator"
ROOM_CREATOR_LEFT = "creator-left"


class RoomController:
    """Drives the room channel.

    Each handler finishes its state change before the first ``await``, so
    one event's mutation never interleaves with another's on the event loop.
    Only the delivery that follows yields.
    """

    def __init__(self, rooms: SessionRegistry, events: EventBroadcaster):
        self.rooms = rooms
        self.events = events

    async def handle_websocket(self, websocket: WebSocket, room_name: str, username: str | None) -> None:
        await websocket.accept()
        username = username or ""
        if not await self.join(websocket, room_name, username):
            return

        try:
            while True:
                frame = await websocket.receive()
                if frame["type"] == "websocket.disconnect":
                    logger.debug("Socket closed for %s in room %s (code %s)", username, room_name, frame.get("code"))
                    break
                if not self.events.is_current(room_name, username, websocket):
                    # the room closed this socket; its name may already belong to a new room
                    logger.debug("Ignoring frame on a retired socket for %s in room %s", username, room_name)
                    break
                if frame.get("text") is None:
                    logger.warning("Dropping binary frame from %s in room %s", username, room_name)
                    continue
                if not await self.handle_message(room_name, username, frame["text"]):
                    break
        except Exception:
            logger.exception("Unexpected websocket error for room %s user %s", room_name, username)
        finally:
            await self.leave(room_name, username, websocket)

    async def join(self, websocket: WebSocket, room_name: str, username: str) -> bool:
        check = self.rooms.check_admission(room_name, username)
        if not check.eligible:
            logger.info("Rejected %r from room %r: %s", username, room_name, check.reason)
            await self.events.send(websocket, JoinErrorOut(reason=check.reason or "cannot-join"), room_name, username)
            await self.events.close(websocket, room_name, username)
            return False

        joined = self.rooms.create_or_join(room_name, username)
        self.events.attach(room_name, username, websocket)
        info = UserInfoOut(
            username=username,
            is_creator=joined.is_creator,
            current_users=self.rooms.require(room_name).connected_users(),
        )
        logger.info("User %s joined room %s (creator: %s)", username, room_name, joined.is_creator)

        await self.events.send(websocket, info, room_name, username)
        await self.events.deliver_to_room(room_name, UserJoinedOut(username=username), exclude=username)
        return True

    async def handle_message(self, room_name: str, username: str, raw: str) -> bool:
        """Process one client frame. Returns False once the room has ended."""
        try:
            message = client_message_adapter.validate_json(raw)
        except ValidationError as exc:
            logger.warning("Dropping malformed message from %s in room %s: %s", username, room_name, exc)
            return True

        try:
            if isinstance(message, StartQuestionIn):
                await self.start_question(room_name, username, message.question)
            elif isinstance(message, SubmitAnswerIn):
                await self.submit_answer(room_name, username, message.option_index)
            elif isinstance(message, EndQuestionIn):
                await self.end_question(room_name, username)
            elif isinstance(message, EndRoomIn):
                await self.end_room(room_name, username)
                return False
        except RoomError as exc:
            logger.info("Rejected %s from %s in room %s: %s", message.type, username, room_name, exc)
            await self.events.deliver_to_user(room_name, username, ErrorOut(reason=exc.reason, message=str(exc)))
        return True

    async def start_question(self, room_name: str, username: str, question: Question) -> None:
        self.rooms.require(room_name).start_question(username, question)
        logger.info("Question started in room %s", room_name)
        await self.events.deliver_to_room(room_name, QuestionStartedOut(question=question))

    async def submit_answer(self, room_name: str, username: str, option_index: int) -> None:
        self.rooms.require(room_name).submit_answer(username, option_index)
        logger.info("User %s submitted answer in room %s", username, room_name)

    async def end_question(self, room_name: str, username: str) -> None:
        results = self.rooms.require(room_name).end_question(username)
        if results is None:
            await self.events.deliver_to_user(
                room_name,
                username,
                ErrorOut(reason="nothing-to-end", message="There is no open question to end"),
            )
            return

        payloads = {name: QuestionEndedOut(results=r) for name, r in results.items()}
        logger.info("Question ended in room %s", room_name)
        await self.events.deliver_each(room_name, payloads)

    async def end_room(self, room_name: str, username: str) -> None:
        final = self.rooms.end_room(room_name, username)
        logger.info("Room %s ended by creator", room_name)
        await self.events.deliver_to_room(room_name, RoomEndedOut(reason=ROOM_ENDED_BY_CREATOR, standings=final))
        await self.events.close_room_connections(room_name)

    async def leave(self, room_name: str, username: str, websocket: WebSocket) -> None:
        if not self.events.detach(room_name, username, websocket):
            return

        room = self.rooms.get(room_name)
        user = room.disconnect(username) if room else None
        if user is None:
            return

        if user.is_creator:
            final = self.rooms.end_room(room_name, username)
            logger.info("Room %s ended (creator left)", room_name)
            await self.events.deliver_to_room(room_name, RoomEndedOut(reason=ROOM_CREATOR_LEFT, standings=final))
            await self.events.close_room_connections(room_name)
        else:
            logger.info("User %s left room %s", username, room_name)
            await self.events.deliver_to_room(room_name, UserLeftOut(username=username), exclude=username)


controller = RoomController(registry, broadcaster)
