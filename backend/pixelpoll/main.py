from typing import Optional

from fastapi import FastAPI, HTTPException, Query, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from .config import settings
from .controller import controller
from .registry import registry
from .schemas import RoomAvailabilityOut, RoomJoinabilityOut
from .utils import configure_logging

configure_logging(settings.LOG_LEVEL)

app = FastAPI(title="Pixel Poll API")

origins = settings.cors_origins
origin_regex = settings.CORS_ORIGIN_REGEX or None

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_origin_regex=origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", response_class=PlainTextResponse)
async def root():
    return "Pixel Poll Backend API"


@app.get("/room-availability", response_model=RoomAvailabilityOut, response_model_exclude_none=True)
async def room_availability(room_name: Optional[str] = Query(default=None, alias="room-name")):
    if room_name is None:
        raise HTTPException(status_code=400, detail="room-name is required")
    return registry.check_name_available(room_name)


@app.get("/room-joinability", response_model=RoomJoinabilityOut, response_model_exclude_none=True)
async def room_joinability(
    room_name: Optional[str] = Query(default=None, alias="room-name"),
    username: Optional[str] = None,
):
    if room_name is None or username is None:
        raise HTTPException(status_code=400, detail="room-name and username are required")
    return registry.check_join_eligible(room_name, username)


@app.websocket("/ws/room/{room_name}")
async def room_socket(websocket: WebSocket, room_name: str, username: Optional[str] = None):
    await controller.handle_websocket(websocket, room_name, username)
