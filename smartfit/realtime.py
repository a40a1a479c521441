"""In-process WebSocket rooms.

Clients connect to ``/ws`` and send ``{"event": "join:queue", "data": {"queueId": 3}}``
style frames. Route handlers push to rooms through :data:`hub`.
"""

import logging
from collections import defaultdict

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder

logger = logging.getLogger(__name__)

router = APIRouter()

# client event -> (room prefix, key in the event data)
ROOM_EVENTS = {
    "queue": ("queue", "queueId"),
    "notifications": ("notifications", "userId"),
    "facility-zones": ("facility-zones", "facilityId"),
    "zone": ("zone", "zoneId"),
}


def queue_room(queue_id) -> str:
    return f"queue:{queue_id}"


def zone_room(zone_id) -> str:
    return f"zone:{zone_id}"


def facility_zones_room(facility_id) -> str:
    return f"facility-zones:{facility_id}"


def notifications_room(user_id) -> str:
    return f"notifications:{user_id}"


class RealtimeHub:
    def __init__(self):
        self._rooms: dict[str, set[WebSocket]] = defaultdict(set)

    async def join(self, websocket: WebSocket, room: str):
        self._rooms[room].add(websocket)

    async def leave(self, websocket: WebSocket, room: str):
        members = self._rooms.get(room)
        if members is not None:
            members.discard(websocket)
            if not members:
                del self._rooms[room]

    async def disconnect(self, websocket: WebSocket):
        for room in [r for r, members in self._rooms.items() if websocket in members]:
            await self.leave(websocket, room)

    def members(self, room: str) -> int:
        return len(self._rooms.get(room, ()))

    async def emit(self, room: str, event: str, data):
        targets = list(self._rooms.get(room, ()))
        if not targets:
            return
        message = {"event": event, "data": jsonable_encoder(data)}
        dead = []
        for websocket in targets:
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.warning("Dropping socket from %s after send failure: %s", room, e)
                dead.append(websocket)
        for websocket in dead:
            await self.disconnect(websocket)


hub = RealtimeHub()


def _parse(frame) -> tuple:
    if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
        return None, None
    data = frame.get("data")
    return frame["event"], data if isinstance(data, dict) else {}


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket):
    await websocket.accept()
    try:
        while True:
            try:
                frame = await websocket.receive_json()
            except ValueError:
                await websocket.send_json({"event": "error", "data": {"message": "Frames must be JSON"}})
                continue

            event, data = _parse(frame)
            if event is None:
                await websocket.send_json({"event": "error", "data": {"message": "Missing event name"}})
                continue
            if event == "ping":
                await websocket.send_json({"event": "pong", "data": {}})
                continue

            action, _, topic = event.partition(":")
            if action not in ("join", "leave") or topic not in ROOM_EVENTS:
                await websocket.send_json(
                    {"event": "error", "data": {"message": f"Unknown event: {event}"}}
                )
                continue

            prefix, key = ROOM_EVENTS[topic]
            if data.get(key) is None:
                await websocket.send_json(
                    {"event": "error", "data": {"message": f"{event} requires {key}"}}
                )
                continue

            room = f"{prefix}:{data[key]}"
            if action == "join":
                await hub.join(websocket, room)
                await websocket.send_json({"event": "joined", "data": {"room": room}})
            else:
                await hub.leave(websocket, room)
                await websocket.send_json({"event": "left", "data": {"room": room}})
    except WebSocketDisconnect:
        pass
    finally:
        await hub.disconnect(websocket)
