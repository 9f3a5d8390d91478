"""
Realtime Rooms
==============

In-process WebSocket fan-out keyed by room name.

Clients connect to ``/ws`` and send JSON frames:

    {"action": "join_room", "room": "ticket_<id>"}
    {"action": "leave_room", "room": "ticket_<id>"}

Events published to a room are delivered only to sockets that joined it.
Joining a room is not access-controlled.
"""

import asyncio
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, DefaultDict, Set

from fastapi.encoders import jsonable_encoder
from fastapi.websockets import WebSocket, WebSocketDisconnect

from zordon_hub.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class Broadcaster(ABC):
    """Capability to publish an event to every subscriber of a channel."""

    @abstractmethod
    async def publish(self, channel: str, event: str, payload: Any) -> None:
        """Deliver ``{"event", "data"}`` to the channel. Must not raise."""


class NullBroadcaster(Broadcaster):
    """Drops every event; used when realtime delivery is disabled."""

    async def publish(self, channel: str, event: str, payload: Any) -> None:
        logger.debug("Realtime disabled, dropping event", extra={"channel": channel, "event": event})


class RoomHub(Broadcaster):
    """
    Tracks WebSocket subscriptions per room and fans events out to them.

    A socket that fails on send is treated as disconnected and removed from
    every room; the publishing caller never sees the failure.
    """

    def __init__(self):
        self._rooms: DefaultDict[str, Set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def join(self, room: str, ws: WebSocket) -> None:
        async with self._lock:
            self._rooms[room].add(ws)
        logger.info("Client joined room", extra={"room": room})

    async def leave(self, room: str, ws: WebSocket) -> None:
        async with self._lock:
            members = self._rooms.get(room)
            if members is not None:
                members.discard(ws)
                if not members:
                    del self._rooms[room]

    async def disconnect(self, ws: WebSocket) -> None:
        """Remove a socket from all rooms."""
        async with self._lock:
            for room in list(self._rooms):
                self._rooms[room].discard(ws)
                if not self._rooms[room]:
                    del self._rooms[room]

    def subscribers(self, room: str) -> int:
        return len(self._rooms.get(room, ()))

    async def publish(self, channel: str, event: str, payload: Any) -> None:
        async with self._lock:
            targets = list(self._rooms.get(channel, ()))

        if not targets:
            return

        message = {"event": event, "data": jsonable_encoder(payload)}
        dead = []
        for ws in targets:
            try:
                await ws.send_json(message)
            except Exception as e:
                logger.warning(
                    "Dropping unreachable subscriber",
                    extra={"channel": channel, "event": event, "error": str(e)}
                )
                dead.append(ws)

        for ws in dead:
            await self.disconnect(ws)

    async def serve(self, ws: WebSocket) -> None:
        """Run the receive loop for one client until it disconnects."""
        await ws.accept()
        try:
            while True:
                try:
                    frame = await ws.receive_json()
                except ValueError:
                    logger.debug("Ignoring non-JSON frame")
                    continue
                if not isinstance(frame, dict):
                    continue
                action = frame.get("action")
                room = frame.get("room")
                if not isinstance(room, str) or not room:
                    continue
                if action == "join_room":
                    await self.join(room, ws)
                    await ws.send_json({"event": "joined", "data": {"room": room}})
                elif action == "leave_room":
                    await self.leave(room, ws)
        except WebSocketDisconnect:
            pass
        finally:
            await self.disconnect(ws)
