import asyncio
import logging
from collections import defaultdict
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, Protocol

from starlette.websockets import WebSocketDisconnect

from app.infra.realtime.events import RealtimeEvent

logger = logging.getLogger(__name__)

DEFAULT_SEND_TIMEOUT_SECONDS = 5.0


class RealtimeConnection(Protocol):
    async def send_json(self, data: Any, mode: str = "text") -> None: ...


class RoomRegistry:
    """In-process room membership and websocket fan-out.

    Membership is guarded by a single lock. Broadcasts snapshot the room under
    the lock and write outside it, so a slow socket never blocks subscribe or
    disconnect. A socket whose write fails or times out is dropped from the
    room it failed in. Recipients are written to concurrently, each under its
    own timeout, so one stalled socket delays a broadcast by at most that timeout.
    """

    def __init__(self, send_timeout_seconds: float = DEFAULT_SEND_TIMEOUT_SECONDS) -> None:
        self._room_members: dict[str, set[RealtimeConnection]] = defaultdict(set)
        self._connection_rooms: dict[RealtimeConnection, set[str]] = defaultdict(set)
        self._send_timeout_seconds = send_timeout_seconds
        self._lock = asyncio.Lock()

    def subscriber_count(self, room: str) -> int:
        members = self._room_members.get(room)
        if members is None:
            return 0
        return len(members)

    def room_count(self) -> int:
        return len(self._room_members)

    def rooms_for(self, connection: RealtimeConnection) -> set[str]:
        return set(self._connection_rooms.get(connection, set()))

    async def subscribe(self, room: str, connection: RealtimeConnection) -> None:
        async with self._lock:
            self._room_members[room].add(connection)
            self._connection_rooms[connection].add(room)

    async def unsubscribe(self, room: str, connection: RealtimeConnection) -> None:
        async with self._lock:
            self._remove_locked(room, connection)

    async def disconnect(self, connection: RealtimeConnection) -> None:
        async with self._lock:
            rooms = self._connection_rooms.pop(connection, set())
            for room in rooms:
                members = self._room_members.get(room)
                if members is None:
                    continue
                members.discard(connection)
                if not members:
                    self._room_members.pop(room, None)

    async def broadcast(
        self,
        room: str,
        event: RealtimeEvent,
        payload: Mapping[str, Any],
    ) -> int:
        async with self._lock:
            recipients = list(self._room_members.get(room, ()))

        if not recipients:
            return 0

        envelope = {
            "event": event.value,
            "channel": room,
            "payload": dict(payload),
            "sent_at": datetime.now(UTC).isoformat(),
        }

        outcomes = await asyncio.gather(
            *(self._deliver(connection, envelope) for connection in recipients)
        )
        stale = [
            connection
            for connection, delivered in zip(recipients, outcomes)
            if not delivered
        ]

        if stale:
            logger.debug("Pruning %d stale connection(s) from %s", len(stale), room)
            async with self._lock:
                for connection in stale:
                    self._remove_locked(room, connection)

        return len(recipients) - len(stale)

    async def _deliver(
        self, connection: RealtimeConnection, envelope: dict[str, Any]
    ) -> bool:
        try:
            await asyncio.wait_for(
                connection.send_json(envelope),
                timeout=self._send_timeout_seconds,
            )
        except (RuntimeError, OSError, TimeoutError, WebSocketDisconnect):
            return False
        return True

    def _remove_locked(self, room: str, connection: RealtimeConnection) -> None:
        members = self._room_members.get(room)
        if members is not None:
            members.discard(connection)
            if not members:
                self._room_members.pop(room, None)

        rooms = self._connection_rooms.get(connection)
        if rooms is not None:
            rooms.discard(room)
            if not rooms:
                self._connection_rooms.pop(connection, None)
