import asyncio
import time
from typing import Any

import pytest
from starlette.websockets import WebSocketDisconnect

from app.infra.realtime.events import RealtimeEvent
from app.infra.realtime.hub import RoomRegistry


class FakeWebSocket:
    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []

    async def send_json(self, data: Any, mode: str = "text") -> None:
        self.sent.append(data)


class ClosedWebSocket:
    def __init__(self, error: Exception) -> None:
        self.error = error

    async def send_json(self, data: Any, mode: str = "text") -> None:
        raise self.error


class StalledWebSocket:
    async def send_json(self, data: Any, mode: str = "text") -> None:
        await asyncio.sleep(10)


@pytest.mark.asyncio
async def test_subscribe_is_idempotent() -> None:
    registry = RoomRegistry()
    websocket = FakeWebSocket()

    await registry.subscribe("conversation:1", websocket)
    await registry.subscribe("conversation:1", websocket)

    assert registry.subscriber_count("conversation:1") == 1
    delivered = await registry.broadcast(
        "conversation:1", RealtimeEvent.MESSAGE_RECEIVED, {"content": "hi"}
    )
    assert delivered == 1
    assert len(websocket.sent) == 1


@pytest.mark.asyncio
async def test_broadcast_envelope_shape() -> None:
    registry = RoomRegistry()
    websocket = FakeWebSocket()
    await registry.subscribe("conversation:1", websocket)

    await registry.broadcast("conversation:1", RealtimeEvent.MESSAGE_RECEIVED, {"content": "hi"})

    envelope = websocket.sent[0]
    assert envelope["event"] == "message.received"
    assert envelope["channel"] == "conversation:1"
    assert envelope["payload"] == {"content": "hi"}
    assert "sent_at" in envelope


@pytest.mark.asyncio
async def test_broadcast_to_empty_room_returns_zero() -> None:
    registry = RoomRegistry()

    delivered = await registry.broadcast(
        "conversation:missing", RealtimeEvent.MESSAGE_RECEIVED, {}
    )

    assert delivered == 0
    assert registry.room_count() == 0


@pytest.mark.asyncio
async def test_rooms_are_isolated() -> None:
    registry = RoomRegistry()
    first, second = FakeWebSocket(), FakeWebSocket()
    await registry.subscribe("conversation:1", first)
    await registry.subscribe("conversation:2", second)

    await registry.broadcast("conversation:1", RealtimeEvent.MESSAGE_RECEIVED, {"n": 1})

    assert len(first.sent) == 1
    assert second.sent == []


@pytest.mark.asyncio
async def test_unsubscribe_and_disconnect_drop_memberships() -> None:
    registry = RoomRegistry()
    websocket = FakeWebSocket()
    await registry.subscribe("conversation:1", websocket)
    await registry.subscribe("conversation:2", websocket)

    await registry.unsubscribe("conversation:1", websocket)
    assert registry.rooms_for(websocket) == {"conversation:2"}
    assert registry.subscriber_count("conversation:1") == 0

    await registry.disconnect(websocket)
    assert registry.rooms_for(websocket) == set()
    assert registry.room_count() == 0

    # Repeating either call on an unknown connection is a no-op.
    await registry.unsubscribe("conversation:2", websocket)
    await registry.disconnect(websocket)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [RuntimeError("closed"), WebSocketDisconnect(code=1006), ConnectionResetError()],
)
async def test_failed_socket_is_pruned_and_others_still_receive(error: Exception) -> None:
    registry = RoomRegistry()
    healthy = FakeWebSocket()
    broken = ClosedWebSocket(error)
    await registry.subscribe("conversation:1", healthy)
    await registry.subscribe("conversation:1", broken)

    delivered = await registry.broadcast(
        "conversation:1", RealtimeEvent.MESSAGE_RECEIVED, {"n": 1}
    )

    assert delivered == 1
    assert len(healthy.sent) == 1
    assert registry.subscriber_count("conversation:1") == 1
    assert registry.rooms_for(broken) == set()


@pytest.mark.asyncio
async def test_stalled_socket_times_out_and_is_pruned() -> None:
    registry = RoomRegistry(send_timeout_seconds=0.05)
    healthy = FakeWebSocket()
    stalled = StalledWebSocket()
    await registry.subscribe("conversation:1", stalled)
    await registry.subscribe("conversation:1", healthy)

    delivered = await registry.broadcast(
        "conversation:1", RealtimeEvent.MESSAGE_RECEIVED, {"n": 1}
    )

    assert delivered == 1
    assert registry.subscriber_count("conversation:1") == 1


@pytest.mark.asyncio
async def test_stalled_sockets_time_out_concurrently() -> None:
    registry = RoomRegistry(send_timeout_seconds=0.2)
    healthy = FakeWebSocket()
    first_stalled, second_stalled = StalledWebSocket(), StalledWebSocket()
    for connection in (first_stalled, healthy, second_stalled):
        await registry.subscribe("conversation:1", connection)

    started = time.monotonic()
    delivered = await registry.broadcast(
        "conversation:1", RealtimeEvent.MESSAGE_RECEIVED, {"n": 1}
    )
    elapsed = time.monotonic() - started

    assert delivered == 1
    assert len(healthy.sent) == 1
    assert elapsed < 0.35
    assert registry.rooms_for(first_stalled) == set()
    assert registry.rooms_for(second_stalled) == set()
    assert registry.subscriber_count("conversation:1") == 1
