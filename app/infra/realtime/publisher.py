from collections.abc import Mapping
from typing import Any, Protocol

from app.infra.realtime.events import RealtimeEvent


class RealtimePublisher(Protocol):
    async def broadcast(
        self,
        channel: str,
        event: RealtimeEvent,
        payload: Mapping[str, Any],
    ) -> int: ...


class NoopRealtimePublisher:
    async def broadcast(
        self,
        channel: str,
        event: RealtimeEvent,
        payload: Mapping[str, Any],
    ) -> int:
        _ = channel
        _ = event
        _ = payload
        return 0
