"""Realtime event transport (WebSocket) adapters."""

from app.infra.realtime.hub import RoomRegistry

__all__ = ["RoomRegistry"]
