import asyncio
from collections import deque
from dataclasses import dataclass
from time import monotonic


@dataclass(frozen=True, slots=True)
class RateLimitRule:
    limit: int
    window_seconds: float


class InMemoryRateLimiter:
    """Sliding-window limiter keyed by caller identity.

    Expired keys are dropped on every call, so use one instance per rule.
    """

    def __init__(self) -> None:
        self._events: dict[str, deque[float]] = {}
        self._lock = asyncio.Lock()

    def tracked_keys(self) -> int:
        return len(self._events)

    async def allow(self, key: str, rule: RateLimitRule) -> bool:
        now = monotonic()
        window_start = now - rule.window_seconds

        async with self._lock:
            self._purge_expired(window_start)

            events = self._events.setdefault(key, deque())
            if len(events) >= rule.limit:
                return False

            events.append(now)
            return True

    def _purge_expired(self, window_start: float) -> None:
        for key in list(self._events):
            events = self._events[key]
            while events and events[0] <= window_start:
                events.popleft()
            if not events:
                del self._events[key]
