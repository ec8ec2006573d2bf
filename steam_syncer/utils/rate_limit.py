"""Minimum-interval throttle shared by all SteamGridDB API calls."""

import asyncio
import time
from typing import Awaitable, Callable, Optional

# SteamGridDB starts returning 429s well before one request per 300ms
DEFAULT_MIN_INTERVAL = 0.35


class RateLimiter:
    """Guarantees no two calls start less than ``min_interval`` seconds apart.

    The clock and sleep functions are injectable so tests can check spacing
    without really sleeping.
    """

    def __init__(
        self,
        min_interval: float = DEFAULT_MIN_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep or asyncio.sleep
        self._last_call: Optional[float] = None
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        """Block until the next call may start, then record it as started."""
        async with self._lock:
            if self._last_call is not None:
                remaining = self.min_interval - (self._clock() - self._last_call)
                if remaining > 0:
                    await self._sleep(remaining)
            self._last_call = self._clock()

    async def __aenter__(self):
        await self.wait()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False
