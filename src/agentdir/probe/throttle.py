"""Run-scoped request throttle.

All outbound requests of a scan run (manifest probes, homepage probes and
GitHub discovery calls) share a single RequestThrottle. Before each request it
sleeps whatever remains of ``min_interval`` since the previous request
completed, which serializes network activity for the whole run.

The clock and sleep function are injectable so tests can assert exact delays.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from types import TracebackType

from agentdir.config import DEFAULT_MIN_REQUEST_INTERVAL_SECONDS

Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]


class RequestThrottle:
    """Spaces requests at least ``min_interval`` seconds apart.

    Use as an async context manager around each request::

        async with throttle:
            response = await client.get(url)

    Entering waits out the remaining interval; exiting records the completion
    time. Not safe for concurrent use; a scan run is single-threaded.
    """

    def __init__(
        self,
        min_interval: float = DEFAULT_MIN_REQUEST_INTERVAL_SECONDS,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self._min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_completed: float | None = None

    @property
    def min_interval(self) -> float:
        return self._min_interval

    def remaining(self) -> float:
        """Seconds left before the next request may start."""
        if self._last_completed is None:
            return 0.0
        elapsed = self._clock() - self._last_completed
        return max(0.0, self._min_interval - elapsed)

    async def wait(self) -> float:
        """Sleep out the remaining interval and return how long was slept."""
        delay = self.remaining()
        if delay > 0:
            await self._sleep(delay)
        return delay

    def mark(self) -> None:
        """Record that a request just completed."""
        self._last_completed = self._clock()

    async def __aenter__(self) -> RequestThrottle:
        await self.wait()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.mark()
