"""
Request Throttle

Token-bucket pacing for calls to the text-understanding service.

With the default rate of one request per second and a burst of one, the
first call proceeds immediately and every later call waits until at least
one second has passed since the previous one.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Optional


# Absorbs float error accumulated by repeated refills.
EPSILON = 1e-9

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


class RequestThrottle:
    """
    Async token bucket.

    Tokens refill continuously at `rate` per second up to `burst`. Each
    :meth:`acquire` consumes one token, sleeping until one is available.
    A rate of 0 disables throttling.
    """

    def __init__(
        self,
        rate: float = 1.0,
        burst: int = 1,
        clock: Optional[Clock] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        """
        Parameters
        ----------
        rate : float
            Tokens added per second.
        burst : int
            Bucket capacity; also the number of calls allowed back to back.
        clock : Optional[Clock]
            Monotonic clock in seconds. Defaults to time.monotonic.
        sleep : Optional[Sleep]
            Coroutine used to wait. Defaults to asyncio.sleep.
        """
        if rate < 0:
            raise ValueError("rate must be non-negative")
        if burst < 1:
            raise ValueError("burst must be at least 1")

        self.rate = rate
        self.burst = burst
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._tokens = float(burst)
        self._updated = self._clock()
        self._lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self.rate > 0

    async def acquire(self) -> None:
        """
        Wait until a token is available and consume it.
        """
        if not self.enabled:
            return

        async with self._lock:
            while True:
                self._refill()
                if self._tokens >= 1 - EPSILON:
                    self._tokens = max(0.0, self._tokens - 1)
                    return
                await self._sleep((1 - self._tokens) / self.rate)

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(float(self.burst), self._tokens + elapsed * self.rate)
        self._updated = now
