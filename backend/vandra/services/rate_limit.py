"""
Outbound request pacing for the flight-offer provider.

Limiters are owned by a client instance. The shared client is used from many
tasks at once, so each acquire runs under a lock and waiters queue in turn.
"""
import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]


class RateLimiter(ABC):
    @abstractmethod
    async def acquire(self) -> None:
        """Wait until the next request may go out."""


class NoopRateLimiter(RateLimiter):
    async def acquire(self) -> None:
        return None


class MinIntervalRateLimiter(RateLimiter):
    """Keeps at least `min_interval` seconds between consecutive requests."""

    def __init__(
        self,
        min_interval: float = 1.0,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_request: Optional[float] = None
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        async with self._lock:
            if self._last_request is not None:
                elapsed = self._clock() - self._last_request
                wait = self.min_interval - elapsed
                if wait > 0:
                    logger.debug(f"Rate limit: waiting {wait:.2f}s")
                    await self._sleep(wait)
            self._last_request = self._clock()


class TokenBucketRateLimiter(RateLimiter):
    """Allows bursts up to `capacity`, refilling at `rate` tokens per second."""

    def __init__(
        self,
        rate: float,
        capacity: int = 1,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ):
        if rate <= 0:
            raise ValueError("rate must be positive")
        self.rate = rate
        self.capacity = capacity
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._updated = clock()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = self._clock()
        self._tokens = min(self.capacity, self._tokens + (now - self._updated) * self.rate)
        self._updated = now

    async def acquire(self) -> None:
        async with self._lock:
            self._refill()
            if self._tokens < 1:
                wait = (1 - self._tokens) / self.rate
                logger.debug(f"Rate limit: bucket empty, waiting {wait:.2f}s")
                await self._sleep(wait)
                self._refill()
            self._tokens = max(0.0, self._tokens - 1)
