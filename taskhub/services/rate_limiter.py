"""
TaskHub Backend — Rate Limiter
================================

What:  Fixed-window request counting per client, behind a pluggable store.
How:   RateLimiter asks its RateLimitStore to count one hit for a key and
       gets back the hit count in the current window plus the seconds until
       that window ends. It then decides allow/deny and computes the values
       for the RateLimit-* response headers.

Algorithm: Fixed Window Counter
    1. First hit from a client opens a window of `window_seconds`
    2. Every hit in the window increments the client's counter
    3. Counter > limit → deny (429) until the window ends
    4. Window ends → next hit opens a fresh window with count 1

Stores:
    MemoryRateLimitStore  single process; dict of client → (count, window end)
    RedisRateLimitStore   shared by every instance; INCR + PEXPIRE per key

The limiter is created by the app factory and handed to the middleware;
nothing about it is module-global.
"""

import logging
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

from redis.asyncio import Redis
from redis.exceptions import RedisError

from taskhub.config import settings

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class WindowState:
    count: int
    reset_after: float  # seconds until the window closes


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_after: int  # whole seconds, rounded up


class RateLimitStoreError(Exception):
    """The backing store could not count a hit (e.g. Redis unreachable)."""


class RateLimitStore(ABC):
    """Counting backend for RateLimiter."""

    name: str = "Unknown"

    @abstractmethod
    async def hit(self, key: str, window_seconds: int) -> WindowState:
        """Counts one request for `key` and returns the window's state."""
        ...

    @abstractmethod
    async def reset(self, key: str) -> None:
        ...

    async def close(self) -> None:
        return None


class MemoryRateLimitStore(RateLimitStore):
    """
    In-process store. Counters are lost on restart and not shared between
    workers; use RedisRateLimitStore for multi-instance deployments.

    Expired windows are purged every `purge_every` hits so the dict does not
    grow with every client address ever seen.
    """

    name = "Memory"

    def __init__(self, clock: Clock = time.monotonic, purge_every: int = 1000):
        self._clock = clock
        self._purge_every = purge_every
        self._hits_since_purge = 0
        # key -> (count, window start, window end)
        self._windows: Dict[str, Tuple[int, float, float]] = {}

    async def hit(self, key: str, window_seconds: int) -> WindowState:
        now = self._clock()
        count, started, window_end = self._windows.get(key, (0, 0.0, 0.0))
        if now >= window_end:
            count, started, window_end = 0, now, now + window_seconds
        count += 1
        self._windows[key] = (count, started, window_end)

        self._hits_since_purge += 1
        if self._hits_since_purge >= self._purge_every:
            self._purge(now)

        return WindowState(count=count, reset_after=window_seconds - (now - started))

    async def reset(self, key: str) -> None:
        self._windows.pop(key, None)

    def _purge(self, now: float) -> None:
        expired = [key for key, (_, _, window_end) in self._windows.items() if window_end <= now]
        for key in expired:
            del self._windows[key]
        self._hits_since_purge = 0
        if expired:
            logger.debug("Purged %d expired rate limit windows", len(expired))


class RedisRateLimitStore(RateLimitStore):
    """
    Redis-backed store: one key per client, `INCR` to count and a TTL equal
    to the window set on the first hit. Atomic per command, shared by all
    instances pointing at the same Redis.
    """

    name = "Redis"

    def __init__(self, client: Redis, prefix: str = "rl:"):
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "rl:") -> "RedisRateLimitStore":
        return cls(Redis.from_url(url), prefix=prefix)

    async def hit(self, key: str, window_seconds: int) -> WindowState:
        redis_key = f"{self._prefix}{key}"
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.incr(redis_key)
                pipe.pttl(redis_key)
                count, ttl_ms = await pipe.execute()

            # -1: key has no TTL yet (first hit of the window)
            if ttl_ms is None or ttl_ms < 0:
                ttl_ms = window_seconds * 1000
                await self._client.pexpire(redis_key, ttl_ms)
        except RedisError as e:
            raise RateLimitStoreError(str(e)) from e

        return WindowState(count=int(count), reset_after=ttl_ms / 1000)

    async def reset(self, key: str) -> None:
        await self._client.delete(f"{self._prefix}{key}")

    async def close(self) -> None:
        await self._client.aclose()


class RateLimiter:
    """Allows at most `limit` requests per client per `window_seconds`."""

    def __init__(self, store: RateLimitStore, limit: int, window_seconds: int):
        self.store = store
        self.limit = limit
        self.window_seconds = window_seconds

    async def check(self, client_key: str) -> RateLimitDecision:
        state = await self.store.hit(client_key, self.window_seconds)
        return RateLimitDecision(
            allowed=state.count <= self.limit,
            limit=self.limit,
            remaining=max(self.limit - state.count, 0),
            reset_after=min(max(math.ceil(state.reset_after), 0), self.window_seconds),
        )

    async def close(self) -> None:
        await self.store.close()


def build_rate_limiter() -> RateLimiter:
    """Builds the limiter described by settings (memory or Redis)."""
    if settings.rate_limit_backend == "redis":
        store: RateLimitStore = RedisRateLimitStore.from_url(settings.redis_url)
    else:
        store = MemoryRateLimitStore()
    logger.info(
        "Rate limiter: %s store, %d requests / %ds",
        store.name,
        settings.rate_limit_requests,
        settings.rate_limit_window,
    )
    return RateLimiter(
        store=store,
        limit=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window,
    )
