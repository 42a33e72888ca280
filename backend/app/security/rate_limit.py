"""In-memory fixed-window rate limiter for unauthenticated endpoints.

State is process-local and disposable: losing it on restart only resets
the counters. Multi-process deployments get one independent counter map
per worker.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from collections.abc import Callable

from fastapi import HTTPException, Request, status

from app.config import settings

logger = logging.getLogger(__name__)


class RateLimiter:
    """Bounded ``key -> (count, last_request)`` map with a periodic sweep.

    A key's window restarts whenever more than ``window_seconds`` pass
    between two of its requests. The map never holds more than
    ``max_keys`` entries; the least recently seen key is evicted first.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        max_keys: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.max_keys = max_keys
        self._clock = clock
        self._entries: OrderedDict[str, tuple[int, float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def check(self, identifier: str) -> bool:
        """Record a request for ``identifier``; return False once over the limit."""
        now = self._clock()
        entry = self._entries.get(identifier)

        if entry is None or now - entry[1] > self.window_seconds:
            count = 1
        else:
            count = entry[0] + 1

        self._entries[identifier] = (count, now)
        self._entries.move_to_end(identifier)
        while len(self._entries) > self.max_keys:
            self._entries.popitem(last=False)

        return count <= self.max_requests

    def sweep(self) -> int:
        """Drop entries whose window has lapsed. Returns the number removed."""
        now = self._clock()
        expired = [key for key, (_, last) in self._entries.items() if now - last > self.window_seconds]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def reset(self) -> None:
        self._entries.clear()

    async def run_sweeper(self, interval: float) -> None:
        """Sweep forever every ``interval`` seconds until cancelled."""
        while True:
            await asyncio.sleep(interval)
            removed = self.sweep()
            if removed:
                logger.debug("Rate limiter sweep removed %d expired keys", removed)


auth_rate_limiter = RateLimiter(
    max_requests=settings.rate_limit_max_requests,
    window_seconds=settings.rate_limit_window_seconds,
    max_keys=settings.rate_limit_max_keys,
)


def rate_limit(scope: str, limiter: RateLimiter = auth_rate_limiter) -> Callable:
    """Build a FastAPI dependency limiting ``scope`` per client IP.

    Usage::

        @router.post("/login", dependencies=[Depends(rate_limit("login"))])
    """

    async def _dependency(request: Request) -> None:
        client_ip = request.client.host if request.client else "unknown"
        if not limiter.check(f"{scope}:{client_ip}"):
            logger.warning("Rate limit exceeded for %s from %s", scope, client_ip)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests",
                headers={"Retry-After": str(int(limiter.window_seconds))},
            )

    return _dependency
