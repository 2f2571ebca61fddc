"""Client-side quota for the hosted-platform API.

The API allows roughly 60 calls a minute.  The limiter counts calls in the
current window and, once the quota is used up, sleeps out the rest of the
window before letting the next call through.  The server may still rate
limit us, so callers keep their own retry around API calls.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from ..models.config import RateLimitOptions

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RateLimiter:
    """Counts calls per window and holds off when the quota is exceeded.

    One limiter is shared by every call site that talks to the same API.
    """

    def __init__(
        self,
        options: RateLimitOptions | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.options = options or RateLimitOptions()
        self._clock = clock
        self._sleep = sleep
        self.calls = 0
        self.window_start = clock()

    async def before_call(self) -> None:
        """Sleep out the current window if its quota has been used up."""
        if self.calls < self.options.max_calls:
            return

        holdoff = self.options.window_seconds - (self._clock() - self.window_start)
        if holdoff > 0:
            logger.info("Hit API rate limit, sleeping for %.0f seconds", holdoff)
            await self._sleep(holdoff)
        self.window_start = self._clock()
        self.calls = 0

    async def call(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Await ``func(*args, **kwargs)`` within the quota.

        The call is counted whether or not it succeeds; errors propagate
        unchanged.
        """
        await self.before_call()
        try:
            return await func(*args, **kwargs)
        finally:
            self.calls += 1
