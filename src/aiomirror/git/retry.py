"""Retry policy for network operations.

Only clone, pull, push and remote-API calls are retried.  Local failures are
deterministic and are raised on the first attempt.

Git reports network trouble and merge trouble through the same exit status,
so failures are told apart by looking for merge-conflict markers in the
output.  Anything without a marker is treated as transient; attempts are
bounded so a misclassified permanent error still surfaces.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ..exceptions import GitError, MergeConflictError
from ..models.config import RetryOptions

logger = logging.getLogger(__name__)

T = TypeVar("T")

MERGE_CONFLICT_MARKERS = (
    "CONFLICT (",
    "Automatic merge failed",
    "unmerged files",
    "would be overwritten by merge",
    "Not possible to fast-forward",
)


def classify_git_failure(command: list[str], output: str) -> GitError:
    """Build the error for a failed git *command* from its *output*."""
    message = f"{' '.join(command)}: {output}"
    if any(marker in output for marker in MERGE_CONFLICT_MARKERS):
        return MergeConflictError(message, command=command, output=output)
    return GitError(message, command=command, output=output)


def is_transient_git_error(exc: BaseException) -> bool:
    """Return ``True`` if *exc* is a git failure worth another attempt."""
    return isinstance(exc, GitError) and not isinstance(exc, MergeConflictError)


class RetryPolicy:
    """Re-runs an async operation with capped exponential backoff."""

    def __init__(
        self,
        options: RetryOptions | None = None,
        *,
        is_retryable: Callable[[BaseException], bool] = is_transient_git_error,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.options = options or RetryOptions()
        self.is_retryable = is_retryable
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        """Delay before the retry following failed *attempt* (0-based)."""
        opts = self.options
        delay = min(
            opts.initial_delay * (opts.backoff_multiplier**attempt),
            opts.max_delay,
        )
        if opts.jitter:
            delay += delay * 0.1 * random.random()
        return delay

    async def retry(self, task: str, operation: Callable[[], Awaitable[T]]) -> T:
        """Await ``operation()`` until it succeeds or attempts run out.

        The last error is re-raised once ``max_attempts`` is reached.  Errors
        rejected by *is_retryable* are raised immediately.
        """
        max_attempts = self.options.max_attempts
        for attempt in range(max_attempts):
            try:
                return await operation()
            except Exception as exc:
                if not self.is_retryable(exc):
                    raise
                if attempt + 1 >= max_attempts:
                    logger.error(
                        "%s failed after %d attempts: %s", task, max_attempts, exc
                    )
                    raise

                delay = self.delay_for(attempt)
                logger.warning(
                    "%s failed (attempt %d/%d), retrying in %.1fs: %s",
                    task,
                    attempt + 1,
                    max_attempts,
                    delay,
                    exc,
                )
                await self._sleep(delay)

        raise AssertionError("unreachable")
