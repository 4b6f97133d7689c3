# SPDX-License-Identifier: MIT

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from timeguru.errors import RateLimited, RemoteError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 4
    base_delay: float = 0.5
    max_delay: float = 8.0

    def delay(self, attempt: int, error: RemoteError) -> float:
        """Seconds to wait after failed ``attempt`` (1-based)."""
        delay = min(self.max_delay, self.base_delay * 2 ** (attempt - 1))
        if isinstance(error, RateLimited) and error.retry_after is not None:
            delay = max(delay, error.retry_after)
        return delay


NO_RETRY = RetryPolicy(max_attempts=1)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    description: str = "remote call",
    sleep: Sleep = asyncio.sleep,
) -> T:
    """
    Await ``operation()`` until it succeeds or the policy gives up.

    Only errors flagged ``retryable`` (rate limiting, transient network
    failures) are retried; anything else propagates at once. When attempts
    run out the last error is raised.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return await operation()
        except RemoteError as e:
            if not e.retryable or attempt >= policy.max_attempts:
                raise
            wait_s = policy.delay(attempt, e)
            logger.warning(
                "%s failed (attempt %d/%d), retrying in %.1fs: %s",
                description,
                attempt,
                policy.max_attempts,
                wait_s,
                e,
            )
            await sleep(wait_s)
