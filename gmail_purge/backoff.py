"""
Backoff Executor - Runs Gmail calls with quota pacing and retry on rate limits
"""

import asyncio
import logging
import threading
from typing import Awaitable, Callable, Optional, TypeVar

from gmail_purge.errors import RateLimitedError, RunInterrupted
from gmail_purge.quota import QuotaTracker


logger = logging.getLogger(__name__)

T = TypeVar('T')

MAX_ATTEMPTS = 3
QUOTA_COOLDOWN_SECONDS = 60.0
BACKOFF_BASE_SECONDS = 1.0


class BackoffExecutor:
    """Single point of contact between the purge pipeline and the Gmail API"""

    def __init__(
        self,
        quota: QuotaTracker,
        max_attempts: int = MAX_ATTEMPTS,
        quota_cooldown: float = QUOTA_COOLDOWN_SECONDS,
        backoff_base: float = BACKOFF_BASE_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        stop_event: Optional[threading.Event] = None
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.quota = quota
        self.max_attempts = max_attempts
        self.quota_cooldown = quota_cooldown
        self.backoff_base = backoff_base
        self.sleep = sleep
        self.stop_event = stop_event

    async def execute(self, operation: Callable[[], T], description: str = "request") -> T:
        """Run a blocking Gmail call, retrying only on rate limit errors.

        Args:
            operation: Zero-argument callable performing one remote call.
            description: Short label used in log messages.

        Returns:
            Whatever the operation returns.

        Raises:
            RunInterrupted: A stop was requested before the call was issued.
            RateLimitedError: Every attempt was rate limited; the last error is raised.
            Exception: Any other failure, on the first occurrence.
        """
        last_error: Optional[RateLimitedError] = None

        for attempt in range(self.max_attempts):
            self._check_stop(description)

            if not self.quota.can_proceed():
                logger.info(f"Request quota reached, pausing {self.quota_cooldown:.0f}s before {description}")
                await self.sleep(self.quota_cooldown)
                self._check_stop(description)

            try:
                return await asyncio.to_thread(operation)
            except RateLimitedError as error:
                last_error = error
                if attempt + 1 >= self.max_attempts:
                    break
                delay = self.backoff_base * (2 ** attempt)
                logger.warning(
                    f"Rate limited on {description} (attempt {attempt + 1}/{self.max_attempts}), "
                    f"retrying in {delay:.0f}s"
                )
                await self.sleep(delay)

        logger.error(f"Giving up on {description} after {self.max_attempts} rate limited attempts")
        raise last_error

    def _check_stop(self, description: str) -> None:
        if self.stop_event is not None and self.stop_event.is_set():
            raise RunInterrupted(f"Stop requested before {description}")
