"""
Quota Tracker - Counts requests per day and per rolling minute
"""

import time
from typing import Callable

from gmail_purge.models import QuotaState


DAILY_LIMIT = 1_000_000
PER_MINUTE_LIMIT = 250
MINUTE_WINDOW_SECONDS = 60.0


class QuotaTracker:
    """Decides whether a request may be issued now or must wait for the window to roll"""

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        daily_limit: int = DAILY_LIMIT,
        per_minute_limit: int = PER_MINUTE_LIMIT
    ):
        self.clock = clock
        self.daily_limit = daily_limit
        self.per_minute_limit = per_minute_limit
        self.state = QuotaState(minute_window_start=clock())

    def can_proceed(self) -> bool:
        """Count one request and report whether it fits within both limits.

        The request is counted even when the answer is False, so a False
        result means "pause before issuing", not "this call was not counted".
        """
        now = self.clock()
        if now - self.state.minute_window_start >= MINUTE_WINDOW_SECONDS:
            self.state.requests_this_minute = 0
            self.state.minute_window_start = now

        self.state.requests_today += 1
        self.state.requests_this_minute += 1

        return (
            self.state.requests_today <= self.daily_limit
            and self.state.requests_this_minute <= self.per_minute_limit
        )
