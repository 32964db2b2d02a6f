"""In-memory limits for the shared Gemini key.

Counts provider calls across all users within one process: a sliding window
per minute and a fixed bucket per UTC day. State is lost on restart; the
per-user daily quota in the database is the durable limit.
"""

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional

from app.core.plans import AI_SUGGESTION_LIMITS
from app.services.quota_guard import utc_today

MINUTE_SCOPE = "minute"
DAILY_SCOPE = "daily"


@dataclass
class RateLimitResult:
    allowed: bool
    retry_after: Optional[float] = None  # seconds until the oldest call leaves the window; None for the daily cap
    scope: Optional[str] = None


class ServiceRateLimiter:
    def __init__(
        self,
        max_requests: int,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.monotonic,
        daily_limit: Optional[int] = None,
        today: Callable[[], str] = utc_today,
    ):
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._clock = clock
        self._calls: deque = deque()
        self._daily_limit = daily_limit
        self._today = today
        self._day = today()
        self._daily_count = 0
        self._lock = threading.Lock()

    def _evict(self, now: float) -> None:
        cutoff = now - self._window_seconds
        while self._calls and self._calls[0] <= cutoff:
            self._calls.popleft()

    def _roll_day(self) -> None:
        day = self._today()
        if day != self._day:
            self._day = day
            self._daily_count = 0

    def check(self) -> RateLimitResult:
        """Whether a provider call may start now. Does not record anything."""
        now = self._clock()
        with self._lock:
            self._roll_day()
            if self._daily_limit is not None and self._daily_count >= self._daily_limit:
                return RateLimitResult(allowed=False, scope=DAILY_SCOPE)
            self._evict(now)
            if len(self._calls) < self._max_requests:
                return RateLimitResult(allowed=True)
            retry_after = self._calls[0] + self._window_seconds - now
            return RateLimitResult(allowed=False, retry_after=max(0.0, retry_after), scope=MINUTE_SCOPE)

    def record(self) -> None:
        now = self._clock()
        with self._lock:
            self._roll_day()
            self._evict(now)
            self._calls.append(now)
            self._daily_count += 1

    @property
    def daily_count(self) -> int:
        with self._lock:
            self._roll_day()
            return self._daily_count

    def reset(self) -> None:
        with self._lock:
            self._calls.clear()
            self._daily_count = 0


service_rate_limiter = ServiceRateLimiter(
    max_requests=AI_SUGGESTION_LIMITS["service_rpm"],
    daily_limit=AI_SUGGESTION_LIMITS["service_daily"],
)


def get_service_rate_limiter() -> ServiceRateLimiter:
    return service_rate_limiter
