# app/client/quota_tracker.py

"""Client-side quota tracking for AI suggestions.

Two windows are checked before any request leaves the client: a calendar-day
counter and a rolling 60 second window of request timestamps. Both live in
local storage, which the user can clear at will, so this tracker only saves
round trips. The server-side QuotaGuard is what actually enforces the limit.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from pydantic import ValidationError

from app.client.clock import SystemClock
from app.client.storage import KeyValueStorage
from app.core.config import settings
from app.core.plans import AI_SUGGESTION_LIMITS, MINUTE_WINDOW_MS, get_initial_usage_window
from app.schemas.quota import (
    DAILY_LIMIT_EXCEEDED,
    MINUTE_LIMIT_EXCEEDED,
    NO_REASON,
    LimitMessage,
    QuotaDecision,
    ResetTimes,
    UsageStats,
    UsageWindow,
    WindowStats,
)

logger = logging.getLogger(__name__)


def _percentage(used: int, limit: int) -> int:
    return round(used / limit * 100) if limit else 100


class QuotaTracker:
    def __init__(
        self,
        storage: KeyValueStorage,
        clock=None,
        daily_limit: int = AI_SUGGESTION_LIMITS["daily"],
        minute_limit: int = AI_SUGGESTION_LIMITS["minute"],
        storage_key: str = settings.LOCAL_QUOTA_STORAGE_KEY,
    ):
        self.storage = storage
        self.clock = clock or SystemClock()
        self.daily_limit = daily_limit
        self.minute_limit = minute_limit
        self.storage_key = storage_key

    def _today(self) -> str:
        return self.clock.now().date().isoformat()

    def _initialize(self, date: str) -> UsageWindow:
        window = UsageWindow.model_validate(get_initial_usage_window(date))
        self._save(window)
        return window

    def _save(self, window: UsageWindow) -> None:
        self.storage.set_item(self.storage_key, window.model_dump_json(by_alias=True))

    def get_usage_window(self) -> UsageWindow:
        """Stored window for today; a missing, corrupt or stale one is replaced by a fresh window."""
        today = self._today()
        stored = self.storage.get_item(self.storage_key)
        if not stored:
            return self._initialize(today)

        try:
            window = UsageWindow.model_validate_json(stored)
        except (ValidationError, ValueError) as e:
            logger.warning(f"Discarding unreadable quota state: {e}")
            return self._initialize(today)

        if window.date != today:
            return self._initialize(today)
        return window

    def recent_request_count(self) -> int:
        cutoff = self.clock.now_ms() - MINUTE_WINDOW_MS
        return sum(1 for timestamp in self.get_usage_window().request_history if timestamp > cutoff)

    def can_make_request(self) -> QuotaDecision:
        window = self.get_usage_window()
        recent = self.recent_request_count()

        daily_ok = window.daily_count < self.daily_limit
        minute_ok = recent < self.minute_limit

        if not daily_ok:
            reason = DAILY_LIMIT_EXCEEDED
        elif not minute_ok:
            reason = MINUTE_LIMIT_EXCEEDED
        else:
            reason = NO_REASON

        return QuotaDecision(
            can_request=daily_ok and minute_ok,
            reason=reason,
            remaining_daily=max(0, self.daily_limit - window.daily_count),
            remaining_minute=max(0, self.minute_limit - recent),
        )

    def record_request(self) -> None:
        """Call once per request actually sent, not per attempt."""
        window = self.get_usage_window()
        now = self.clock.now_ms()
        window.request_history.append(now)
        window.daily_count += 1
        cutoff = now - MINUTE_WINDOW_MS
        window.request_history = [timestamp for timestamp in window.request_history if timestamp > cutoff]
        self._save(window)

    def release_daily_unit(self) -> None:
        """Undo the daily increment of a request the server did not charge. The history entry stays."""
        window = self.get_usage_window()
        window.daily_count = max(0, window.daily_count - 1)
        self._save(window)

    def sync_daily_count(self, used: int) -> None:
        """Replace the local daily count with the server's number."""
        window = self.get_usage_window()
        window.daily_count = max(0, used)
        self._save(window)

    def next_daily_reset(self) -> datetime:
        tomorrow = self.clock.now() + timedelta(days=1)
        return tomorrow.replace(hour=0, minute=0, second=0, microsecond=0)

    def next_minute_reset(self) -> datetime:
        next_minute = self.clock.now() + timedelta(minutes=1)
        return next_minute.replace(second=0, microsecond=0)

    def usage_stats(self) -> UsageStats:
        window = self.get_usage_window()
        recent = self.recent_request_count()
        return UsageStats(
            daily=WindowStats(
                used=window.daily_count,
                limit=self.daily_limit,
                remaining=max(0, self.daily_limit - window.daily_count),
                percentage=_percentage(window.daily_count, self.daily_limit),
            ),
            minute=WindowStats(
                used=recent,
                limit=self.minute_limit,
                remaining=max(0, self.minute_limit - recent),
                percentage=_percentage(recent, self.minute_limit),
            ),
            reset_time=ResetTimes(daily=self.next_daily_reset(), minute=self.next_minute_reset()),
        )

    def limit_exceeded_message(self, reason: Optional[str]) -> LimitMessage:
        if reason == DAILY_LIMIT_EXCEEDED:
            return LimitMessage(
                title="Daily limit reached",
                message=f"You have used all {self.daily_limit} AI suggestions for today. The limit resets at midnight.",
                reset_time=self.next_daily_reset(),
            )
        if reason == MINUTE_LIMIT_EXCEEDED:
            return LimitMessage(
                title="Too many requests",
                message=f"You can make up to {self.minute_limit} AI suggestions per minute. Please wait a moment.",
                reset_time=self.next_minute_reset(),
            )
        return LimitMessage(
            title="Usage limit reached",
            message="The AI suggestion limit has been reached. Please wait a moment.",
            reset_time=None,
        )

    def reset_usage(self) -> None:
        self.storage.remove_item(self.storage_key)
