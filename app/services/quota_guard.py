# app/services/quota_guard.py

"""Authoritative per-user daily quota for AI suggestions.

The counter lives in the Supabase usage table, one row per user per UTC day.
The read in check_and_reserve and the write in record_fulfilled are not
wrapped in a transaction, so two concurrent requests from the same user can
both be admitted at count 14. The cap is a soft limit.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from fastapi import Depends
from supabase import Client

from app.core.errors import PersistenceWarning
from app.core.plans import AI_SUGGESTION_LIMITS
from app.database.crud import get_daily_usage, upsert_daily_usage
from app.database.models import AIUsageQuotaRow
from app.integrations.supabase_connect import get_supabase_client

logger = logging.getLogger(__name__)


class QuotaState(str, Enum):
    UNUSED = "unused"
    IN_USE = "in_use"
    EXHAUSTED = "exhausted"


@dataclass
class QuotaCheck:
    allowed: bool
    current_usage: int


def utc_today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


class QuotaGuard:
    def __init__(self, supabase: Client, daily_limit: int = AI_SUGGESTION_LIMITS["daily"]):
        self.supabase = supabase
        self.daily_limit = daily_limit

    def current_usage(self, user_id: str, today: Optional[str] = None) -> int:
        row = get_daily_usage(self.supabase, user_id, today or utc_today())
        return row.daily_count if row else 0

    def check_and_reserve(self, user_id: str, today: Optional[str] = None) -> QuotaCheck:
        """Reads the user's count for today. Nothing is written here."""
        usage = self.current_usage(user_id, today)
        return QuotaCheck(allowed=usage < self.daily_limit, current_usage=usage)

    def record_fulfilled(self, user_id: str, current_usage: int, today: Optional[str] = None) -> int:
        """
        Stores current_usage + 1 after a suggestion was generated.
        A failed upsert is logged and swallowed: the completion has already
        been paid for, so the caller still gets its result.
        """
        new_count = current_usage + 1
        row = AIUsageQuotaRow(user_id=user_id, usage_date=today or utc_today(), daily_count=new_count)
        try:
            self._persist(row)
        except PersistenceWarning as warning:
            logger.warning(warning.message, exc_info=warning.__cause__)
        return new_count

    def _persist(self, row: AIUsageQuotaRow) -> None:
        try:
            upsert_daily_usage(self.supabase, row)
        except Exception as e:
            raise PersistenceWarning(f"Failed to record usage for user {row.user_id}: {e}") from e

    def state_for(self, daily_count: int) -> QuotaState:
        if daily_count <= 0:
            return QuotaState.UNUSED
        if daily_count < self.daily_limit:
            return QuotaState.IN_USE
        return QuotaState.EXHAUSTED


async def get_quota_guard(supabase: Client = Depends(get_supabase_client)) -> QuotaGuard:
    return QuotaGuard(supabase)
