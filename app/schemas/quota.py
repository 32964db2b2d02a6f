# app/schemas/quota.py

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

NO_REASON = "none"
DAILY_LIMIT_EXCEEDED = "daily_limit_exceeded"
MINUTE_LIMIT_EXCEEDED = "minute_limit_exceeded"


class UsageWindow(BaseModel):
    """Client-local usage state, stored as {date, dailyCount, requestHistory}."""
    date: str
    daily_count: int = Field(0, ge=0, alias="dailyCount")
    request_history: List[int] = Field(default_factory=list, alias="requestHistory")

    class Config:
        populate_by_name = True


class QuotaDecision(BaseModel):
    can_request: bool
    reason: str = NO_REASON
    remaining_daily: int
    remaining_minute: int


class WindowStats(BaseModel):
    used: int
    limit: int
    remaining: int
    percentage: int


class ResetTimes(BaseModel):
    daily: datetime
    minute: datetime


class UsageStats(BaseModel):
    daily: WindowStats
    minute: WindowStats
    reset_time: ResetTimes


class LimitMessage(BaseModel):
    title: str
    message: str
    reset_time: Optional[datetime] = None
