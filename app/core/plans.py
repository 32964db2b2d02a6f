# app/core/plans.py
from app.core.config import settings

AI_SUGGESTION_LIMITS = {
    "daily": settings.AI_DAILY_LIMIT, # enforced by the server, mirrored on the client
    "minute": settings.AI_MINUTE_LIMIT, # client side only
    "service_rpm": settings.SERVICE_RPM_LIMIT,
    "service_daily": settings.SERVICE_DAILY_LIMIT,
}

MINUTE_WINDOW_MS = 60_000

REQUIRED_SUGGESTION_FIELDS = ["planType", "participants", "duration", "location"]


# Helper to build an empty client usage window for a given day
def get_initial_usage_window(date: str) -> dict:
    return {
        "date": date,
        "dailyCount": 0,
        "requestHistory": [],
    }


def build_daily_usage(used: int, limit: int = AI_SUGGESTION_LIMITS["daily"]) -> dict:
    """Usage block shared by every endpoint response."""
    return {
        "daily": {
            "used": used,
            "limit": limit,
            "remaining": max(0, limit - used),
        }
    }
