import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from app.core.errors import ProviderError
from app.core.plans import build_daily_usage
from app.integrations.llm_client import GeminiCompletionProvider, get_completion_provider
from app.schemas.budget import GenerateSuggestionResponse, SuggestionRequest, UsageQuotaResponse
from app.services.budget_prompt import build_budget_prompt
from app.services.quota_guard import QuotaGuard, get_quota_guard, utc_today
from app.services.rate_limiter import DAILY_SCOPE, ServiceRateLimiter, get_service_rate_limiter

router = APIRouter()
logger = logging.getLogger(__name__)


def _error(status_code: int, error: str, **extra) -> JSONResponse:
    return JSONResponse(content={"success": False, "error": error, **extra}, status_code=status_code)


@router.post("/generate-budget", response_model=GenerateSuggestionResponse)
async def generate_budget(
    payload: SuggestionRequest,
    guard: QuotaGuard = Depends(get_quota_guard),
    provider: GeminiCompletionProvider = Depends(get_completion_provider),
    limiter: ServiceRateLimiter = Depends(get_service_rate_limiter),
):
    """Generates a budget suggestion, charging one unit of the user's daily quota on success."""
    missing = payload.missing_fields()
    if missing:
        return _error(
            status.HTTP_400_BAD_REQUEST,
            f"The following fields are required: {', '.join(missing)}",
            received=payload.received(),
        )

    user_id = payload.userId.strip()
    today = utc_today()

    try:
        check = guard.check_and_reserve(user_id, today)
    except Exception as e:
        logger.error(f"Failed to read usage for user {user_id}: {e}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "A system error occurred.", details=str(e))

    if not check.allowed:
        logger.info(f"User {user_id} hit the daily limit ({check.current_usage}/{guard.daily_limit})")
        return JSONResponse(
            content={
                "success": False,
                "error": "quota_exceeded",
                "message": f"You have reached today's limit of {guard.daily_limit} AI suggestions. It resets at midnight (UTC).",
                "usage": build_daily_usage(check.current_usage, guard.daily_limit),
            },
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        )

    rate = limiter.check()
    if not rate.allowed:
        if rate.scope == DAILY_SCOPE:
            logger.warning("Service-wide daily AI limit reached")
            return _error(
                status.HTTP_429_TOO_MANY_REQUESTS,
                "rate_limited",
                message="The AI service has reached its daily limit. Please try again tomorrow.",
                retryAfter=None,
            )
        return _error(
            status.HTTP_429_TOO_MANY_REQUESTS,
            "rate_limited",
            message="The AI service is busy. Please try again in a minute.",
            retryAfter=round(rate.retry_after or 0),
        )

    try:
        try:
            limiter.record()
            suggestion = await provider.complete(build_budget_prompt(payload))
        except ProviderError as e:
            logger.error(f"Budget generation failed for user {user_id}: {e.message}")
            return _error(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Failed to generate an AI suggestion.",
                details=e.message,
            )

        used = guard.record_fulfilled(user_id, check.current_usage, today)

        return JSONResponse(
            content={
                "success": True,
                "suggestion": suggestion,
                "usage": build_daily_usage(used, guard.daily_limit),
            },
            status_code=status.HTTP_200_OK,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error generating a budget for user {user_id}: {e}", exc_info=True)
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to generate an AI suggestion.",
            details=str(e),
        )


@router.get("/usage-quota", response_model=UsageQuotaResponse)
async def get_usage_quota(
    userId: Optional[str] = Query(None),
    guard: QuotaGuard = Depends(get_quota_guard),
):
    if not userId or not userId.strip():
        return _error(status.HTTP_400_BAD_REQUEST, "userId is required.", received={"userId": False})

    try:
        used = guard.current_usage(userId.strip())
    except Exception as e:
        logger.error(f"Failed to read usage for user {userId}: {e}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "A system error occurred.", details=str(e))

    return JSONResponse(
        content={"success": True, "usage": build_daily_usage(used, guard.daily_limit)},
        status_code=status.HTTP_200_OK,
    )
