# app/client/orchestrator.py

"""Runs one AI budget suggestion from form input to result.

Validation and the local quota check happen before any network activity.
The server repeats both checks and its answer always wins: after every
response carrying usage, the local daily count is overwritten with the
server's number. A request the server did not charge is re-read from
/usage-quota, or released locally when that read fails too.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Mapping, Optional

import httpx
from pydantic import ValidationError

from app.client.quota_tracker import QuotaTracker
from app.core.config import settings
from app.core.errors import (
    AuthRequired,
    GenerationFailed,
    GenerationInProgress,
    NetworkError,
    QuotaExceeded,
    SuggestionError,
    ValidationFailed,
)
from app.core.plans import REQUIRED_SUGGESTION_FIELDS
from app.schemas.budget import SuggestionResult, UsageSnapshot
from app.schemas.quota import DAILY_LIMIT_EXCEEDED

logger = logging.getLogger(__name__)

SERVICE_RATE_LIMITED = "service_rate_limited"
OPTIONAL_SUGGESTION_FIELDS = ["budget_range", "preferences"]


def _field(form_data: Mapping[str, Any], name: str) -> str:
    value = form_data.get(name)
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


class SuggestionOrchestrator:
    def __init__(
        self,
        tracker: QuotaTracker,
        http_client: httpx.AsyncClient,
        api_prefix: str = settings.API_PREFIX,
    ):
        self.tracker = tracker
        self.http_client = http_client
        self.api_prefix = api_prefix.rstrip("/")
        self.is_generating = False
        self.last_usage: Optional[UsageSnapshot] = None

    async def generate_suggestion(self, form_data: Mapping[str, Any], user: Optional[Mapping[str, Any]]) -> SuggestionResult:
        """
        Generates a budget suggestion for the form.

        Raises:
            GenerationInProgress: another generation has not finished yet
            AuthRequired: no signed-in user
            ValidationFailed: a mandatory field is empty
            QuotaExceeded: the local tracker or the server refused the request
            GenerationFailed: transport, server or provider failure; safe to retry
        """
        if self.is_generating:
            raise GenerationInProgress()

        user_id = _field(user or {}, "id")
        if not user_id:
            raise AuthRequired()

        missing = [name for name in REQUIRED_SUGGESTION_FIELDS if not _field(form_data, name)]
        if missing:
            raise ValidationFailed(missing)

        decision = self.tracker.can_make_request()
        if not decision.can_request:
            limit = self.tracker.limit_exceeded_message(decision.reason)
            raise QuotaExceeded(decision.reason, limit.message, limit.reset_time, title=limit.title)

        payload = {name: _field(form_data, name) for name in REQUIRED_SUGGESTION_FIELDS + OPTIONAL_SUGGESTION_FIELDS}
        payload["userId"] = user_id

        self.is_generating = True
        try:
            response = await self._request("POST", "/generate-budget", json=payload)
            self.tracker.record_request()
            try:
                data = self._parse("/generate-budget", response)
                return self._handle_generation_response(data, response.status_code)
            except SuggestionError as e:
                # quota_exceeded responses already carry the server's count
                if not (isinstance(e, QuotaExceeded) and e.reason == DAILY_LIMIT_EXCEEDED):
                    await self._resync_daily_count(user_id)
                raise
        finally:
            self.is_generating = False

    async def regenerate(self, form_data: Mapping[str, Any], user: Optional[Mapping[str, Any]]) -> SuggestionResult:
        """Fresh suggestion for the same inputs. Costs another unit of quota; nothing is cached."""
        return await self.generate_suggestion(form_data, user)

    async def refresh_usage(self, user: Optional[Mapping[str, Any]]) -> UsageSnapshot:
        """Fetches the server's count for today and copies it into the local tracker."""
        user_id = _field(user or {}, "id")
        if not user_id:
            raise AuthRequired()

        response = await self._request("GET", "/usage-quota", params={"userId": user_id})
        data = self._parse("/usage-quota", response)
        if response.status_code != 200 or not data.get("success"):
            raise GenerationFailed("Failed to load AI usage.", details=data.get("details") or data.get("error"))
        return self._apply_usage(data)

    async def _resync_daily_count(self, user_id: str) -> None:
        # The server only charges fulfilled requests.
        try:
            await self.refresh_usage({"id": user_id})
        except GenerationFailed as e:
            logger.warning(f"Could not refresh usage after a failed generation, releasing the local unit: {e.details}")
            self.tracker.release_daily_unit()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return await self.http_client.request(method, f"{self.api_prefix}{path}", **kwargs)
        except httpx.HTTPError as e:
            error = NetworkError(f"Network error while calling {path}: {e}")
            error.__cause__ = e
            logger.error(error.message)
            raise GenerationFailed("A network error occurred. Please try again.", details=error.message) from error

    def _parse(self, path: str, response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Unreadable response from {path} (status {response.status_code})")
            raise GenerationFailed(details=f"Invalid JSON (status {response.status_code})") from e

        if not isinstance(data, dict):
            raise GenerationFailed(details=f"Unexpected response body (status {response.status_code})")
        return data

    def _handle_generation_response(self, data: Dict[str, Any], status_code: int) -> SuggestionResult:
        if data.get("success") and status_code == 200:
            suggestion = data.get("suggestion")
            if not isinstance(suggestion, str) or not suggestion.strip():
                raise GenerationFailed(details="Empty suggestion in response")
            usage = self._apply_usage(data)
            return SuggestionResult(suggestion=suggestion, usage=usage)

        error = data.get("error")
        if error == "quota_exceeded":
            if data.get("usage"):
                self._apply_usage(data)
            raise QuotaExceeded(
                DAILY_LIMIT_EXCEEDED,
                data.get("message") or "Daily AI suggestion limit reached.",
                self.tracker.next_daily_reset(),
                server_confirmed=True,
            )
        if error == "rate_limited":
            retry_after = data.get("retryAfter", 60)
            if retry_after is None:
                # service-wide daily cap, lifts with the day
                reset_time = self.tracker.next_daily_reset()
            else:
                reset_time = self.tracker.clock.now() + timedelta(seconds=retry_after or 60)
            raise QuotaExceeded(
                SERVICE_RATE_LIMITED,
                data.get("message") or "The AI service is busy. Please try again shortly.",
                reset_time,
                server_confirmed=True,
            )
        if status_code == 400 and isinstance(data.get("received"), dict):
            missing = [name for name, present in data["received"].items() if not present]
            raise ValidationFailed(missing)

        logger.error(f"Budget generation failed (status {status_code}): {error}")
        raise GenerationFailed(details=data.get("details") or error)

    def _apply_usage(self, data: Dict[str, Any]) -> UsageSnapshot:
        try:
            usage = UsageSnapshot.model_validate(data.get("usage"))
        except ValidationError as e:
            raise GenerationFailed(details=f"Invalid usage in response: {e}") from e
        self.tracker.sync_daily_count(usage.daily.used)
        self.last_usage = usage
        return usage


def create_orchestrator(tracker: QuotaTracker, base_url: str = settings.BUDGET_API_BASE_URL) -> SuggestionOrchestrator:
    """Orchestrator with its own httpx client. The caller closes it via `orchestrator.http_client.aclose()`."""
    return SuggestionOrchestrator(tracker, httpx.AsyncClient(base_url=base_url))
