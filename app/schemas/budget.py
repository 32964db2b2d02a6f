# app/schemas/budget.py

from pydantic import BaseModel, Field
from typing import Optional, Dict, List
from app.core.plans import REQUIRED_SUGGESTION_FIELDS


class SuggestionRequest(BaseModel):
    """
    Body of POST /generate-budget.
    Every field is optional at the schema level so that missing fields can be
    reported back as a `received` map instead of a generic 422.
    """
    planType: Optional[str] = Field(None, description="Kind of plan, e.g. BBQ, trip")
    participants: Optional[str] = Field(None, description="Who is going")
    duration: Optional[str] = Field(None, description="Length of the plan")
    location: Optional[str] = Field(None, description="Where it happens")
    budget_range: Optional[str] = Field(None, description="Desired budget")
    preferences: Optional[str] = Field(None, description="Free-text wishes")
    userId: Optional[str] = Field(None, description="Requesting user")

    class Config:
        coerce_numbers_to_str = True

    def received(self) -> Dict[str, bool]:
        return {field: bool(_clean(getattr(self, field))) for field in REQUIRED_SUGGESTION_FIELDS + ["userId"]}

    def missing_fields(self) -> List[str]:
        return [field for field, present in self.received().items() if not present]


def _clean(value: Optional[str]) -> str:
    return value.strip() if isinstance(value, str) else ""


class DailyUsage(BaseModel):
    used: int
    limit: int
    remaining: int


class UsageSnapshot(BaseModel):
    daily: DailyUsage


class GenerateSuggestionResponse(BaseModel):
    success: bool = True
    suggestion: str
    usage: UsageSnapshot


class UsageQuotaResponse(BaseModel):
    success: bool = True
    usage: UsageSnapshot


class SuggestionResult(BaseModel):
    """What the orchestrator hands back to the UI after a successful generation."""
    suggestion: str
    usage: UsageSnapshot
