from pydantic import BaseModel, Field
from datetime import datetime, timezone


class AIUsageQuotaRow(BaseModel):
    """One row of the usage table: a user's suggestion count for one UTC day."""
    user_id: str = Field(..., description="User ID")
    usage_date: str = Field(..., description="UTC calendar day, YYYY-MM-DD")
    daily_count: int = Field(0, ge=0, description="Fulfilled suggestion requests that day")
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="Update time")
