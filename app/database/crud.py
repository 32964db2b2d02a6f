# app/database/crud.py

from typing import Optional
from supabase import Client
from app.database.models import AIUsageQuotaRow
from app.integrations.supabase_connect import get_usage_table_name


# --- AI usage quota CRUD ---
def get_daily_usage(supabase: Client, user_id: str, usage_date: str) -> Optional[AIUsageQuotaRow]:
    """
    Get the usage row for a user and day.
    Returns None when the user has not made a fulfilled request that day.
    """
    response = (
        supabase.table(get_usage_table_name())
        .select("user_id, usage_date, daily_count, updated_at")
        .eq("user_id", user_id)
        .eq("usage_date", usage_date)
        .limit(1)
        .execute()
    )

    if hasattr(response, 'error') and response.error:
        raise Exception(f"Supabase error: {response.error}")

    if not response.data:
        return None
    return AIUsageQuotaRow.model_validate(response.data[0])


def upsert_daily_usage(supabase: Client, row: AIUsageQuotaRow) -> AIUsageQuotaRow:
    """Insert the row, or overwrite daily_count when (user_id, usage_date) already exists."""
    response = supabase.table(get_usage_table_name()).upsert(
        {
            "user_id": row.user_id,
            "usage_date": row.usage_date,
            "daily_count": row.daily_count,
            "updated_at": row.updated_at.isoformat(),
        },
        on_conflict="user_id,usage_date",
    ).execute()

    if hasattr(response, 'error') and response.error:
        raise Exception(f"Supabase error: {response.error}")

    return AIUsageQuotaRow.model_validate(response.data[0]) if response.data else row
