from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    PROJECT_NAME: str = "Tabisuru AI Budget API"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # Supabase settings
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    USAGE_TABLE_NAME: str = "ai_usage_quotas"

    # Google Gemini
    GOOGLE_API_KEY: Optional[str] = None
    LLM_MODEL_NAME: str = "gemini-1.5-flash"
    LLM_MAX_OUTPUT_TOKENS: int = 800
    LLM_TEMPERATURE: float = 0.3 # low for repeatable estimates

    # Quota settings
    AI_DAILY_LIMIT: int = 15 # per user per day
    AI_MINUTE_LIMIT: int = 15 # per client per rolling minute
    SERVICE_RPM_LIMIT: int = 10 # all users together, protects the shared API key
    SERVICE_DAILY_LIMIT: int = 200 # all users together, per UTC day

    # Client side
    LOCAL_QUOTA_STORAGE_KEY: str = "gemini_api_usage"
    BUDGET_API_BASE_URL: str = "http://localhost:8000"

    class Config:
        env_file = ".env"

settings = Settings()
