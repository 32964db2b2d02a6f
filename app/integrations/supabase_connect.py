import logging
from supabase import create_client, Client
from app.core.config import settings

logger = logging.getLogger(__name__)

supabase_client: Client = None # Global client instance

async def initialize_supabase():
    global supabase_client
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise ValueError("Supabase URL or Service Role Key not found in environment variables.")

    if supabase_client is None:
        supabase_client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
        logger.info("Supabase client initialized successfully.")
    else:
        logger.info("Supabase client already initialized.")

async def get_supabase_client() -> Client:
    """Returns the initialized Supabase client."""
    if supabase_client is None:
        raise RuntimeError("Supabase client not initialized. Call initialize_supabase() first.")
    return supabase_client

def get_usage_table_name() -> str:
    """Returns the configured usage table name."""
    if not settings.USAGE_TABLE_NAME:
        raise ValueError("Usage table name not found in environment variables.")
    return settings.USAGE_TABLE_NAME
