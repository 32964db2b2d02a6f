from contextlib import asynccontextmanager
from fastapi import FastAPI
from app.core.logging import setup_logging
from app.integrations.supabase_connect import initialize_supabase
from app.integrations.llm_client import initialize_llm_clients

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Context Manager for FastAPI application lifespan events.
    Ensures the Supabase and Gemini clients exist before requests are served.
    """
    setup_logging()
    await initialize_supabase()
    initialize_llm_clients()
    yield # Application will run and handle requests here
