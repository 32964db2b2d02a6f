from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
from datetime import datetime, timezone
from app.core.lifespan import lifespan
from app.api.v1.api import api_router
from app.core.config import settings

# Initialize FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Quota-gated AI budget suggestions for group plans",
    version=settings.VERSION,
    lifespan=lifespan
)

# CORS middleware configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


@app.get("/")
async def root():
    """Root endpoint to check if the API is running."""
    return {
        "message": f"Welcome to {settings.PROJECT_NAME}",
        "status": "running",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

app.include_router(api_router, prefix=settings.API_PREFIX)

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
