from fastapi import APIRouter
from .endpoints.budget import router as budget

api_router = APIRouter()
api_router.include_router(budget, tags=["budget"])
