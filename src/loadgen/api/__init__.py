from fastapi import APIRouter
from src.loadgen.api.search import router as search_router
from src.loadgen.api.health import router as health_router

api_router = APIRouter()

api_router.include_router(health_router, prefix="/api", tags=["health"])
api_router.include_router(search_router, tags=["search"])
