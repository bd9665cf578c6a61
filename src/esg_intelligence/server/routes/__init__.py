"""API routers."""

from fastapi import APIRouter

from .analysis import router as analysis_router
from .analytics import router as analytics_router
from .cache import router as cache_router
from .health import router as health_router
from .providers import router as providers_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(analysis_router, prefix="/api", tags=["analysis"])
api_router.include_router(analytics_router, prefix="/api", tags=["analytics"])
api_router.include_router(providers_router, prefix="/api/ai-providers", tags=["providers"])
api_router.include_router(cache_router, prefix="/api/cache", tags=["cache"])

__all__ = ["api_router"]
