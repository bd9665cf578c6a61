"""Health check, status and metrics endpoints."""

import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse

from esg_intelligence import __version__
from esg_intelligence.bootstrap import ServiceContainer
from esg_intelligence.telemetry.metrics import render_latest

from ..dependencies import get_container

router = APIRouter()

START_TIME = time.time()

ENDPOINTS = {
    "health": "/health",
    "esg_intelligence": "/api/esg-intelligence",
    "esg_smart_search": "/api/esg-smart-search",
    "provider_stats": "/api/ai-providers/stats",
    "provider_recommendations": "/api/ai-providers/recommendations",
    "provider_health": "/api/ai-providers/health",
    "cache_stats": "/api/cache/stats",
    "popular_queries": "/api/cache/popular",
    "search_analytics": "/api/analytics/search",
    "suggested_queries": "/api/suggested-queries",
    "metrics": "/metrics",
}


@router.get("/health")
async def health(container: ServiceContainer = Depends(get_container)) -> JSONResponse:
    """Service health including cache and provider status."""
    cache_health = await container.cache.health_check()
    provider_summary = container.registry.get_health_summary()

    if cache_health["status"] != "healthy" or provider_summary["overall_status"] == "critical":
        overall = "degraded"
    else:
        overall = "healthy"

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "success": True,
            "status": overall,
            "version": __version__,
            "environment": container.settings.environment,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": time.time() - START_TIME,
            "services": {
                "cache": cache_health,
                "ai_providers": provider_summary,
            },
        },
    )


@router.get("/api/status")
async def api_status(container: ServiceContainer = Depends(get_container)) -> Dict[str, Any]:
    cache_stats = await container.cache.get_stats()
    return {
        "success": True,
        "api": {"version": __version__, "status": "operational", "endpoints": ENDPOINTS},
        "statistics": {
            "cache_entries": cache_stats.get("live_entries"),
            "cache_hits": cache_stats.get("total_hits"),
            "hit_rate": cache_stats.get("hit_rate"),
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/metrics")
async def metrics() -> Response:
    payload, content_type = render_latest()
    return Response(content=payload, media_type=content_type)
