"""Cache management endpoints."""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from esg_intelligence.bootstrap import ServiceContainer

from ..dependencies import get_container
from ..schemas import CacheInvalidateResponse, CacheSweepResponse, PopularQueriesResponse

router = APIRouter()


@router.get("/stats")
async def cache_stats(container: ServiceContainer = Depends(get_container)) -> Dict[str, Any]:
    return {
        "success": True,
        "cache": await container.cache.get_stats(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/popular", response_model=PopularQueriesResponse)
async def popular_queries(
    limit: int = Query(default=10, ge=1, le=100),
    container: ServiceContainer = Depends(get_container),
) -> PopularQueriesResponse:
    queries = await container.cache.popular(limit)
    return PopularQueriesResponse(queries=queries, count=len(queries))


@router.post("/sweep", response_model=CacheSweepResponse)
async def sweep_cache(container: ServiceContainer = Depends(get_container)) -> CacheSweepResponse:
    return CacheSweepResponse(removed=await container.cache.sweep_expired())


@router.delete("", response_model=CacheInvalidateResponse)
async def invalidate_cache(
    pattern: str = Query(..., min_length=1),
    container: ServiceContainer = Depends(get_container),
) -> CacheInvalidateResponse:
    removed = await container.cache.invalidate(pattern)
    return CacheInvalidateResponse(pattern=pattern, removed=removed)
