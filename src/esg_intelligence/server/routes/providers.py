"""Provider monitoring endpoints."""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from esg_intelligence.bootstrap import ServiceContainer

from ..dependencies import get_container

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/stats")
async def provider_stats(container: ServiceContainer = Depends(get_container)) -> Dict[str, Any]:
    registry = container.registry
    return {
        "success": True,
        "providers": registry.get_statistics(),
        "health_summary": registry.get_health_summary(),
        "recommendations": registry.get_recommendations(),
        "ranking": [
            {"provider": score.provider, "score": round(score.total, 2)}
            for score in container.selector.preview()
        ],
        "timestamp": _now(),
    }


@router.get("/recommendations")
async def provider_recommendations(
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    recommendations = container.registry.get_recommendations()
    return {
        "success": True,
        "recommendations": recommendations,
        "count": len(recommendations),
        "timestamp": _now(),
    }


@router.get("/health")
async def provider_health(container: ServiceContainer = Depends(get_container)) -> Dict[str, Any]:
    summary = container.registry.get_health_summary()
    stats = container.registry.get_statistics()
    total = summary["total"]

    return {
        "success": True,
        "health": {
            "status": summary["overall_status"],
            "providers_total": total,
            "providers_healthy": summary["healthy"],
            "providers_degraded": summary["degraded"],
            "providers_critical": summary["critical"],
            "health_percentage": round(summary["healthy"] / total * 100) if total else 0,
        },
        "providers": [
            {
                "name": name,
                "status": data["health"]["status"],
                "availability": data["health"]["availability"],
                "response_time_ms": data["health"]["response_time_ms"],
                "quality_score": data["health"]["quality_score"],
                "circuit_breaker_state": data["circuit_breaker"]["state"],
            }
            for name, data in stats.items()
        ],
        "timestamp": _now(),
    }


@router.post("/reset")
async def reset_all_providers(
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    container.registry.reset()
    return {"success": True, "reset": container.registry.provider_names}


@router.post("/{name}/reset")
async def reset_provider(
    name: str, container: ServiceContainer = Depends(get_container)
) -> Dict[str, Any]:
    container.registry.reset(name)
    return {"success": True, "reset": [name]}
