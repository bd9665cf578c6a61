"""ESG analysis endpoints."""

import structlog
from fastapi import APIRouter, Depends, Request

from esg_intelligence.bootstrap import ServiceContainer
from esg_intelligence.orchestrator import AnalyzeResult

from ..dependencies import get_container
from ..schemas import AnalyzeRequest, AnalyzeResponse

logger = structlog.get_logger(__name__)
router = APIRouter()

SMART_SEARCH_NAMESPACE = "smart_search"


def _to_response(result: AnalyzeResult, request: Request) -> AnalyzeResponse:
    return AnalyzeResponse(
        data=result.payload,
        cached=result.cached,
        provider=result.provider,
        latency_ms=round(result.latency_ms, 1),
        timestamp=result.timestamp,
        request_id=getattr(request.state, "request_id", None),
    )


@router.post("/esg-intelligence", response_model=AnalyzeResponse)
async def esg_intelligence(
    body: AnalyzeRequest,
    request: Request,
    container: ServiceContainer = Depends(get_container),
) -> AnalyzeResponse:
    """Analyze an ESG query, serving from cache when possible."""
    result = await container.orchestrator.analyze(body.query, prefer_speed=body.prefer_speed)
    return _to_response(result, request)


@router.post("/esg-smart-search", response_model=AnalyzeResponse)
async def esg_smart_search(
    body: AnalyzeRequest,
    request: Request,
    container: ServiceContainer = Depends(get_container),
) -> AnalyzeResponse:
    """Same analysis, cached separately from plain queries."""
    result = await container.orchestrator.analyze(
        body.query, namespace=SMART_SEARCH_NAMESPACE, prefer_speed=body.prefer_speed
    )
    return _to_response(result, request)
