"""Request and response schemas for the HTTP API."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class AnalyzeRequest(BaseModel):
    """Analysis request body.

    ``query`` is left untyped so a missing or non-string value reaches the
    orchestrator and is rejected as ``INVALID_QUERY``.
    """

    query: Any = Field(default=None, description="Natural-language ESG question")
    prefer_speed: bool = Field(default=False, description="Favour fast providers")


class AnalyzeResponse(BaseModel):
    success: bool = True
    data: Dict[str, Any]
    cached: bool
    provider: Optional[str] = None
    latency_ms: float
    timestamp: datetime
    request_id: Optional[str] = None


class ErrorDetail(BaseModel):
    code: str
    message: str
    timestamp: datetime
    request_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: ErrorDetail


class CacheInvalidateResponse(BaseModel):
    success: bool = True
    pattern: str
    removed: int


class CacheSweepResponse(BaseModel):
    success: bool = True
    removed: int


class PopularQueriesResponse(BaseModel):
    success: bool = True
    queries: List[Dict[str, Any]]
    count: int


class SuggestedQueriesResponse(BaseModel):
    success: bool = True
    queries: List[str]
    suggestions: List[str] = Field(description="Same list as ``queries``")
    categories: Dict[str, List[str]]
    source: str
    timestamp: datetime
