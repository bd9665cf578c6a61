"""Analytics event models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from esg_intelligence.cache.key import DEFAULT_NAMESPACE


class QueryEvent(BaseModel):
    """Outcome of one analysis request."""

    query: str
    category: str
    namespace: str = DEFAULT_NAMESPACE
    provider: Optional[str] = None
    success: bool
    cached: bool = False
    response_time_ms: float = Field(ge=0)
    quality_score: Optional[float] = Field(default=None, ge=0, le=100)
    error_code: Optional[str] = None
    created_at: datetime


class PopularQuery(BaseModel):
    query: str
    category: str
    count: int = Field(ge=1)
