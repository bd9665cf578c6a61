"""Custom exceptions for the ESG intelligence service."""

from typing import Any, Dict, Optional


class ESGIntelligenceError(Exception):
    """Base exception for the ESG intelligence service."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or "INTERNAL_ERROR"
        self.status_code = status_code
        self.details = details or {}


class InvalidQueryError(ESGIntelligenceError):
    """Query is missing, blank or too long."""

    def __init__(
        self,
        message: str = "Query is required and must be a non-empty string",
        error_code: str = "INVALID_QUERY",
        **kwargs,
    ):
        super().__init__(message, error_code=error_code, status_code=400, **kwargs)


class InvalidParameterError(ESGIntelligenceError):
    """A request parameter is outside its allowed range."""

    def __init__(self, message: str, error_code: str = "INVALID_PARAMETER", **kwargs):
        super().__init__(message, error_code=error_code, status_code=400, **kwargs)


class ProviderFailureError(ESGIntelligenceError):
    """Analysis could not be completed by any text-generation provider."""

    def __init__(self, message: str, error_code: str = "AI_SERVICE_UNAVAILABLE", **kwargs):
        super().__init__(message, error_code=error_code, status_code=503, **kwargs)


class NoProviderAvailableError(ProviderFailureError):
    """Every provider is circuit-open or in critical health."""

    def __init__(self, message: str = "No AI providers available", **kwargs):
        super().__init__(message, error_code="NO_PROVIDER_AVAILABLE", **kwargs)


class AllProvidersExhaustedError(ProviderFailureError):
    """All retry attempts failed."""

    def __init__(self, attempts: int, last_error: Optional[str] = None, **kwargs):
        self.attempts = attempts
        self.last_error = last_error or "Unknown error"
        super().__init__(
            f"All AI providers failed after {attempts} attempts: {self.last_error}",
            **kwargs,
        )
        self.details.setdefault("attempts", attempts)
        self.details.setdefault("last_error", self.last_error)


class ProviderNotFoundError(ESGIntelligenceError):
    """Operation referenced a provider name the registry does not know."""

    def __init__(self, provider: str, **kwargs):
        super().__init__(
            f"Unknown provider: {provider}",
            error_code="PROVIDER_NOT_FOUND",
            status_code=404,
            **kwargs,
        )
        self.provider = provider
        self.details["provider"] = provider


class CacheUnavailableError(ESGIntelligenceError):
    """The cache backing store failed on read or write."""

    def __init__(self, message: str = "Cache store unavailable", **kwargs):
        super().__init__(message, error_code="CACHE_UNAVAILABLE", status_code=503, **kwargs)


class AnalyticsUnavailableError(ESGIntelligenceError):
    """The query analytics store failed."""

    def __init__(self, message: str = "Analytics store unavailable", **kwargs):
        super().__init__(message, error_code="ANALYTICS_UNAVAILABLE", status_code=503, **kwargs)


__all__ = [
    "ESGIntelligenceError",
    "InvalidQueryError",
    "InvalidParameterError",
    "ProviderFailureError",
    "NoProviderAvailableError",
    "AllProvidersExhaustedError",
    "ProviderNotFoundError",
    "CacheUnavailableError",
    "AnalyticsUnavailableError",
]
