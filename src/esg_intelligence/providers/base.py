"""
Base text-generation provider and the tagged result type returned to the core.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Literal, Optional, Union

import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger(__name__)


class FailureKind(str, Enum):
    """Why a single generation attempt failed."""

    HTTP_ERROR = "http_error"
    RATE_LIMITED = "rate_limited"
    AUTHENTICATION = "authentication"
    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    MALFORMED_RESPONSE = "malformed_response"


class GenerationOptions(BaseModel):
    """Per-call generation parameters."""

    temperature: float = Field(default=0.3, ge=0, le=2, description="Sampling temperature")
    max_output_tokens: int = Field(default=4000, ge=1, description="Maximum tokens to generate")
    timeout: float = Field(default=15.0, gt=0, description="Request timeout in seconds")


class GenerationSuccess(BaseModel):
    """Decoded text from a successful provider call."""

    status: Literal["success"] = "success"
    provider: str
    text: str
    model: Optional[str] = None


class GenerationFailure(BaseModel):
    """A failed provider call, decoded at the client boundary."""

    status: Literal["failure"] = "failure"
    provider: str
    kind: FailureKind
    message: str
    status_code: Optional[int] = None


GenerationResult = Union[GenerationSuccess, GenerationFailure]


class ProviderError(Exception):
    """Base exception for provider-related errors."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        kind: FailureKind = FailureKind.HTTP_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize provider error.

        Args:
            message: Error message
            provider: Provider name
            status_code: HTTP status code if applicable
            kind: Failure category
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status_code = status_code
        self.kind = kind
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)

    @classmethod
    def from_failure(cls, failure: GenerationFailure) -> "ProviderError":
        return cls(
            failure.message,
            provider=failure.provider,
            status_code=failure.status_code,
            kind=failure.kind,
        )


def failure_kind_for_status(status_code: int) -> FailureKind:
    """Map an HTTP status to a failure kind."""
    if status_code == 429:
        return FailureKind.RATE_LIMITED
    if status_code in (401, 403):
        return FailureKind.AUTHENTICATION
    if status_code in (408, 504):
        return FailureKind.TIMEOUT
    return FailureKind.HTTP_ERROR


class BaseProvider(ABC):
    """Abstract base class for text-generation providers.

    Subclasses implement ``_generate`` and raise ``ProviderError`` on any
    failure; ``generate`` turns that into a ``GenerationFailure`` so callers
    never see raw provider payloads or exceptions.
    """

    name: str = "base"

    def __init__(self, api_key: Optional[str], model: str, timeout: float = 15.0):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    @abstractmethod
    async def _generate(self, prompt: str, options: GenerationOptions) -> str:
        """Return generated text or raise ProviderError."""

    async def generate(
        self, prompt: str, options: Optional[GenerationOptions] = None
    ) -> GenerationResult:
        options = options or GenerationOptions(timeout=self.timeout)
        self._log_request(prompt, options)

        try:
            text = await self._generate(prompt, options)
        except ProviderError as e:
            self._log_error(e)
            return GenerationFailure(
                provider=self.name,
                kind=e.kind,
                message=e.message,
                status_code=e.status_code,
            )

        if not text or not text.strip():
            return GenerationFailure(
                provider=self.name,
                kind=FailureKind.MALFORMED_RESPONSE,
                message=f"{self.name} returned an empty response",
            )

        logger.info("provider_response", provider=self.name, model=self.model, chars=len(text))
        return GenerationSuccess(provider=self.name, text=text, model=self.model)

    async def aclose(self) -> None:
        """Release network resources."""

    def _log_request(self, prompt: str, options: GenerationOptions) -> None:
        logger.debug(
            "provider_request",
            provider=self.name,
            model=self.model,
            prompt_chars=len(prompt),
            temperature=options.temperature,
            max_output_tokens=options.max_output_tokens,
        )

    def _log_error(self, error: ProviderError) -> None:
        logger.warning(
            "provider_error",
            provider=self.name,
            model=self.model,
            kind=error.kind.value,
            status_code=error.status_code,
            error=error.message,
        )
