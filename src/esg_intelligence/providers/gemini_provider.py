"""
Gemini provider over the Generative Language REST API.
"""

from typing import Any, Dict, Optional

import httpx
import structlog

from .base import (
    BaseProvider,
    FailureKind,
    GenerationOptions,
    ProviderError,
    failure_kind_for_status,
)

logger = structlog.get_logger(__name__)


class GeminiProvider(BaseProvider):
    """Gemini ``generateContent`` client."""

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash-latest",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__(api_key, model, timeout)
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    async def _generate(self, prompt: str, options: GenerationOptions) -> str:
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": options.temperature,
                "maxOutputTokens": options.max_output_tokens,
            },
        }

        try:
            response = await self._client.post(
                self.endpoint,
                params={"key": self.api_key},
                json=body,
                timeout=options.timeout,
            )
        except httpx.TimeoutException as e:
            raise ProviderError(
                f"Gemini request timed out: {e}", provider=self.name, kind=FailureKind.TIMEOUT
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(
                f"Gemini transport error: {e}", provider=self.name, kind=FailureKind.TRANSPORT
            ) from e

        if response.status_code >= 400:
            raise ProviderError(
                f"Gemini API error: {response.status_code} - {response.text[:500]}",
                provider=self.name,
                status_code=response.status_code,
                kind=failure_kind_for_status(response.status_code),
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(
                "Gemini returned a non-JSON body",
                provider=self.name,
                status_code=response.status_code,
                kind=FailureKind.MALFORMED_RESPONSE,
            ) from e

        return self._extract_text(data)

    def _extract_text(self, data: Dict[str, Any]) -> str:
        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(
                "Invalid Gemini API response structure",
                provider=self.name,
                kind=FailureKind.MALFORMED_RESPONSE,
                details={"keys": sorted(data) if isinstance(data, dict) else []},
            ) from e

        texts = [part.get("text", "") for part in parts if isinstance(part, dict)]
        return "".join(texts)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
