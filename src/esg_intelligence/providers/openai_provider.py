"""
OpenAI-compatible chat completion providers (OpenAI and Groq).
"""

from typing import Optional

import structlog
from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI

from .base import (
    BaseProvider,
    FailureKind,
    GenerationOptions,
    ProviderError,
    failure_kind_for_status,
)

logger = structlog.get_logger(__name__)

SYSTEM_PROMPT = (
    "You are an ESG intelligence analyst for a petrochemical company. "
    "Answer with structured, executive-ready business intelligence."
)


class OpenAIProvider(BaseProvider):
    """OpenAI chat completions via the official SDK."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-3.5-turbo",
        base_url: Optional[str] = None,
        timeout: float = 15.0,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        super().__init__(api_key, model, timeout)
        self.client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,  # We handle retries ourselves
        )

    async def _generate(self, prompt: str, options: GenerationOptions) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=options.temperature,
                max_tokens=options.max_output_tokens,
                timeout=options.timeout,
            )
        except APITimeoutError as e:
            raise ProviderError(
                f"{self.name} request timed out", provider=self.name, kind=FailureKind.TIMEOUT
            ) from e
        except APIConnectionError as e:
            raise ProviderError(
                f"{self.name} connection error: {e}", provider=self.name, kind=FailureKind.TRANSPORT
            ) from e
        except APIStatusError as e:
            raise ProviderError(
                f"{self.name} API error: {e.status_code} - {e.message}",
                provider=self.name,
                status_code=e.status_code,
                kind=failure_kind_for_status(e.status_code),
            ) from e

        if not response.choices or response.choices[0].message is None:
            raise ProviderError(
                f"Invalid {self.name} API response structure",
                provider=self.name,
                kind=FailureKind.MALFORMED_RESPONSE,
            )

        return response.choices[0].message.content or ""

    async def aclose(self) -> None:
        await self.client.close()


class GroqProvider(OpenAIProvider):
    """Groq through its OpenAI-compatible endpoint."""

    name = "groq"

    def __init__(
        self,
        api_key: str,
        model: str = "llama3-8b-8192",
        base_url: str = "https://api.groq.com/openai/v1",
        timeout: float = 15.0,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        super().__init__(api_key, model=model, base_url=base_url, timeout=timeout, client=client)
