"""Mock provider for development and tests without real API calls."""

import asyncio
from typing import Optional

from .base import BaseProvider, FailureKind, GenerationOptions, ProviderError


class MockProvider(BaseProvider):
    """Deterministic offline provider.

    ``fail_mode`` makes every call after ``fail_after`` successful calls fail
    with the given kind; ``latency`` simulates network delay in seconds.
    """

    def __init__(
        self,
        name: str = "mock",
        latency: float = 0.0,
        fail_mode: Optional[FailureKind] = None,
        fail_after: int = 0,
        response_text: Optional[str] = None,
    ) -> None:
        super().__init__(api_key=None, model=f"{name}-mock")
        self.name = name
        self.latency = latency
        self.fail_mode = fail_mode
        self.fail_after = fail_after
        self.response_text = response_text
        self.call_count = 0
        self.prompts: list[str] = []

    async def _generate(self, prompt: str, options: GenerationOptions) -> str:
        self.call_count += 1
        self.prompts.append(prompt)

        if self.latency:
            await asyncio.sleep(self.latency)

        if self.fail_mode is not None and self.call_count > self.fail_after:
            status_code = {
                FailureKind.RATE_LIMITED: 429,
                FailureKind.AUTHENTICATION: 401,
                FailureKind.HTTP_ERROR: 503,
            }.get(self.fail_mode)
            raise ProviderError(
                f"Simulated {self.fail_mode.value} from {self.name}",
                provider=self.name,
                status_code=status_code,
                kind=self.fail_mode,
            )

        if self.response_text is not None:
            return self.response_text

        return (
            f"ESG analysis from {self.name}.\n\n"
            "Executive Summary: regulatory, carbon emission and sustainability "
            "implications assessed for the query.\n\n"
            f"Query context: {prompt[-200:]}"
        )
