"""Build provider clients from settings."""

from typing import Dict

import structlog

from esg_intelligence.config.settings import Settings

from .base import BaseProvider
from .gemini_provider import GeminiProvider
from .mock_provider import MockProvider
from .openai_provider import GroqProvider, OpenAIProvider

logger = structlog.get_logger(__name__)


def build_providers(settings: Settings) -> Dict[str, BaseProvider]:
    """Create a client for every configured provider, keyed by name.

    Providers without an API key are skipped. With ``use_mock_providers`` a
    ``MockProvider`` stands in for every name in ``provider_order``.
    """
    timeout = settings.provider_timeout_seconds

    if settings.use_mock_providers:
        logger.info("using_mock_providers", providers=settings.provider_order)
        return {name: MockProvider(name=name) for name in settings.provider_order}

    providers: Dict[str, BaseProvider] = {}
    for name in settings.provider_order:
        api_key = settings.api_key_for(name)
        if not api_key:
            logger.warning("provider_not_configured", provider=name)
            continue

        if name == "gemini":
            providers[name] = GeminiProvider(
                api_key=api_key,
                model=settings.gemini_model,
                base_url=settings.gemini_base_url,
                timeout=timeout,
            )
        elif name == "groq":
            providers[name] = GroqProvider(
                api_key=api_key,
                model=settings.groq_model,
                base_url=settings.groq_base_url,
                timeout=timeout,
            )
        elif name == "openai":
            providers[name] = OpenAIProvider(
                api_key=api_key, model=settings.openai_model, timeout=timeout
            )
        else:
            logger.warning("unknown_provider_skipped", provider=name)

    return providers
