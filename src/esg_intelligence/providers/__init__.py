"""Text-generation provider clients."""

from .base import (
    BaseProvider,
    FailureKind,
    GenerationFailure,
    GenerationOptions,
    GenerationResult,
    GenerationSuccess,
    ProviderError,
)
from .factory import build_providers
from .gemini_provider import GeminiProvider
from .mock_provider import MockProvider
from .openai_provider import GroqProvider, OpenAIProvider

__all__ = [
    "BaseProvider",
    "FailureKind",
    "GenerationFailure",
    "GenerationOptions",
    "GenerationResult",
    "GenerationSuccess",
    "ProviderError",
    "GeminiProvider",
    "GroqProvider",
    "OpenAIProvider",
    "MockProvider",
    "build_providers",
]
