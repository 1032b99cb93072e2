"""LLM provider abstractions (Anthropic / DeepSeek / OpenAI / Gemini).

Design goals:
- Keep provider-specific SDKs isolated.
- Translate one canonical schema into each provider's structured-output API.
- Try a fixed chain of providers and report which one answered.
"""

from .errors import (
    ConfigurationError,
    ExhaustionError,
    ExtractionError,
    LLMError,
    ProviderResponseError,
    SchemaValidationError,
)
from .factory import build_llm
from .fallback import DEFAULT_CHAIN, generate_with_fallback
from .types import GenerationMetadata, GenerationResult, ProviderConfig

__all__ = [
    "ConfigurationError",
    "DEFAULT_CHAIN",
    "ExhaustionError",
    "ExtractionError",
    "GenerationMetadata",
    "GenerationResult",
    "LLMError",
    "ProviderConfig",
    "ProviderResponseError",
    "SchemaValidationError",
    "build_llm",
    "generate_with_fallback",
]
