from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .types import AttemptFailure


class LLMError(RuntimeError):
    pass


class ConfigurationError(LLMError):
    """Raised when a provider cannot be set up (missing credential or SDK)."""


class ProviderResponseError(LLMError):
    """Raised when a reachable provider returned empty or malformed output."""


class ExtractionError(LLMError):
    """Raised when no parseable JSON could be recovered from model text."""


class SchemaValidationError(LLMError):
    """Raised when parsed JSON does not satisfy the requested schema."""


class ExhaustionError(LLMError):
    """Every configured provider/model failed for a single generation call."""

    def __init__(self, failures: Sequence["AttemptFailure"]):
        self.failures = tuple(failures)
        details = "; ".join(
            f"{f.config.provider}/{f.config.model}: {f.error}" for f in self.failures
        )
        super().__init__(f"All AI providers failed. {details}")
