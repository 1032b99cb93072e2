from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

CanonicalSchema = Dict[str, Any]


@dataclass(frozen=True)
class GenerationRequest:
    system_prompt: str
    user_prompt: str
    schema: Optional[CanonicalSchema] = None


@dataclass(frozen=True)
class ProviderConfig:
    provider: str
    model: str

    def __str__(self) -> str:
        return f"{self.provider}/{self.model}"


@dataclass(frozen=True)
class GenerationMetadata:
    """Provenance of a successful generation."""

    provider: str
    model: str
    duration_ms: int


@dataclass(frozen=True)
class AttemptFailure:
    config: ProviderConfig
    error: Exception


@dataclass(frozen=True)
class GenerationResult:
    """Provider-neutral result container."""

    data: str
    metadata: GenerationMetadata
    failures: Tuple[AttemptFailure, ...] = ()
