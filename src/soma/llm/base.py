from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Protocol

from .errors import ConfigurationError
from .types import CanonicalSchema


@dataclass(frozen=True)
class LLMConfig:
    provider: str
    model: str
    api_key_env: str
    timeout_s: float = 60.0
    base_url: Optional[str] = None

    def require_api_key(self) -> str:
        api_key = os.getenv(self.api_key_env)
        if not api_key:
            raise ConfigurationError(
                f"Missing env var {self.api_key_env} for {self.provider} API key"
            )
        return api_key


class LLMClient(Protocol):
    """Small interface for "prompt pair -> raw model text" calls.

    When a schema is supplied the returned text is the provider's structured
    output serialized as JSON.
    """

    def call(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: Optional[CanonicalSchema] = None,
    ) -> str:
        raise NotImplementedError
