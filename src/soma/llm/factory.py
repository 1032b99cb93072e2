from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from soma import config

from .anthropic_client import AnthropicLLM
from .base import LLMClient, LLMConfig
from .errors import ConfigurationError
from .gemini_client import GeminiLLM
from .openai_client import OpenAILLM


@dataclass(frozen=True)
class ProviderFamily:
    client_cls: Callable[[LLMConfig], LLMClient]
    api_key_env: str
    base_url: Optional[str] = None


PROVIDERS: Dict[str, ProviderFamily] = {
    "anthropic": ProviderFamily(AnthropicLLM, config.ANTHROPIC_API_KEY_ENV),
    "deepseek": ProviderFamily(
        OpenAILLM, config.DEEPSEEK_API_KEY_ENV, base_url=config.DEEPSEEK_BASE_URL
    ),
    "openai": ProviderFamily(OpenAILLM, config.OPENAI_API_KEY_ENV),
    "gemini": ProviderFamily(GeminiLLM, config.GEMINI_API_KEY_ENV),
}


def build_llm(
    *, provider: str, model: str, timeout_s: Optional[float] = None
) -> LLMClient:
    """Factory for provider clients.

    Providers:
    - anthropic (forced tool call)
    - deepseek, openai (JSON mode)
    - gemini (declarative response schema)

    Extend by adding new provider clients and mapping them in ``PROVIDERS``.
    """

    p = provider.lower().strip()
    family = PROVIDERS.get(p)
    if family is None:
        raise ConfigurationError(f"Unknown LLM provider: {provider}")

    return family.client_cls(
        LLMConfig(
            provider=p,
            model=model,
            api_key_env=family.api_key_env,
            timeout_s=config.LLM_TIMEOUT_S if timeout_s is None else timeout_s,
            base_url=family.base_url,
        )
    )
