"""Fallback chain over provider/model pairs.

The chain is fixed at configuration time. Providers are tried strictly in
order; the first one that returns non-empty output wins and nothing after it
is called. Each failed attempt is recorded as an :class:`AttemptFailure` and
surfaced in the :class:`ExhaustionError` raised when the chain runs out.
"""

from __future__ import annotations

import time
from typing import Callable, Iterable, List, Optional, Tuple

from soma import config
from soma import logger as logger_mod

from .base import LLMClient
from .errors import ConfigurationError, ExhaustionError, ProviderResponseError
from .factory import PROVIDERS, build_llm
from .types import (
    AttemptFailure,
    CanonicalSchema,
    GenerationMetadata,
    GenerationRequest,
    GenerationResult,
    ProviderConfig,
)

log = logger_mod.get_logger()

ClientFactory = Callable[..., LLMClient]

DEFAULT_CHAIN: Tuple[ProviderConfig, ...] = (
    ProviderConfig("anthropic", "claude-3-5-sonnet-latest"),
    ProviderConfig("deepseek", "deepseek-chat"),
    ProviderConfig("openai", "gpt-4o-mini"),
    ProviderConfig("gemini", "gemini-2.5-flash"),
    ProviderConfig("gemini", "gemini-2.5-pro"),
)


def parse_chain(value: str) -> Tuple[ProviderConfig, ...]:
    """Parse ``"provider:model,provider:model"`` into provider configs."""

    chain: List[ProviderConfig] = []
    for entry in value.split(","):
        entry = entry.strip()
        if not entry:
            continue
        provider, sep, model = entry.partition(":")
        provider, model = provider.strip().lower(), model.strip()
        if not sep or not provider or not model:
            raise ConfigurationError(
                f"Invalid fallback chain entry {entry!r}; expected provider:model"
            )
        if provider not in PROVIDERS:
            raise ConfigurationError(
                f"Unknown LLM provider in fallback chain: {provider}"
            )
        chain.append(ProviderConfig(provider, model))
    return tuple(chain)


def load_chain() -> Tuple[ProviderConfig, ...]:
    if config.LLM_FALLBACK_CHAIN.strip():
        return parse_chain(config.LLM_FALLBACK_CHAIN)
    return DEFAULT_CHAIN


def _attempt(
    factory: ClientFactory,
    provider_config: ProviderConfig,
    request: GenerationRequest,
    timeout_s: float,
) -> Tuple[str, int]:
    client = factory(
        provider=provider_config.provider,
        model=provider_config.model,
        timeout_s=timeout_s,
    )
    start = time.perf_counter()
    data = client.call(request.system_prompt, request.user_prompt, request.schema)
    duration_ms = int(round((time.perf_counter() - start) * 1000))
    if not isinstance(data, str) or not data.strip():
        raise ProviderResponseError(f"{provider_config} returned empty output")
    return data, duration_ms


def generate_with_fallback(
    system_prompt: str,
    user_prompt: str,
    schema: Optional[CanonicalSchema] = None,
    *,
    chain: Optional[Iterable[ProviderConfig]] = None,
    timeout_s: Optional[float] = None,
    client_factory: Optional[ClientFactory] = None,
) -> GenerationResult:
    """Return the first successful generation along the fallback chain.

    ``metadata.duration_ms`` covers only the successful call. Clients are
    built per attempt, so a missing credential counts as a failed attempt.
    Raises :class:`ExhaustionError` when every provider fails.
    """

    request = GenerationRequest(system_prompt, user_prompt, schema)
    configs = tuple(chain) if chain is not None else load_chain()
    if not configs:
        raise ConfigurationError("No LLM providers configured for fallback.")

    factory = client_factory or build_llm
    timeout = config.LLM_TIMEOUT_S if timeout_s is None else timeout_s
    failures: List[AttemptFailure] = []

    for provider_config in configs:
        try:
            data, duration_ms = _attempt(factory, provider_config, request, timeout)
        except Exception as e:  # noqa: BLE001
            failures.append(AttemptFailure(provider_config, e))
            log.warning(
                "LLM_FALLBACK_WARNING provider=%s model=%s error=%s message=%s",
                provider_config.provider,
                provider_config.model,
                type(e).__name__,
                str(e)[:200],
            )
            continue

        if failures:
            log.info(
                "%s answered after %d failed attempt(s)", provider_config, len(failures)
            )
        return GenerationResult(
            data=data,
            metadata=GenerationMetadata(
                provider=provider_config.provider,
                model=provider_config.model,
                duration_ms=duration_ms,
            ),
            failures=tuple(failures),
        )

    log.error("❌ All %d LLM providers failed", len(failures))
    raise ExhaustionError(failures)
