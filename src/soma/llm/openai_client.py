from __future__ import annotations

from typing import Any, Optional

from soma import logger as logger_mod

from .base import LLMClient, LLMConfig
from .errors import ConfigurationError, ProviderResponseError
from .schema import to_json_mode_prompt
from .types import CanonicalSchema

log = logger_mod.get_logger()


class OpenAILLM(LLMClient):
    """OpenAI-compatible chat client (OpenAI, DeepSeek).

    These providers have no schema channel in JSON mode: the schema is
    embedded in the system prompt and ``response_format`` only forces the
    reply to be syntactically valid JSON.
    """

    def __init__(self, config: LLMConfig, *, client: Any = None):
        self._cfg = config
        api_key = config.require_api_key()

        if client is None:
            try:
                from openai import OpenAI  # type: ignore
            except Exception as e:  # noqa: BLE001
                raise ConfigurationError(
                    "openai SDK not installed. Add dependency 'openai'."
                ) from e

            kwargs: dict[str, Any] = {"api_key": api_key}
            if config.base_url:
                kwargs["base_url"] = config.base_url
            client = OpenAI(**kwargs)

        self._client = client

    def _extract_output_text(self, resp: Any) -> str:
        choices = getattr(resp, "choices", None) or []
        if not choices:
            raise ProviderResponseError(
                f"{self._cfg.provider}/{self._cfg.model} returned no choices"
            )
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        if not isinstance(content, str) or not content.strip():
            raise ProviderResponseError(
                f"{self._cfg.provider}/{self._cfg.model} returned empty message content"
            )
        return content.strip()

    def call(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: Optional[CanonicalSchema] = None,
    ) -> str:
        request: dict[str, Any] = {
            "model": self._cfg.model,
            "messages": [
                {
                    "role": "system",
                    "content": to_json_mode_prompt(system_prompt, schema),
                },
                {"role": "user", "content": user_prompt},
            ],
            "timeout": self._cfg.timeout_s,
        }
        if schema is not None:
            request["response_format"] = {"type": "json_object"}

        log.debug(
            "Calling %s/%s (json_mode=%s)",
            self._cfg.provider,
            self._cfg.model,
            schema is not None,
        )
        resp = self._client.chat.completions.create(**request)
        return self._extract_output_text(resp)
