from __future__ import annotations

import json
from typing import Any, Optional

from soma.config import ANTHROPIC_MAX_TOKENS, STRUCTURED_TOOL_NAME
from soma import logger as logger_mod

from .base import LLMClient, LLMConfig
from .errors import ConfigurationError, ProviderResponseError
from .schema import to_tool_schema
from .types import CanonicalSchema

log = logger_mod.get_logger()


class AnthropicLLM(LLMClient):
    """Anthropic Messages API client.

    Structured output is forced through a single tool whose ``input_schema``
    is the resolved schema; ``tool_choice`` makes the model call it.
    """

    def __init__(
        self,
        config: LLMConfig,
        *,
        client: Any = None,
        tool_name: str = STRUCTURED_TOOL_NAME,
        max_tokens: int = ANTHROPIC_MAX_TOKENS,
    ):
        self._cfg = config
        self._tool_name = tool_name
        self._max_tokens = max_tokens
        api_key = config.require_api_key()

        if client is None:
            try:
                from anthropic import Anthropic  # type: ignore
            except Exception as e:  # noqa: BLE001
                raise ConfigurationError(
                    "anthropic SDK not installed. Add dependency 'anthropic'."
                ) from e
            client = Anthropic(api_key=api_key)

        self._client = client

    def _tool_definition(self, schema: CanonicalSchema) -> dict[str, Any]:
        return {
            "name": self._tool_name,
            "description": "Submit the response as structured data matching the input schema.",
            "input_schema": to_tool_schema(schema),
        }

    def _extract_tool_input(self, resp: Any) -> str:
        for block in getattr(resp, "content", None) or []:
            if getattr(block, "type", None) != "tool_use":
                continue
            if getattr(block, "name", None) != self._tool_name:
                continue
            payload = getattr(block, "input", None)
            if payload is None:
                break
            return json.dumps(payload, ensure_ascii=False)

        raise ProviderResponseError(
            f"{self._cfg.provider}/{self._cfg.model} did not return a "
            f"'{self._tool_name}' tool_use block"
        )

    def _extract_output_text(self, resp: Any) -> str:
        for block in getattr(resp, "content", None) or []:
            if getattr(block, "type", None) != "text":
                continue
            text = getattr(block, "text", None)
            if isinstance(text, str) and text.strip():
                return text.strip()

        raise ProviderResponseError(
            f"{self._cfg.provider}/{self._cfg.model} returned no text content"
        )

    def call(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: Optional[CanonicalSchema] = None,
    ) -> str:
        request: dict[str, Any] = {
            "model": self._cfg.model,
            "max_tokens": self._max_tokens,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_prompt}],
            "timeout": self._cfg.timeout_s,
        }
        if schema is not None:
            request["tools"] = [self._tool_definition(schema)]
            request["tool_choice"] = {"type": "tool", "name": self._tool_name}

        log.debug(
            "Calling %s/%s (tool=%s)",
            self._cfg.provider,
            self._cfg.model,
            schema is not None,
        )
        resp = self._client.messages.create(**request)
        if schema is not None:
            return self._extract_tool_input(resp)
        return self._extract_output_text(resp)
