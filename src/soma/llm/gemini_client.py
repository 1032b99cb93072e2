from __future__ import annotations

from typing import Any, Optional

from soma.config import GEMINI_TEMPERATURE
from soma import logger as logger_mod

from .base import LLMClient, LLMConfig
from .errors import ConfigurationError, ProviderResponseError
from .schema import to_gemini_schema
from .types import CanonicalSchema

log = logger_mod.get_logger()


class GeminiLLM(LLMClient):
    """Google Gemini client (google-generativeai).

    The converted schema goes straight into the generation config as
    ``response_schema``; sampling temperature is fixed low.
    """

    def __init__(self, config: LLMConfig, *, sdk: Any = None):
        self._cfg = config
        api_key = config.require_api_key()

        if sdk is None:
            try:
                import google.generativeai as sdk  # type: ignore
            except Exception as e:  # noqa: BLE001
                raise ConfigurationError(
                    "google-generativeai SDK not installed. "
                    "Add dependency 'google-generativeai'."
                ) from e

        sdk.configure(api_key=api_key)
        self._genai = sdk

    def _extract_output_text(self, resp: Any) -> str:
        candidates = getattr(resp, "candidates", None) or []
        if candidates:
            content = getattr(candidates[0], "content", None)
            parts = getattr(content, "parts", None) or []
            text = "".join(getattr(p, "text", "") or "" for p in parts)
            if text.strip():
                return text.strip()

        raise ProviderResponseError(
            f"{self._cfg.provider}/{self._cfg.model} returned no candidate text"
        )

    def call(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: Optional[CanonicalSchema] = None,
    ) -> str:
        generation_config: dict[str, Any] = {"temperature": GEMINI_TEMPERATURE}
        if schema is not None:
            generation_config["response_mime_type"] = "application/json"
            generation_config["response_schema"] = to_gemini_schema(schema)

        model = self._genai.GenerativeModel(
            model_name=self._cfg.model,
            generation_config=generation_config,
        )
        log.debug(
            "Calling %s/%s (schema=%s)",
            self._cfg.provider,
            self._cfg.model,
            schema is not None,
        )
        resp = model.generate_content(
            f"{system_prompt}\n\n{user_prompt}",
            request_options={"timeout": self._cfg.timeout_s},
        )
        return self._extract_output_text(resp)
