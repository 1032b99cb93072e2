from __future__ import annotations

import json
import re
from typing import Any, Optional

from jsonschema import validate
from jsonschema.exceptions import ValidationError as _SchemaValidationError

from .errors import SchemaValidationError

# Only a fence wrapping the whole reply is removed; fences inside string
# values are content.
_FENCE_OPEN = re.compile(r"^\s*```[a-zA-Z]*[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?```\s*$")
_VALUE_START = re.compile(r"[\[{]")
_DECODER = json.JSONDecoder()


def strip_fences(text: str) -> str:
    return _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", text, count=1), count=1).strip()


def _first_embedded_value(text: str) -> Optional[Any]:
    for match in _VALUE_START.finditer(text):
        try:
            value, _ = _DECODER.raw_decode(text, match.start())
        except ValueError:
            continue
        return value
    return None


def extract_json(text: Optional[str]) -> Optional[Any]:
    """Recover a JSON value from free-form or fenced model text.

    Tries the text as-is, then with a wrapping code fence removed, then
    decodes from each ``{`` or ``[`` in turn and returns the first value that
    parses. Returns ``None`` when nothing parses; callers must treat that as
    a failure, not substitute a default.
    """

    if not text:
        return None

    for candidate in (text.strip(), strip_fences(text)):
        try:
            return json.loads(candidate)
        except ValueError:
            pass

    return _first_embedded_value(strip_fences(text))


def validate_json(instance: Any, schema: dict[str, Any]) -> None:
    try:
        validate(instance=instance, schema=schema)
    except _SchemaValidationError as e:
        path = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise SchemaValidationError(
            f"JSON schema validation failed at {path}: {e.message}"
        ) from e
