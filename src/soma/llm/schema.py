"""Translate one canonical output schema into each provider family's shape.

Three families are supported:

- tool-call providers take a self-contained JSON Schema as the forced tool's
  input schema (:func:`to_tool_schema`);
- JSON-mode providers have no schema channel, so the schema travels as text
  inside the system prompt (:func:`to_json_mode_prompt`);
- declarative providers accept their own response-schema dialect with an
  upper-case type enum (:func:`to_gemini_schema`).
"""

from __future__ import annotations

import copy
import json
from typing import Any, Dict, Optional

from soma import logger as logger_mod

from .types import CanonicalSchema

log = logger_mod.get_logger()

_REF_PREFIXES = ("#/definitions/", "#/$defs/")
_ROOT_KEYS = ("definitions", "$defs", "$schema")

GEMINI_TYPES = {
    "object": "OBJECT",
    "array": "ARRAY",
    "string": "STRING",
    "number": "NUMBER",
    "integer": "INTEGER",
    "boolean": "BOOLEAN",
}

JSON_MODE_INSTRUCTION = (
    "Respond ONLY with a single valid JSON value that matches this JSON Schema. "
    "No markdown, no code fences, no prose.\nJSON Schema:\n"
)


class _UnresolvableRef(Exception):
    pass


def _definitions(schema: CanonicalSchema) -> Dict[str, Any]:
    defs: Dict[str, Any] = {}
    defs.update(schema.get("$defs") or {})
    defs.update(schema.get("definitions") or {})
    return defs


def _ref_name(ref: str) -> str:
    for prefix in _REF_PREFIXES:
        if ref.startswith(prefix):
            return ref[len(prefix) :]
    raise _UnresolvableRef(f"unsupported $ref {ref!r}")


def _resolve(node: Any, defs: Dict[str, Any], seen: tuple) -> Any:
    if isinstance(node, list):
        return [_resolve(item, defs, seen) for item in node]
    if not isinstance(node, dict):
        return node

    ref = node.get("$ref")
    if isinstance(ref, str):
        name = _ref_name(ref)
        if name not in defs:
            raise _UnresolvableRef(f"missing definition {name!r}")
        if name in seen:
            raise _UnresolvableRef(f"self-referencing definition {name!r}")
        target = _resolve(defs[name], defs, seen + (name,))
        # Sibling keywords (e.g. description) win over the referenced node.
        siblings = {k: _resolve(v, defs, seen) for k, v in node.items() if k != "$ref"}
        return {**target, **siblings}

    return {k: _resolve(v, defs, seen) for k, v in node.items()}


def has_refs(node: Any) -> bool:
    """True when ``$ref`` appears anywhere in the tree."""
    if isinstance(node, dict):
        return "$ref" in node or any(has_refs(v) for v in node.values())
    if isinstance(node, list):
        return any(has_refs(v) for v in node)
    return False


def resolve_refs(schema: CanonicalSchema) -> CanonicalSchema:
    """Inline every ``$ref`` against the schema's ``definitions``.

    Refs are resolved at any depth, including inside ``items`` of array
    properties and inside definitions that point at other definitions. The
    result carries no ``$ref``, ``definitions`` or ``$schema`` keys.

    A missing definition or a self-referencing definition cannot be inlined;
    in that case the schema is returned unchanged and the provider is left to
    reject it.
    """

    defs = _definitions(schema)
    try:
        root = {k: v for k, v in schema.items() if k not in _ROOT_KEYS}
        return _resolve(root, defs, ())
    except _UnresolvableRef as e:
        log.warning("Schema $ref left unresolved (%s); passing schema through", e)
        return copy.deepcopy(schema)


def to_tool_schema(schema: CanonicalSchema) -> CanonicalSchema:
    return resolve_refs(schema)


def to_json_mode_prompt(system_prompt: str, schema: Optional[CanonicalSchema]) -> str:
    if schema is None:
        return system_prompt
    resolved = resolve_refs(schema)
    return f"{system_prompt}\n\n{JSON_MODE_INSTRUCTION}{json.dumps(resolved, indent=2)}"


def _gemini_node(node: Any) -> Any:
    if not isinstance(node, dict):
        return node

    kind = node.get("type")
    if kind not in GEMINI_TYPES:
        return node

    out: Dict[str, Any] = {"type": GEMINI_TYPES[kind]}
    if "description" in node:
        out["description"] = node["description"]
    if kind == "string" and "enum" in node:
        out["enum"] = list(node["enum"])
    if kind == "object":
        props = node.get("properties")
        if props:
            out["properties"] = {k: _gemini_node(v) for k, v in props.items()}
        if node.get("required"):
            out["required"] = list(node["required"])
    elif kind == "array" and "items" in node:
        out["items"] = _gemini_node(node["items"])
    return out


def to_gemini_schema(schema: CanonicalSchema) -> Dict[str, Any]:
    """Map a canonical schema onto Gemini's ``response_schema`` dialect.

    Keywords Gemini does not understand (``additionalProperties``,
    ``minItems``, bounds, ...) are dropped. Nodes of an unsupported kind are
    passed through unchanged so the provider's own validation reports them.
    """

    return _gemini_node(resolve_refs(schema))
