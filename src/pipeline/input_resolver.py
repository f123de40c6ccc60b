# src/pipeline/input_resolver.py — v1
"""Resolve a node's input mapping into concrete values.

Pure and deterministic: the same (mapping, outputs, external input)
always yields the same result and nothing is mutated.

Source references:
    external_input.<path>   field of the caller-supplied input (dot path)
    <outputKey>[.<path>]    output of an upstream node
    value:<literal>         inline literal (bool / number / string)
"""

from __future__ import annotations

import re
from typing import Any, Mapping

from recipeflow.core.errors import UnresolvedReferenceError
from recipeflow.core.models import EXTERNAL_INPUT_PREFIX, LITERAL_PREFIX
from recipeflow.pipeline.validator import split_reference

MISSING = object()
_INT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(\d+\.\d*|\.\d+)$")


def parse_literal(raw: str) -> Any:
    """Parse a ``value:`` literal: true/false → bool, plain numerals → int/float.

    Anything else is returned exactly as written.
    """
    if raw == "true":
        return True
    if raw == "false":
        return False
    if _INT_RE.match(raw):
        return int(raw)
    if _FLOAT_RE.match(raw):
        return float(raw)
    return raw


def get_nested(value: Any, path: str) -> Any:
    """Walk a dot path through dicts (by key) and lists (by index).

    Returns the MISSING sentinel when any segment is missing.
    """
    current = value
    for part in path.split("."):
        if isinstance(current, Mapping):
            if part not in current:
                return MISSING
            current = current[part]
        elif isinstance(current, list) and part.lstrip("-").isdigit():
            index = int(part)
            if not -len(current) <= index < len(current):
                return MISSING
            current = current[index]
        else:
            return MISSING
    return current


def resolve_inputs(
    input_mapping: Mapping[str, str],
    node_outputs: Mapping[str, Any],
    external_input: Mapping[str, Any] | None,
) -> dict[str, Any]:
    """Resolve every mapped parameter.

    Args:
        input_mapping: param name → source reference.
        node_outputs: output_key → output of completed upstream nodes.
        external_input: Caller-supplied input for the run.

    Raises:
        UnresolvedReferenceError: On the first parameter that cannot be
            resolved (missing external field, missing output key, or a
            nested path absent from the output).
    """
    external = external_input or {}
    resolved: dict[str, Any] = {}

    for param, source in input_mapping.items():
        if source.startswith(LITERAL_PREFIX):
            resolved[param] = parse_literal(source[len(LITERAL_PREFIX):])
            continue

        if source.startswith(EXTERNAL_INPUT_PREFIX):
            path = source[len(EXTERNAL_INPUT_PREFIX):]
            value = get_nested(external, path) if path else MISSING
            if value is MISSING:
                raise UnresolvedReferenceError(
                    param, source, f"external input has no field '{path}'"
                )
            resolved[param] = value
            continue

        # Full reference wins over a dotted split (keys may contain dots)
        if source in node_outputs:
            resolved[param] = node_outputs[source]
            continue

        key, path = split_reference(source)
        if key not in node_outputs:
            raise UnresolvedReferenceError(
                param, source, f"no completed node produced output '{key}'"
            )
        value = node_outputs[key] if path is None else get_nested(node_outputs[key], path)
        if value is MISSING:
            raise UnresolvedReferenceError(
                param, source, f"output '{key}' has no field '{path}'"
            )
        resolved[param] = value

    return resolved
