# src/pipeline/prompt_renderer.py — v1
"""Prompt placeholder substitution.

``{param}`` and ``{param.field}`` are replaced by the resolved input (or,
failing that, the node parameter of the same name). Unmatched
placeholders are left verbatim and reported.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Mapping

from recipeflow.pipeline.input_resolver import MISSING, get_nested

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z0-9_]+)*)\}")


def to_prompt_text(value: Any) -> str:
    """String form of a value inside a prompt."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, indent=2, default=str)
    return str(value)


def _lookup(name: str, values: Mapping[str, Any], defaults: Mapping[str, Any]) -> Any:
    for source in (values, defaults):
        if name in source:
            return source[name]
        head, _, path = name.partition(".")
        if path and head in source:
            found = get_nested(source[head], path)
            if found is not MISSING:
                return found
    return MISSING


def find_placeholders(template: str) -> list[str]:
    return _PLACEHOLDER_RE.findall(template)


def render_prompt(
    template: str,
    values: Mapping[str, Any],
    defaults: Mapping[str, Any] | None = None,
    *,
    node_id: str | None = None,
) -> tuple[str, list[str]]:
    """Substitute placeholders.

    Returns:
        (rendered text, names of placeholders left unresolved)
    """
    defaults = defaults or {}
    unresolved: list[str] = []

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        value = _lookup(name, values, defaults)
        if value is MISSING:
            unresolved.append(name)
            return match.group(0)
        return to_prompt_text(value)

    rendered = _PLACEHOLDER_RE.sub(substitute, template)
    if unresolved:
        logger.warning(
            "Unresolved placeholders in prompt for node '%s': %s",
            node_id or "?", sorted(set(unresolved)),
        )
    return rendered, unresolved


_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


def parse_json_output(text: str) -> Any:
    """Parse JSON from a model response, also from a fenced markdown block.

    Falls back to the raw text when neither parses.
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    match = _FENCE_RE.search(text)
    if match:
        try:
            return json.loads(match.group(1))
        except json.JSONDecodeError:
            logger.debug("Fenced block is not valid JSON; keeping raw text")
    return text
