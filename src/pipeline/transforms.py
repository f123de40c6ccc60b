# src/pipeline/transforms.py — v1
"""Data-processing transforms for ``data_processing`` nodes.

A transform receives the node's resolved inputs and returns its output.
No AI call is made. The transform is selected by ``parameters.transform``
(or the legacy ``combinationLogic`` / ``combineLogic`` keys).

Built-ins:
    passthrough     single input → that value, several → dict of inputs
    collect         input values as a list (optionally flattened)
    merge_by_index  zip a primary list with a media list, uploading bytes
    upload_media    upload every media artifact, return {url, media_type}
"""

from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from recipeflow.core.models import Node
from recipeflow.storage.base_object_storage import BaseObjectStorage

logger = logging.getLogger(__name__)

DEFAULT_TRANSFORM = "passthrough"


@dataclass
class TransformContext:
    """What a transform may use besides its inputs."""

    node: Node
    storage: BaseObjectStorage | None = None
    execution_id: str | None = None

    @property
    def parameters(self) -> dict[str, Any]:
        return self.node.parameters


Transform = Callable[[dict[str, Any], TransformContext], Awaitable[Any]]


class UnknownTransformError(ValueError):
    """Raised when a node names a transform that is not registered."""


# --- Helpers ---


def _pick(inputs: dict[str, Any], name: str | None, position: int) -> Any:
    if name:
        if name not in inputs:
            raise ValueError(f"Input '{name}' is not mapped")
        return inputs[name]
    values = list(inputs.values())
    if position >= len(values):
        raise ValueError(f"Transform expects at least {position + 1} input(s), got {len(values)}")
    return values[position]


def _as_artifact(value: Any) -> dict[str, Any] | None:
    """Normalize one media entry (artifact dict, list of artifacts, raw bytes)."""
    if value is None:
        return None
    if isinstance(value, list):
        return _as_artifact(value[0]) if value else None
    if isinstance(value, (bytes, bytearray)):
        return {"url": None, "data": bytes(value), "media_type": "application/octet-stream"}
    if isinstance(value, dict):
        data = value.get("data", value.get("buffer"))
        return {
            "url": value.get("url") or value.get("imageUrl") or value.get("videoUrl"),
            "data": data,
            "media_type": value.get("media_type") or value.get("mediaType") or "application/octet-stream",
        }
    if isinstance(value, str):
        return {"url": value, "data": None, "media_type": "application/octet-stream"}
    raise ValueError(f"Unsupported media value: {type(value).__name__}")


def _flatten_media(value: Any) -> list[Any]:
    if isinstance(value, list):
        flat: list[Any] = []
        for item in value:
            flat.extend(_flatten_media(item))
        return flat
    return [value]


async def _store_artifact(
    artifact: dict[str, Any], ctx: TransformContext, index: int
) -> dict[str, Any]:
    """Upload artifact bytes (if any) and return its public form."""
    url = artifact["url"]
    if artifact["data"] is not None:
        if ctx.storage is None:
            raise ValueError("Object storage is required to upload media bytes")
        ext = mimetypes.guess_extension(artifact["media_type"]) or ".bin"
        path = f"{ctx.execution_id or 'adhoc'}/{ctx.node.id}/{index}{ext}"
        url = await ctx.storage.upload(artifact["data"], path, artifact["media_type"])
        logger.debug("Uploaded media %d for node '%s' → %s", index, ctx.node.id, url)
    return {
        "url": url,
        "media_type": artifact["media_type"],
        "uploaded_at": datetime.now(timezone.utc).isoformat() if artifact["data"] is not None else None,
    }


# --- Built-in transforms ---


async def passthrough(inputs: dict[str, Any], ctx: TransformContext) -> Any:
    if len(inputs) == 1:
        return next(iter(inputs.values()))
    return dict(inputs)


async def collect(inputs: dict[str, Any], ctx: TransformContext) -> list[Any]:
    values = list(inputs.values())
    if ctx.parameters.get("flatten"):
        flat: list[Any] = []
        for value in values:
            flat.extend(value if isinstance(value, list) else [value])
        return flat
    return values


async def merge_by_index(inputs: dict[str, Any], ctx: TransformContext) -> list[Any]:
    """Attach media[i] (uploaded) to primary[i].

    Parameters: ``primary`` / ``media`` (input names, default first and
    second input), ``mediaField`` (default "image").
    """
    primary = _pick(inputs, ctx.parameters.get("primary"), 0)
    media = _pick(inputs, ctx.parameters.get("media"), 1)
    field_name = ctx.parameters.get("mediaField", "image")

    if not isinstance(primary, list):
        primary = [primary]
    if not isinstance(media, list):
        media = [media]
    if len(media) != len(primary):
        logger.warning(
            "Node '%s': merging %d items with %d media entries",
            ctx.node.id, len(primary), len(media),
        )

    merged: list[Any] = []
    for index, item in enumerate(primary):
        artifact = _as_artifact(media[index]) if index < len(media) else None
        stored = await _store_artifact(artifact, ctx, index) if artifact else None
        if isinstance(item, dict):
            merged.append({**item, field_name: stored})
        else:
            merged.append({"value": item, field_name: stored})
    return merged


async def upload_media(inputs: dict[str, Any], ctx: TransformContext) -> list[dict[str, Any]]:
    media = _pick(inputs, ctx.parameters.get("media"), 0)
    uploaded: list[dict[str, Any]] = []
    for index, entry in enumerate(_flatten_media(media)):
        artifact = _as_artifact(entry)
        if artifact is not None:
            uploaded.append(await _store_artifact(artifact, ctx, index))
    return uploaded


TRANSFORMS: dict[str, Transform] = {
    "passthrough": passthrough,
    "collect": collect,
    "merge_by_index": merge_by_index,
    "upload_media": upload_media,
}

TRANSFORM_ALIASES: dict[str, str] = {
    "merge_details_with_images": "merge_by_index",
    "merge_scenes_with_images": "merge_by_index",
}


def transform_name(node: Node) -> str:
    params = node.parameters
    return (
        params.get("transform")
        or params.get("combinationLogic")
        or params.get("combineLogic")
        or DEFAULT_TRANSFORM
    )


def get_transform(name: str, registry: dict[str, Transform] | None = None) -> Transform:
    transforms = TRANSFORMS if registry is None else registry
    canonical = TRANSFORM_ALIASES.get(name, name)
    if canonical not in transforms:
        raise UnknownTransformError(
            f"Unknown transform: {name!r}. Available: {', '.join(sorted(transforms))}"
        )
    return transforms[canonical]
