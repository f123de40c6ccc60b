# src/providers/adapters/echo_adapter.py — v1
"""Deterministic offline provider.

Returns the rendered prompt as text and the prompt bytes as media, so
recipes can be dry-run and tested without network access or API keys.
"""

from __future__ import annotations

from typing import Any

from recipeflow.providers.base_provider import BaseCapabilityProvider
from recipeflow.providers.models import GenerationResult, MediaArtifact

_MEDIA_TYPES = {"image": "image/png", "video": "video/mp4"}


class EchoAdapter(BaseCapabilityProvider):
    """Echo provider serving every capability."""

    capabilities = frozenset({"text", "image", "video"})

    def __init__(self, model: str = "echo", **kwargs: Any) -> None:
        self._model = model

    async def generate_text(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        system: str | None = None,
    ) -> GenerationResult:
        content = prompt
        if max_tokens:
            content = " ".join(prompt.split(" ")[:max_tokens])
        return self._result(prompt, content=content)

    async def generate_image(
        self, prompt: str, *, options: dict[str, Any] | None = None
    ) -> GenerationResult:
        return self._media(prompt, "image", options)

    async def generate_video(
        self, prompt: str, *, options: dict[str, Any] | None = None
    ) -> GenerationResult:
        return self._media(prompt, "video", options)

    def _media(self, prompt: str, kind: str, options: dict[str, Any] | None) -> GenerationResult:
        count = int((options or {}).get("n", 1))
        media = [
            MediaArtifact(media_type=_MEDIA_TYPES[kind], data=prompt.encode("utf-8"))
            for _ in range(count)
        ]
        return self._result(prompt, media=media)

    def _result(
        self,
        prompt: str,
        *,
        content: str = "",
        media: list[MediaArtifact] | None = None,
    ) -> GenerationResult:
        return GenerationResult(
            content=content,
            media=media or [],
            input_tokens=len(prompt.split()),
            output_tokens=len(content.split()),
            model=self._model,
            provider="echo",
        )

    @property
    def provider_name(self) -> str:
        return "echo"

    @property
    def model_name(self) -> str:
        return self._model
