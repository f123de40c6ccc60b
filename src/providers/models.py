# src/providers/models.py — v1
"""Provider-side types: MediaArtifact, GenerationResult."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from recipeflow.core.models import TokenUsage


class MediaArtifact(BaseModel):
    """One generated image or video.

    Providers return either a hosted ``url`` or the raw ``data`` bytes (or
    both). Bytes are uploaded to object storage by data_processing nodes.
    """

    media_type: str
    url: str | None = None
    data: bytes | None = None

    def to_output(self) -> dict[str, Any]:
        """Plain dict form used as a node output."""
        return {"url": self.url, "data": self.data, "media_type": self.media_type}


class GenerationResult(BaseModel):
    """Normalized response from any capability provider."""

    content: str = ""
    media: list[MediaArtifact] = Field(default_factory=list)
    input_tokens: int = 0
    output_tokens: int = 0
    model: str
    provider: str
    latency_ms: int = 0
    raw_response: Any = None

    @property
    def token_usage(self) -> TokenUsage:
        return TokenUsage(input_tokens=self.input_tokens, output_tokens=self.output_tokens)
