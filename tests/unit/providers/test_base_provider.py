# tests/unit/providers/test_base_provider.py — v1
"""Tests for providers/base_provider.py — capability dispatch."""

from __future__ import annotations

import pytest

from recipeflow.providers.base_provider import (
    CAPABILITY_BY_NODE_TYPE,
    BaseCapabilityProvider,
    UnsupportedCapabilityError,
)
from recipeflow.providers.models import GenerationResult


class _TextOnly(BaseCapabilityProvider):
    def __init__(self):
        self.calls: list[dict] = []

    async def generate_text(self, prompt, *, temperature=0.7, max_tokens=None, system=None):
        self.calls.append(
            {"prompt": prompt, "temperature": temperature, "max_tokens": max_tokens, "system": system}
        )
        return GenerationResult(content=prompt.upper(), model="t", provider="textonly")

    @property
    def provider_name(self):
        return "textonly"

    @property
    def model_name(self):
        return "t"


class TestBaseCapabilityProvider:
    def test_cannot_instantiate(self):
        with pytest.raises(TypeError):
            BaseCapabilityProvider()  # type: ignore[abstract]

    @pytest.mark.asyncio
    async def test_dispatch_text(self):
        provider = _TextOnly()
        result = await provider.generate(
            "text", "hi", temperature=0.2, max_tokens=10, options={"system": "be brief"}
        )
        assert result.content == "HI"
        assert provider.calls[0] == {
            "prompt": "hi", "temperature": 0.2, "max_tokens": 10, "system": "be brief",
        }

    @pytest.mark.asyncio
    async def test_image_unsupported_by_default(self):
        with pytest.raises(UnsupportedCapabilityError, match="image"):
            await _TextOnly().generate("image", "a cat")

    @pytest.mark.asyncio
    async def test_video_unsupported_by_default(self):
        with pytest.raises(UnsupportedCapabilityError, match="video"):
            await _TextOnly().generate("video", "a cat")

    def test_supports(self):
        assert _TextOnly().supports("text")
        assert not _TextOnly().supports("image")

    def test_capability_by_node_type(self):
        assert CAPABILITY_BY_NODE_TYPE["image_generation"] == "image"
        assert "data_processing" not in CAPABILITY_BY_NODE_TYPE


class TestGenerationResult:
    def test_token_usage(self):
        result = GenerationResult(model="m", provider="p", input_tokens=3, output_tokens=4)
        assert result.token_usage.total_tokens == 7
