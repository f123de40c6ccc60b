# src/providers/base_provider.py — v1
"""Abstract capability provider interface.

A provider wraps one AI vendor SDK for one model and exposes up to three
capabilities: text, image and video generation. Recipes never talk to an
SDK directly; the executor calls ``generate()`` with the capability implied
by the node type.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Literal

from recipeflow.core.errors import RecipeFlowError
from recipeflow.providers.models import GenerationResult

Capability = Literal["text", "image", "video"]

CAPABILITY_BY_NODE_TYPE: dict[str, Capability] = {
    "text_generation": "text",
    "image_generation": "image",
    "video_generation": "video",
}


class UnsupportedCapabilityError(RecipeFlowError):
    """Raised when a provider cannot serve the requested capability."""

    def __init__(self, provider: str, capability: str) -> None:
        self.provider = provider
        self.capability = capability
        super().__init__(f"Provider {provider!r} does not support {capability} generation")


class BaseCapabilityProvider(ABC):
    """Unified interface for all capability providers."""

    capabilities: frozenset[str] = frozenset({"text"})

    @abstractmethod
    async def generate_text(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        system: str | None = None,
    ) -> GenerationResult:
        """Text completion for a single user prompt."""

    async def generate_image(
        self, prompt: str, *, options: dict[str, Any] | None = None
    ) -> GenerationResult:
        """Image generation. Returns media artifacts."""
        raise UnsupportedCapabilityError(self.provider_name, "image")

    async def generate_video(
        self, prompt: str, *, options: dict[str, Any] | None = None
    ) -> GenerationResult:
        """Video generation. Returns media artifacts."""
        raise UnsupportedCapabilityError(self.provider_name, "video")

    async def generate(
        self,
        capability: Capability,
        prompt: str,
        *,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        options: dict[str, Any] | None = None,
    ) -> GenerationResult:
        """Dispatch a prompt to the method serving ``capability``.

        Raises:
            UnsupportedCapabilityError: If the provider does not serve it.
        """
        options = options or {}
        if capability == "text":
            return await self.generate_text(
                prompt,
                temperature=temperature,
                max_tokens=max_tokens,
                system=options.get("system"),
            )
        if capability == "image":
            return await self.generate_image(prompt, options=options)
        if capability == "video":
            return await self.generate_video(prompt, options=options)
        raise UnsupportedCapabilityError(self.provider_name, capability)

    def supports(self, capability: str) -> bool:
        return capability in self.capabilities

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (anthropic, openai, google, ollama, echo)."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Model served by this instance."""
