# src/providers/adapters/google_adapter.py — v1
"""Google Gemini adapter implementing BaseCapabilityProvider.

Text via generate_content; image models (e.g. gemini-2.5-flash-image)
return inline image parts from the same call.
"""

from __future__ import annotations

import time
from typing import Any

from recipeflow.providers.base_provider import BaseCapabilityProvider
from recipeflow.providers.models import GenerationResult, MediaArtifact


class GoogleAdapter(BaseCapabilityProvider):
    """Google Gemini adapter."""

    capabilities = frozenset({"text", "image"})

    def __init__(self, model: str = "gemini-2.0-flash", api_key: str = "", **kwargs: Any):
        self._model = model
        self._api_key = api_key

    def _generative_model(self, system: str | None = None):
        import google.generativeai as genai

        genai.configure(api_key=self._api_key)
        return genai.GenerativeModel(self._model, system_instruction=system)

    async def generate_text(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        system: str | None = None,
    ) -> GenerationResult:
        model = self._generative_model(system)
        generation_config: dict[str, Any] = {"temperature": temperature}
        if max_tokens:
            generation_config["max_output_tokens"] = max_tokens

        t0 = time.monotonic()
        resp = await model.generate_content_async(prompt, generation_config=generation_config)
        latency = int((time.monotonic() - t0) * 1000)

        return self._to_result(resp, content=resp.text or "", latency=latency)

    async def generate_image(
        self, prompt: str, *, options: dict[str, Any] | None = None
    ) -> GenerationResult:
        model = self._generative_model()

        t0 = time.monotonic()
        resp = await model.generate_content_async(prompt)
        latency = int((time.monotonic() - t0) * 1000)

        media: list[MediaArtifact] = []
        for candidate in resp.candidates:
            for part in candidate.content.parts:
                inline = getattr(part, "inline_data", None)
                if inline is not None and inline.data:
                    media.append(MediaArtifact(media_type=inline.mime_type, data=inline.data))
        return self._to_result(resp, media=media, latency=latency)

    def _to_result(
        self,
        resp: Any,
        *,
        latency: int,
        content: str = "",
        media: list[MediaArtifact] | None = None,
    ) -> GenerationResult:
        usage = getattr(resp, "usage_metadata", None)
        return GenerationResult(
            content=content,
            media=media or [],
            input_tokens=getattr(usage, "prompt_token_count", 0) if usage else 0,
            output_tokens=getattr(usage, "candidates_token_count", 0) if usage else 0,
            model=self._model,
            provider="google",
            latency_ms=latency,
            raw_response=resp,
        )

    @property
    def provider_name(self) -> str:
        return "google"

    @property
    def model_name(self) -> str:
        return self._model
