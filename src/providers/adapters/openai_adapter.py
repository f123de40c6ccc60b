# src/providers/adapters/openai_adapter.py — v1
"""OpenAI adapter implementing BaseCapabilityProvider.

Text via Chat Completions, images via the Images API, video via the
Videos API (create, poll, download).
"""

from __future__ import annotations

import asyncio
import base64
import logging
import time
from typing import Any

from recipeflow.providers.base_provider import BaseCapabilityProvider
from recipeflow.providers.models import GenerationResult, MediaArtifact

logger = logging.getLogger(__name__)

_VIDEO_POLL_INTERVAL_S = 5.0


class OpenAIAdapter(BaseCapabilityProvider):
    """OpenAI GPT / image / video adapter."""

    capabilities = frozenset({"text", "image", "video"})

    def __init__(self, model: str = "gpt-4o", api_key: str = "", **kwargs: Any):
        self._model = model
        self._api_key = api_key
        self.__client = None

    @property
    def _client(self):
        if self.__client is None:
            try:
                import openai
            except ImportError as e:
                raise ImportError(
                    "openai package required: pip install recipeflow[openai]"
                ) from e
            self.__client = openai.AsyncOpenAI(api_key=self._api_key or None)
        return self.__client

    async def generate_text(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        system: str | None = None,
    ) -> GenerationResult:
        messages: list[dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens:
            kwargs["max_tokens"] = max_tokens

        t0 = time.monotonic()
        resp = await self._client.chat.completions.create(**kwargs)
        latency = int((time.monotonic() - t0) * 1000)

        usage = resp.usage
        return GenerationResult(
            content=resp.choices[0].message.content or "",
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            model=self._model,
            provider="openai",
            latency_ms=latency,
            raw_response=resp,
        )

    async def generate_image(
        self, prompt: str, *, options: dict[str, Any] | None = None
    ) -> GenerationResult:
        options = options or {}
        kwargs: dict[str, Any] = {
            "model": self._model,
            "prompt": prompt,
            "n": int(options.get("n", 1)),
        }
        if options.get("size"):
            kwargs["size"] = options["size"]
        if options.get("quality"):
            kwargs["quality"] = options["quality"]
        # gpt-image models always return base64; dall-e needs asking
        if self._model.startswith("dall-e"):
            kwargs["response_format"] = "b64_json"

        t0 = time.monotonic()
        resp = await self._client.images.generate(**kwargs)
        latency = int((time.monotonic() - t0) * 1000)

        media = [
            MediaArtifact(
                media_type="image/png",
                url=getattr(item, "url", None),
                data=base64.b64decode(item.b64_json) if getattr(item, "b64_json", None) else None,
            )
            for item in resp.data or []
        ]
        usage = getattr(resp, "usage", None)
        return GenerationResult(
            media=media,
            input_tokens=getattr(usage, "input_tokens", 0) or 0,
            output_tokens=getattr(usage, "output_tokens", 0) or 0,
            model=self._model,
            provider="openai",
            latency_ms=latency,
            raw_response=resp,
        )

    async def generate_video(
        self, prompt: str, *, options: dict[str, Any] | None = None
    ) -> GenerationResult:
        options = options or {}
        kwargs: dict[str, Any] = {"model": self._model, "prompt": prompt}
        if options.get("seconds") or options.get("duration"):
            kwargs["seconds"] = str(options.get("seconds") or options.get("duration"))
        if options.get("size"):
            kwargs["size"] = options["size"]

        t0 = time.monotonic()
        video = await self._client.videos.create(**kwargs)
        while video.status not in ("completed", "failed"):
            await asyncio.sleep(_VIDEO_POLL_INTERVAL_S)
            video = await self._client.videos.retrieve(video.id)
        if video.status == "failed":
            error = getattr(video, "error", None)
            raise RuntimeError(f"Video generation failed: {getattr(error, 'message', error)}")

        content = await self._client.videos.download_content(video.id, variant="video")
        latency = int((time.monotonic() - t0) * 1000)
        logger.debug("Video %s ready in %dms", video.id, latency)

        return GenerationResult(
            media=[MediaArtifact(media_type="video/mp4", data=content.content)],
            model=self._model,
            provider="openai",
            latency_ms=latency,
            raw_response=video,
        )

    @property
    def provider_name(self) -> str:
        return "openai"

    @property
    def model_name(self) -> str:
        return self._model
