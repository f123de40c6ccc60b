# src/providers/adapters/ollama_adapter.py — v1
"""Ollama local model adapter implementing BaseCapabilityProvider (text only)."""

from __future__ import annotations

import time
from typing import Any

from recipeflow.providers.base_provider import BaseCapabilityProvider
from recipeflow.providers.models import GenerationResult


class OllamaAdapter(BaseCapabilityProvider):
    """Ollama local LLM adapter."""

    capabilities = frozenset({"text"})

    def __init__(self, model: str = "llama3", host: str = "http://localhost:11434", **kwargs: Any):
        self._model = model
        self._host = host

    async def generate_text(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        system: str | None = None,
    ) -> GenerationResult:
        import ollama

        client = ollama.AsyncClient(host=self._host)
        msgs: list[dict[str, Any]] = []
        if system:
            msgs.append({"role": "system", "content": system})
        msgs.append({"role": "user", "content": prompt})

        options: dict[str, Any] = {"temperature": temperature}
        if max_tokens:
            options["num_predict"] = max_tokens

        t0 = time.monotonic()
        resp = await client.chat(model=self._model, messages=msgs, options=options)
        latency = int((time.monotonic() - t0) * 1000)

        return GenerationResult(
            content=resp["message"]["content"],
            input_tokens=resp.get("prompt_eval_count", 0) or 0,
            output_tokens=resp.get("eval_count", 0) or 0,
            model=self._model,
            provider="ollama",
            latency_ms=latency,
            raw_response=resp,
        )

    @property
    def provider_name(self) -> str:
        return "ollama"

    @property
    def model_name(self) -> str:
        return self._model
