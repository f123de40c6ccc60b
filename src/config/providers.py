# src/config/providers.py — v1
"""Declarative capability provider configuration.

Fully qualified adapter class paths, imported lazily by
providers/registry.py the first time a provider is resolved.
"""

from __future__ import annotations

PROVIDER_REGISTRY: dict[str, str] = {
    "anthropic": "recipeflow.providers.adapters.anthropic_adapter.AnthropicAdapter",
    "openai": "recipeflow.providers.adapters.openai_adapter.OpenAIAdapter",
    "google": "recipeflow.providers.adapters.google_adapter.GoogleAdapter",
    "ollama": "recipeflow.providers.adapters.ollama_adapter.OllamaAdapter",
    "echo": "recipeflow.providers.adapters.echo_adapter.EchoAdapter",
}

# Alternative provider names found in stored recipes.
PROVIDER_ALIASES: dict[str, str] = {
    "gemini": "google",
    "claude": "anthropic",
    "gpt": "openai",
}
