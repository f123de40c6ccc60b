# src/providers/registry.py — v1
"""Capability provider registry keyed by (provider, model_name).

Lookup order for ``resolve(provider, model_name)``:
  1. instance or factory registered for the exact (provider, model_name)
  2. instance or factory registered for (provider, "*")
  3. adapter class path from config/providers.py (lazy import)

Resolved instances are cached per key so nodes sharing a model reuse
one client.
"""

from __future__ import annotations

import importlib
import logging
from typing import Callable, Union

from recipeflow.config.providers import PROVIDER_ALIASES, PROVIDER_REGISTRY
from recipeflow.config.settings import Settings
from recipeflow.core.errors import RecipeFlowError
from recipeflow.providers.base_provider import BaseCapabilityProvider

logger = logging.getLogger(__name__)

ANY_MODEL = "*"

# model_name -> provider instance
ProviderFactory = Callable[[str], BaseCapabilityProvider]
ProviderSource = Union[BaseCapabilityProvider, ProviderFactory]


class UnsupportedProviderError(RecipeFlowError, ValueError):
    """Raised when no adapter is registered for a provider."""


class ProviderRegistry:
    """Open registry of capability providers.

    New providers are added with ``register_provider`` (an instance or a
    factory) or ``register_class_path`` without touching the orchestrator.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        class_paths: dict[str, str] | None = None,
    ) -> None:
        self._settings = settings
        self._class_paths = dict(PROVIDER_REGISTRY if class_paths is None else class_paths)
        self._aliases = dict(PROVIDER_ALIASES)
        self._sources: dict[tuple[str, str], ProviderSource] = {}
        self._instances: dict[tuple[str, str], BaseCapabilityProvider] = {}

    def canonical(self, provider: str) -> str:
        name = provider.strip().lower()
        return self._aliases.get(name, name)

    def register_provider(
        self,
        provider: str,
        source: ProviderSource,
        model_name: str = ANY_MODEL,
    ) -> None:
        """Register a provider instance or factory.

        Args:
            provider: Provider identifier (aliases are normalized).
            source: Provider instance, or callable taking the model name.
            model_name: Exact model, or "*" for every model of the provider.
        """
        key = (self.canonical(provider), model_name)
        self._sources[key] = source
        # Drop cached instances the new registration shadows
        for cached in list(self._instances):
            if cached[0] == key[0] and (model_name == ANY_MODEL or cached[1] == model_name):
                del self._instances[cached]
        logger.info("Registered capability provider: %s/%s", key[0], model_name)

    def register_class_path(self, provider: str, class_path: str) -> None:
        """Register a custom adapter by fully qualified class path."""
        self._class_paths[self.canonical(provider)] = class_path
        logger.info("Registered provider adapter: %s -> %s", provider, class_path)

    def register_alias(self, alias: str, provider: str) -> None:
        self._aliases[alias.strip().lower()] = self.canonical(provider)

    def available(self) -> list[str]:
        names = set(self._class_paths) | {p for p, _ in self._sources}
        return sorted(names)

    def resolve(self, provider: str, model_name: str) -> BaseCapabilityProvider:
        """Return the provider serving (provider, model_name).

        Raises:
            UnsupportedProviderError: If nothing is registered for the provider.
        """
        name = self.canonical(provider)
        key = (name, model_name)
        if key in self._instances:
            return self._instances[key]

        source = self._sources.get(key) or self._sources.get((name, ANY_MODEL))
        if source is not None:
            instance = source if isinstance(source, BaseCapabilityProvider) else source(model_name)
        elif name in self._class_paths:
            instance = self._instantiate(name, model_name)
        else:
            raise UnsupportedProviderError(
                f"Unsupported capability provider: {provider!r}. "
                f"Available: {', '.join(self.available())}"
            )

        self._instances[key] = instance
        logger.debug("Resolved provider %s/%s", name, model_name)
        return instance

    def _instantiate(self, name: str, model_name: str) -> BaseCapabilityProvider:
        adapter_cls = _import_class(self._class_paths[name])
        init_kwargs: dict[str, object] = {"model": model_name}

        # Resolve credentials from settings
        settings = self._settings
        if settings is not None:
            if name == "anthropic":
                init_kwargs["api_key"] = settings.anthropic_api_key
            elif name == "openai":
                init_kwargs["api_key"] = settings.openai_api_key
            elif name == "google":
                init_kwargs["api_key"] = settings.google_api_key
            elif name == "ollama":
                init_kwargs["host"] = settings.ollama_base_url

        logger.debug("Creating provider client: provider=%s, model=%s", name, model_name)
        return adapter_cls(**init_kwargs)


def _import_class(class_path: str) -> type:
    """Dynamically import a class from its fully qualified path."""
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
