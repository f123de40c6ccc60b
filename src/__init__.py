# src/__init__.py — v1
"""recipeflow — recipe DAG orchestration engine."""

from recipeflow.version import __version__

__all__ = ["__version__"]
