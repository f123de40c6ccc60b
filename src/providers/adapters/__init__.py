# src/providers/adapters/__init__.py — v1
"""SDK adapters for capability providers."""
