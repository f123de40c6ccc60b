# src/storage/__init__.py — v1
"""Object storage for generated media."""
