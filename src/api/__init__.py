# src/api/__init__.py — v1
"""Public facade and API models."""
