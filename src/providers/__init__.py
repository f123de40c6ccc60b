# src/providers/__init__.py — v1
"""Capability providers and their registry."""
