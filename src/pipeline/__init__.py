# src/pipeline/__init__.py — v1
"""Validation, planning and execution of recipes."""
