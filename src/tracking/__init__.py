# src/tracking/__init__.py — v1
"""Execution tracking and cost estimation."""
