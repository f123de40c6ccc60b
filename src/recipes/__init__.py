# src/recipes/__init__.py — v1
"""Recipe definition store and built-in recipes."""
