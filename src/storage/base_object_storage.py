# src/storage/base_object_storage.py — v1
"""Abstract object storage interface.

Used by data_processing transforms to persist generated media bytes and
hand downstream nodes a URL instead of the payload.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseObjectStorage(ABC):
    """Unified interface for media storage backends."""

    @abstractmethod
    async def upload(self, data: bytes, path: str, content_type: str) -> str:
        """Store bytes at a relative path and return a URL for them."""

    @abstractmethod
    async def read(self, path: str) -> bytes:
        """Read bytes back from a relative path."""

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check if an object exists at a relative path."""
