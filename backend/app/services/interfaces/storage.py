"""
Object storage interface for uploaded listing images.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StoredObject:
    name: str
    size: Optional[int] = None


class StorageError(Exception):
    """Storage backend refused or failed the operation."""


class ObjectAlreadyExists(StorageError):
    pass


class ObjectStorage(ABC):
    """
    Interface for a single bucket of publicly readable objects.

    Implementations:
    - LocalObjectStorage: files on disk served by the app under /media
    - SupabaseObjectStorage: Supabase Storage over HTTP
    """

    def __init__(self, bucket: str):
        self.bucket = bucket

    @abstractmethod
    async def list_objects(self, prefix: str) -> list[StoredObject]:
        """Objects directly under `prefix` (names relative to it)."""

    @abstractmethod
    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        """
        Store `data` at `path`. Never overwrites.

        Raises:
            ObjectAlreadyExists: if `path` is taken
        """

    @abstractmethod
    async def remove(self, paths: list[str]) -> None:
        """Delete objects; missing paths are ignored."""

    @abstractmethod
    def public_url(self, path: str) -> str:
        """URL the object can be fetched from without credentials."""

    def path_from_url(self, url: Optional[str]) -> Optional[str]:
        """Object path inside this bucket for a URL produced by `public_url`."""
        if not url:
            return None
        match = re.search(rf"{re.escape(self.bucket)}/([^?#]+)", url)
        return match.group(1) if match else None
