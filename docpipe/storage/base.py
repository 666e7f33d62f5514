"""
docpipe/storage/base.py

Abstract interface for the object-storage layer.

Services depend only on this interface, never on a concrete bucket API.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class StoredObject:
    """
    An object written to remote storage.

    Attributes:
        key          : Full object key inside the bucket.
        url          : Public URL the object can be downloaded from.
        size         : Number of bytes stored.
        content_sha1 : Hex SHA-1 of the stored bytes.
    """

    key: str
    url: str
    size: int
    content_sha1: str


class ObjectStorage(ABC):
    """Contract every object-storage backend must fulfil."""

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str) -> StoredObject:
        """
        Store *data* under *key* and return where it can be fetched.

        Raises:
            StorageNotConfiguredError : Credentials or bucket are missing.
            UpstreamUploadFailed      : The remote service rejected or failed the upload.
        """

    async def aclose(self) -> None:
        """Release network resources. Default: nothing to release."""
