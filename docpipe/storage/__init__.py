"""docpipe/storage/__init__.py — public API of the storage package."""

from docpipe.storage.b2_storage import B2ObjectStorage
from docpipe.storage.base import ObjectStorage, StoredObject

__all__ = [
    "ObjectStorage",
    "StoredObject",
    "B2ObjectStorage",
]
