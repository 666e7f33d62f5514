"""
docpipe/services/upload_service.py

Orchestrates forwarding an uploaded file to object storage:

    UploadedDocument
      └─ object key  <prefix>/<uuid4>-<sanitised filename>
           └─ ObjectStorage.put()  → StoredObject
                └─ Map → UploadResponse

The multipart body is fully received before this service is called, so the
remote upload never races the request stream.
"""

from __future__ import annotations

import uuid

from docpipe.core.config import settings
from docpipe.core.exceptions import EmptyFileError
from docpipe.core.filenames import sanitize_filename
from docpipe.core.logger import get_logger
from docpipe.models.conversion_models import UploadedDocument
from docpipe.models.upload_models import UploadResponse
from docpipe.storage.b2_storage import B2ObjectStorage
from docpipe.storage.base import ObjectStorage

logger = get_logger(__name__)


class UploadService:
    """Stores uploaded files (damage-report photos, documents) in a remote bucket."""

    def __init__(
        self,
        storage: ObjectStorage | None = None,
        key_prefix: str | None = None,
    ) -> None:
        self._storage: ObjectStorage = storage or B2ObjectStorage()
        self._key_prefix: str = (key_prefix if key_prefix is not None else settings.b2_key_prefix).strip("/")

    @property
    def storage(self) -> ObjectStorage:
        return self._storage

    async def upload(self, document: UploadedDocument) -> UploadResponse:
        """
        Store one document and return its public URL.

        Raises:
            EmptyFileError            : The upload has no content.
            StorageNotConfiguredError : Storage credentials are missing.
            UpstreamUploadFailed      : The remote store failed.
        """
        if not document.content:
            raise EmptyFileError("Uploaded file is empty.")

        key = self.object_key(document.filename)
        stored = await self._storage.put(
            key,
            document.content,
            document.content_type or "application/octet-stream",
        )
        logger.info("Stored upload as '%s' (%d bytes).", stored.key, stored.size)
        return UploadResponse(success=True, url=stored.url, file_name=stored.key)

    def object_key(self, filename: str | None) -> str:
        """Build a collision-free key; the client name is kept only as a sanitised suffix."""
        name = f"{uuid.uuid4()}-{sanitize_filename(filename, 'upload')}"
        return f"{self._key_prefix}/{name}" if self._key_prefix else name


# ── Module-level singleton ─────────────────────────────────────────────────────

upload_service = UploadService()


def get_upload_service() -> UploadService:
    return upload_service
