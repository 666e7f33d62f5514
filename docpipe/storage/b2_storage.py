"""
docpipe/storage/b2_storage.py

Backblaze B2 implementation of the ObjectStorage interface, speaking the
B2 native API over httpx.

Upload sequence:
    b2_authorize_account   (once; token cached and reused across requests)
      └─ b2_get_upload_url
           └─ POST bytes to the returned upload URL

An expired account token (401 from B2) triggers one re-authorisation and a
single retry of the whole sequence. Every other failure is surfaced as
UpstreamUploadFailed.
"""

from __future__ import annotations

import asyncio
import hashlib
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from docpipe.core.config import settings
from docpipe.core.exceptions import StorageNotConfiguredError, UpstreamUploadFailed
from docpipe.core.logger import get_logger
from docpipe.storage.base import ObjectStorage, StoredObject

logger = get_logger(__name__)


@dataclass(frozen=True)
class _Authorization:
    api_url: str
    token: str
    download_url: str


class _AuthExpired(Exception):
    """B2 answered 401 — the cached account token is no longer valid."""


class B2ObjectStorage(ObjectStorage):
    """
    Uploads objects to one B2 bucket and returns public download URLs.

    The httpx client is created lazily; pass ``transport`` to route
    requests through ``httpx.MockTransport`` in tests.
    """

    API_VERSION = "v2"

    def __init__(
        self,
        key_id: str | None = None,
        application_key: str | None = None,
        bucket_id: str | None = None,
        bucket_name: str | None = None,
        public_url: str | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._key_id = key_id or settings.b2_key_id
        self._application_key = application_key or settings.b2_application_key
        self._bucket_id = bucket_id or settings.b2_bucket_id
        self._bucket_name = bucket_name or settings.b2_bucket_name
        self._public_url = public_url or settings.b2_public_url
        self._api_url = (api_url or settings.b2_api_url).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.storage_timeout_seconds
        self._transport = transport

        self._client: Optional[httpx.AsyncClient] = None
        self._auth: Optional[_Authorization] = None
        self._auth_lock = asyncio.Lock()

    @property
    def configured(self) -> bool:
        return all((self._key_id, self._application_key, self._bucket_id, self._bucket_name))

    # ── ObjectStorage interface ────────────────────────────────────────────────

    async def put(self, key: str, data: bytes, content_type: str) -> StoredObject:
        if not self.configured:
            raise StorageNotConfiguredError("B2 credentials or bucket are not configured.")

        sha1 = hashlib.sha1(data).hexdigest()
        try:
            try:
                file_name = await self._upload(key, data, content_type, sha1)
            except _AuthExpired:
                logger.info("B2 account token expired — re-authorising.")
                self._auth = None
                file_name = await self._upload(key, data, content_type, sha1)
        except _AuthExpired as exc:
            raise UpstreamUploadFailed("B2 rejected the account authorisation.") from exc
        except httpx.HTTPError as exc:
            raise UpstreamUploadFailed(f"B2 request failed: {exc}") from exc

        url = self._object_url(file_name)
        logger.info("Uploaded '%s' (%d bytes) to B2.", file_name, len(data))
        return StoredObject(key=file_name, url=url, size=len(data), content_sha1=sha1)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ── Internals ──────────────────────────────────────────────────────────────

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    async def _authorization(self) -> _Authorization:
        """Return the cached account authorisation, fetching it if needed."""
        async with self._auth_lock:
            if self._auth is None:
                resp = await self._get_client().get(
                    f"{self._api_url}/b2api/{self.API_VERSION}/b2_authorize_account",
                    auth=(self._key_id, self._application_key),
                )
                data = _json_or_raise(resp, "b2_authorize_account")
                try:
                    self._auth = _Authorization(
                        api_url=data["apiUrl"],
                        token=data["authorizationToken"],
                        download_url=data["downloadUrl"],
                    )
                except KeyError as exc:
                    raise UpstreamUploadFailed(
                        f"b2_authorize_account reply is missing {exc}."
                    ) from exc
                logger.debug("B2 account authorised — api: %s", self._auth.api_url)
            return self._auth

    async def _upload(self, key: str, data: bytes, content_type: str, sha1: str) -> str:
        auth = await self._authorization()
        client = self._get_client()

        resp = await client.post(
            f"{auth.api_url}/b2api/{self.API_VERSION}/b2_get_upload_url",
            headers={"Authorization": auth.token},
            json={"bucketId": self._bucket_id},
        )
        target = _json_or_raise(resp, "b2_get_upload_url")

        try:
            upload_url = target["uploadUrl"]
            upload_token = target["authorizationToken"]
        except KeyError as exc:
            raise UpstreamUploadFailed(f"b2_get_upload_url reply is missing {exc}.") from exc

        resp = await client.post(
            upload_url,
            headers={
                "Authorization": upload_token,
                "X-Bz-File-Name": quote(key, safe="/"),
                "Content-Type": content_type or "b2/x-auto",
                "X-Bz-Content-Sha1": sha1,
            },
            content=data,
        )
        uploaded = _json_or_raise(resp, "b2_upload_file")
        return uploaded.get("fileName", key)

    def _object_url(self, file_name: str) -> str:
        base = (self._public_url or (self._auth.download_url if self._auth else "")).rstrip("/")
        return f"{base}/file/{self._bucket_name}/{quote(file_name, safe='/')}"


def _json_or_raise(resp: httpx.Response, operation: str) -> Dict[str, Any]:
    """Decode a B2 reply, mapping failures onto _AuthExpired / UpstreamUploadFailed."""
    if resp.status_code == 401:
        raise _AuthExpired(operation)
    if resp.is_error:
        raise UpstreamUploadFailed(
            f"{operation} failed with HTTP {resp.status_code}: {resp.text[:300]}"
        )
    try:
        return resp.json()
    except ValueError as exc:
        raise UpstreamUploadFailed(f"{operation} returned a non-JSON body.") from exc
