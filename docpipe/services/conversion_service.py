"""
docpipe/services/conversion_service.py

Orchestrates one spreadsheet → PDF conversion:

    UploadedDocument
      └─ ScratchStore.write()            Received → Staged
           └─ DocumentConverter.convert()  Staged → Converting
                └─ ScratchStore.read()        Converting → Converted
                     └─ PDFInspector.page_count()
    ScratchSession.close()               → Cleaned   (every exit path)

All collaborators are constructor-injected so tests can swap them out;
the module-level singleton wires in the production implementations.
"""

from __future__ import annotations

import asyncio
import contextlib
from pathlib import Path
from typing import AsyncContextManager, Callable, Optional, TypeVar

from docpipe.converter.base import DocumentConverter
from docpipe.converter.libreoffice_converter import LibreOfficeConverter
from docpipe.converter.pdf_inspector import PDFInspector
from docpipe.core.config import settings
from docpipe.core.constants import DEFAULT_OUTPUT_STEM
from docpipe.core.exceptions import (
    ConversionOutputMissing,
    ConversionTimeout,
    ScratchFileNotFoundError,
)
from docpipe.core.filenames import download_name
from docpipe.core.logger import get_logger, log_context
from docpipe.models.conversion_models import ConversionResult, UploadedDocument
from docpipe.scratch.base import ScratchKind
from docpipe.scratch.store import ScratchStore

logger = get_logger(__name__)

T = TypeVar("T")


def build_converter_limiter(max_concurrency: int) -> AsyncContextManager:
    """
    Return the shared gate every converter invocation passes through.

    LibreOffice shares one user profile per OS user, so concurrent runs can
    trip over each other; ``max_concurrency=1`` serialises them. ``0``
    disables the gate for converters known to be safe in parallel.
    """
    if max_concurrency <= 0:
        return contextlib.nullcontext()
    return asyncio.Semaphore(max_concurrency)


class ConversionService:
    """
    Converts uploaded spreadsheets to PDF through an external converter.

    Design choices:
    - **Scoped scratch files**: input and expected output are registered
      with a ScratchSession before the converter runs, so both are removed
      on success, failure, timeout and cancellation alike.
    - **Owned limiter**: the converter gate is an explicit attribute of the
      service rather than a module global, so tests can inject their own.
    - **One deadline**: waiting for the limiter and running the converter
      share the conversion timeout, so a queued request fails with
      ConversionTimeout instead of waiting behind every request ahead of it.
    """

    def __init__(
        self,
        store: ScratchStore | None = None,
        converter: DocumentConverter | None = None,
        inspector: PDFInspector | None = None,
        limiter: Optional[AsyncContextManager] = None,
        timeout: float | None = None,
    ) -> None:
        self._store: ScratchStore = store or ScratchStore()
        self._converter: DocumentConverter = converter or LibreOfficeConverter(scratch_root=self._store.root)
        self._inspector: PDFInspector = inspector or PDFInspector()
        self._limiter: AsyncContextManager = (
            limiter if limiter is not None else build_converter_limiter(settings.converter_max_concurrency)
        )
        self._timeout: float = timeout if timeout is not None else settings.conversion_timeout_seconds

    @property
    def store(self) -> ScratchStore:
        return self._store

    # ── Public API ─────────────────────────────────────────────────────────────

    async def convert(self, document: UploadedDocument) -> ConversionResult:
        """
        Run the full pipeline for one uploaded spreadsheet.

        Args:
            document: The fully received upload.

        Returns:
            ConversionResult with the PDF bytes, its page count and the
            download filename derived from the upload name.

        Raises:
            ScratchError    : Staging or reading a scratch file failed.
            ConversionError : The converter timed out, failed, produced
                              nothing, or produced something that is not a PDF.
        """
        with self._store.session() as scratch:
            source = scratch.allocate("xlsx", ScratchKind.INPUT)

            with log_context(source.token):
                logger.debug("Received — %d byte(s).", document.size)
                try:
                    await _in_thread(scratch.write, source, document.content)
                    logger.debug("Staged.")

                    target = scratch.adopt(source.path.with_suffix(".pdf"), ScratchKind.OUTPUT)

                    try:
                        produced = await asyncio.wait_for(self._gated_convert(source.path), self._timeout)
                    except asyncio.TimeoutError as exc:
                        raise ConversionTimeout(self._timeout) from exc
                    if produced != target.path:
                        scratch.adopt(produced, ScratchKind.OUTPUT)

                    try:
                        pdf = await _in_thread(self._store.read, produced)
                    except ScratchFileNotFoundError as exc:
                        raise ConversionOutputMissing(produced) from exc

                    pages = await _in_thread(self._inspector.page_count, pdf, produced.name)
                    logger.debug("Converted — %d page(s).", pages)

                except BaseException as exc:
                    logger.debug("Failed — %s", type(exc).__name__)
                    raise
                finally:
                    # Cleaned.
                    scratch.close()

        return ConversionResult(
            pdf=pdf,
            page_count=pages,
            download_name=download_name(document.filename, ".pdf", DEFAULT_OUTPUT_STEM),
        )

    # ── Internals ──────────────────────────────────────────────────────────────

    async def _gated_convert(self, source: Path) -> Path:
        async with self._limiter:
            logger.debug("Converting.")
            return await self._converter.convert(source, self._store.root, self._timeout)


async def _in_thread(func: Callable[..., T], *args) -> T:
    """
    Run blocking *func* in a worker thread.

    A cancelled caller still waits for the thread to finish, so the file it
    writes exists before the scratch session removes it.
    """
    work = asyncio.ensure_future(asyncio.to_thread(func, *args))
    try:
        return await asyncio.shield(work)
    except asyncio.CancelledError:
        await asyncio.wait([work])
        raise


# ── Module-level singleton ─────────────────────────────────────────────────────
# Controllers receive this instance through get_conversion_service(). Tests
# construct ConversionService directly, or override the dependency.

conversion_service = ConversionService()


def get_conversion_service() -> ConversionService:
    return conversion_service
