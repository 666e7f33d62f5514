"""
docpipe/scratch/store.py

Local-disk scratch space for files handed to and received from the
external converter.

Guarantees:
  - Names are ``<time_ns>-<random hex>.<ext>`` and never come from the client.
  - Only allow-listed extensions can be allocated.
  - Writes are atomic (temp file + ``os.replace``).
  - Every file acquired through ``session()`` is removed on exit, whatever
    the exit path.
"""

from __future__ import annotations

import os
import secrets
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from docpipe.core.config import settings
from docpipe.core.exceptions import (
    InvalidScratchExtensionError,
    ScratchFileNotFoundError,
    ScratchIOError,
)
from docpipe.core.logger import get_logger
from docpipe.scratch.base import ScratchFile, ScratchKind

logger = get_logger(__name__)

_PARTIAL_SUFFIX = ".part"


class ScratchStore:
    """
    Allocates, writes, reads and removes uniquely-named scratch files.

    The directory is created lazily on first allocation so that importing
    the module has no filesystem side effects.
    """

    def __init__(
        self,
        root: str | Path | None = None,
        allowed_extensions: Optional[Iterable[str]] = None,
    ) -> None:
        """
        Args:
            root               : Scratch directory. Defaults to ``settings.scratch_dir``.
            allowed_extensions : Extensions (without dot) that may be allocated.
                                 Defaults to ``settings.scratch_allowed_extensions``.
        """
        self._root: Path = Path(root or settings.scratch_dir).resolve()
        exts = allowed_extensions if allowed_extensions is not None else settings.scratch_allowed_extensions
        self._allowed: frozenset = frozenset(e.lower().lstrip(".") for e in exts)

    @property
    def root(self) -> Path:
        return self._root

    # ── Allocation ─────────────────────────────────────────────────────────────

    def allocate(self, extension: str, kind: ScratchKind = ScratchKind.INPUT) -> ScratchFile:
        """
        Reserve a fresh, collision-free path under the scratch directory.

        Nothing is created on disk; the caller writes to the path.

        Raises:
            InvalidScratchExtensionError: If the extension is not allow-listed.
        """
        ext = extension.lower().lstrip(".")
        if ext not in self._allowed:
            raise InvalidScratchExtensionError(
                f"Extension '{extension}' is not allowed for scratch files."
            )

        self._root.mkdir(parents=True, exist_ok=True)
        token = f"{time.time_ns()}-{secrets.token_hex(8)}"
        return ScratchFile(path=self._root / f"{token}.{ext}", kind=kind)

    # ── I/O ────────────────────────────────────────────────────────────────────

    def write(self, path: Path, data: bytes) -> None:
        """
        Write *data* to *path* atomically.

        The bytes land in a sibling ``.part`` file that is fsync'd and then
        renamed over *path*, so a reader never observes a partial file.

        Raises:
            ScratchIOError: Disk full, permission denied, or any other OS error.
        """
        partial = path.with_name(path.name + _PARTIAL_SUFFIX)
        try:
            with open(partial, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(partial, path)
        except OSError as exc:
            self.remove(partial)
            logger.error("Scratch write failed for '%s': %s", path, exc)
            raise ScratchIOError(path, exc) from exc

    def read(self, path: Path) -> bytes:
        """
        Return the full contents of *path*.

        Raises:
            ScratchFileNotFoundError: The file was never produced.
            ScratchIOError:           Any other OS error.
        """
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise ScratchFileNotFoundError(path) from exc
        except OSError as exc:
            logger.error("Scratch read failed for '%s': %s", path, exc)
            raise ScratchIOError(path, exc) from exc

    def remove(self, path: Path) -> None:
        """
        Delete *path* if it exists.

        Idempotent. Errors other than "already gone" are logged, not raised,
        so cleanup never replaces the request's real outcome.
        """
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            logger.warning("Could not remove scratch file '%s': %s", path, exc)

    # ── Scoped acquisition ─────────────────────────────────────────────────────

    @contextmanager
    def session(self) -> Iterator["ScratchSession"]:
        """
        Scope a set of scratch files to a ``with`` block.

            with store.session() as scratch:
                src = scratch.allocate("xlsx")
                ...
            # every allocated / adopted file is gone here
        """
        scratch = ScratchSession(self)
        try:
            yield scratch
        finally:
            scratch.close()

    # ── Crash recovery ─────────────────────────────────────────────────────────

    def sweep(self, older_than_seconds: float) -> int:
        """
        Remove files in the scratch directory older than the threshold.

        Intended for startup, to clear leftovers from a process that died
        mid-request.

        Returns:
            Number of files removed.
        """
        if not self._root.is_dir():
            return 0

        cutoff = time.time() - older_than_seconds
        removed = 0
        for entry in self._root.iterdir():
            try:
                if entry.is_file() and entry.stat().st_mtime < cutoff:
                    self.remove(entry)
                    removed += 1
            except OSError as exc:
                logger.warning("Skipping '%s' during sweep: %s", entry, exc)

        if removed:
            logger.info("Swept %d stale scratch file(s) from '%s'.", removed, self._root)
        return removed


class ScratchSession:
    """
    Tracks every scratch file created for one request and removes them all
    on ``close()``. Obtain one through ``ScratchStore.session()``.
    """

    def __init__(self, store: ScratchStore) -> None:
        self._store = store
        self._files: List[ScratchFile] = []
        self._closed = False

    @property
    def files(self) -> List[ScratchFile]:
        return list(self._files)

    def allocate(self, extension: str, kind: ScratchKind = ScratchKind.INPUT) -> ScratchFile:
        """Allocate a file through the store and register it for cleanup."""
        scratch = self._store.allocate(extension, kind)
        self._files.append(scratch)
        return scratch

    def adopt(self, path: Path, kind: ScratchKind = ScratchKind.OUTPUT) -> ScratchFile:
        """Register a file produced by someone else (e.g. the converter) for cleanup."""
        scratch = ScratchFile(path=Path(path), kind=kind)
        self._files.append(scratch)
        return scratch

    def write(self, scratch: ScratchFile, data: bytes) -> None:
        self._store.write(scratch.path, data)

    def read(self, scratch: ScratchFile) -> bytes:
        return self._store.read(scratch.path)

    def close(self) -> None:
        """Remove every tracked file. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        for scratch in self._files:
            self._store.remove(scratch.path)
        logger.debug("Scratch session closed — %d file(s) removed.", len(self._files))
