"""
docpipe/core/exceptions.py

Custom exception hierarchy for the application.

Raising typed exceptions from services lets controllers catch specific
cases and return the correct HTTP status code without leaking internals.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from docpipe.core.constants import CONVERTER_BUSY_PATTERN


class AppBaseException(Exception):
    """Root exception — catch-all for any application-level error."""


# ── Request validation (4xx) ───────────────────────────────────────────────────

class ValidationError(AppBaseException):
    """Raised when a request is rejected before any processing begins."""


class MissingFileError(ValidationError):
    """Raised when the multipart body carries no 'file' upload."""


class InvalidFileTypeError(ValidationError):
    """Raised when the uploaded file is not an accepted type."""


class EmptyFileError(ValidationError):
    """Raised when the uploaded file has no content."""


class UploadTooLargeError(ValidationError):
    """Raised when a request body grows past the configured byte limit."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"Request body exceeds the {limit}-byte limit.")
        self.limit = limit


# ── Scratch files ──────────────────────────────────────────────────────────────

class ScratchError(AppBaseException):
    """Base class for temporary-file failures."""


class InvalidScratchExtensionError(ScratchError):
    """Raised when a scratch file is requested with a non-allow-listed extension."""


class ScratchIOError(ScratchError):
    """Raised when a scratch file cannot be written or read."""

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"Scratch I/O failed for '{path}': {cause}")
        self.path = path
        self.cause = cause


class ScratchFileNotFoundError(ScratchError):
    """Raised when an expected scratch file does not exist."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Scratch file not found: '{path}'")
        self.path = path


# ── Conversion ─────────────────────────────────────────────────────────────────

class ConversionError(AppBaseException):
    """Base class for failures of the external converter."""


class ConversionTimeout(ConversionError):
    """Raised when the converter does not finish within the timeout."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Conversion did not finish within {timeout:g}s.")
        self.timeout = timeout


class ConversionFailed(ConversionError):
    """Raised when the converter exits non-zero or cannot be started."""

    def __init__(
        self,
        message: str,
        exit_code: Optional[int] = None,
        stderr_excerpt: str = "",
    ) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr_excerpt = stderr_excerpt

    @property
    def is_busy(self) -> bool:
        """True when stderr matches a known 'instance busy' signature."""
        return bool(CONVERTER_BUSY_PATTERN.search(self.stderr_excerpt))


class ConversionOutputMissing(ConversionError):
    """Raised when the converter reports success but produced no file."""

    def __init__(self, expected_path: Path) -> None:
        super().__init__(f"Converter produced no output at '{expected_path}'.")
        self.expected_path = expected_path


class ConversionOutputInvalid(ConversionError):
    """Raised when the converter output is not a readable PDF."""


# ── Object storage ─────────────────────────────────────────────────────────────

class StorageNotConfiguredError(AppBaseException):
    """Raised when object-storage credentials are missing."""


class UpstreamUploadFailed(AppBaseException):
    """Raised when the remote object store rejects or fails an upload."""


# ── Task priority ──────────────────────────────────────────────────────────────

class PrioritizerNotConfiguredError(AppBaseException):
    """Raised when no LLM API key is configured."""


class PrioritySuggestionError(AppBaseException):
    """Raised when the LLM call fails or returns an unusable answer."""
