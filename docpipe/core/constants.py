"""
docpipe/core/constants.py

Application-wide fixed constants.

These are part of the service's contract and are NOT configurable via
environment variables.
"""

import re

# ── Conversion input ───────────────────────────────────────────────────────────

#: Only Excel workbooks are accepted for conversion.
ALLOWED_SPREADSHEET_EXTENSION: str = ".xlsx"

#: Content types accepted for the conversion upload. Browsers and curl often
#: fall back to octet-stream for .xlsx, so it is tolerated.
ALLOWED_SPREADSHEET_CONTENT_TYPES: frozenset = frozenset(
    {
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/octet-stream",
    }
)

#: Multipart field carrying the uploaded file on every upload endpoint.
UPLOAD_FIELD_NAME: str = "file"

# ── Conversion output ──────────────────────────────────────────────────────────

PDF_CONTENT_TYPE: str = "application/pdf"
PDF_MAGIC: bytes = b"%PDF-"

#: Download name used when nothing usable survives sanitisation.
DEFAULT_OUTPUT_STEM: str = "result"

#: Maximum characters of converter stderr kept for logs.
STDERR_EXCERPT_CHARS: int = 500

#: stderr signatures of a LibreOffice instance that is busy with another
#: conversion (shared user profile locked). These are retried.
CONVERTER_BUSY_PATTERN = re.compile(
    r"user installation could not be completed"
    r"|profile.{0,40}(locked|in use)"
    r"|already running",
    re.IGNORECASE,
)

# ── Filenames ──────────────────────────────────────────────────────────────────

MAX_FILENAME_CHARS: int = 100

# ── Task priority ──────────────────────────────────────────────────────────────

PRIORITY_LEVELS: tuple = ("Low", "Medium", "High")
