"""
docpipe/core/filenames.py

Helpers for turning client-declared filenames into safe names.

Client filenames are never used to build filesystem paths; they only feed
the download name of a converted PDF and the object key of an upload.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath, PureWindowsPath

from docpipe.core.constants import MAX_FILENAME_CHARS

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_WHITESPACE = re.compile(r"\s+")
_REPEATED_UNDERSCORES = re.compile(r"_{2,}")


def sanitize_filename(name: str | None, fallback: str) -> str:
    """
    Reduce an arbitrary client filename to ``[A-Za-z0-9._-]``.

    Directory components (POSIX or Windows style) are dropped, whitespace
    becomes ``_``, leading dots are stripped so the result is never hidden
    or relative, and the length is capped.

    Args:
        name     : Filename as declared by the client (may be None).
        fallback : Returned when nothing usable survives.

    Returns:
        A non-empty, filesystem- and header-safe name.
    """
    if not name:
        return fallback

    base = PureWindowsPath(PurePosixPath(name).name).name
    cleaned = _WHITESPACE.sub("_", base.strip())
    cleaned = _UNSAFE_CHARS.sub("_", cleaned)
    cleaned = _REPEATED_UNDERSCORES.sub("_", cleaned)
    cleaned = cleaned.lstrip(".")[:MAX_FILENAME_CHARS]

    if not cleaned.strip("._-"):
        return fallback
    return cleaned


def download_name(uploaded_filename: str | None, extension: str, fallback_stem: str) -> str:
    """
    Derive a download filename with the given extension from an upload name.

        download_name("TP Certification.xlsx", ".pdf", "result") -> "TP_Certification.pdf"
    """
    stem = PurePosixPath(sanitize_filename(uploaded_filename, fallback_stem)).stem
    if not stem.strip("._-"):
        stem = fallback_stem
    return f"{stem}{extension}"
