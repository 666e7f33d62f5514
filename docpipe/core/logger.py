"""
docpipe/core/logger.py

Centralised logging configuration.
Every module should obtain its logger via:

    from docpipe.core.logger import get_logger
    logger = get_logger(__name__)

Lines logged while a conversion is in flight carry its scratch token, so
the converter, scratch store and service output of one request can be
grepped together:

    with log_context(scratch_file.token):
        ...
"""

import contextlib
import logging
import sys
from contextvars import ContextVar
from typing import Iterator

from docpipe.core.config import settings

_NO_TOKEN = "-"
_log_token: ContextVar[str] = ContextVar("docpipe_log_token", default=_NO_TOKEN)


class RequestTokenFilter(logging.Filter):
    """Stamp each record with the token of the conversion it was logged under."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.token = _log_token.get()
        return True


def current_log_token() -> str:
    return _log_token.get()


@contextlib.contextmanager
def log_context(token: str) -> Iterator[None]:
    """Tag every line logged inside the block (and in tasks/threads it starts) with *token*."""
    previous = _log_token.set(token)
    try:
        yield
    finally:
        _log_token.reset(previous)


def _build_handler() -> logging.StreamHandler:
    """Return a stdout handler with a structured, readable format."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG if settings.debug else logging.INFO)
    handler.addFilter(RequestTokenFilter())

    fmt = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(token)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(fmt)
    return handler


def _configure_root_logger() -> None:
    """Configure the root logger once at import time."""
    root = logging.getLogger()
    if root.handlers:
        # Already configured (e.g. by a test framework), leave it alone.
        return

    root.setLevel(logging.DEBUG if settings.debug else logging.INFO)
    root.addHandler(_build_handler())

    # Silence noisy third-party loggers.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


_configure_root_logger()


def get_logger(name: str) -> logging.Logger:
    """
    Return a named logger.

    Usage
    -----
    >>> logger = get_logger(__name__)
    >>> logger.info("Service started")
    """
    return logging.getLogger(name)
