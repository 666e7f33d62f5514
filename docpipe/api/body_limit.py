"""
docpipe/api/body_limit.py

Pure ASGI middleware that caps request body size per route prefix.

Two checks, both before the body is buffered:
  1. A declared Content-Length over the limit is rejected with 413 without
     reading a single body byte.
  2. Otherwise the ``receive`` channel is wrapped with a byte counter that
     raises UploadTooLargeError as soon as the running total passes the
     limit, so chunked uploads are cut off mid-stream.

Limits are resolved per request so configuration changes (and tests that
patch settings) take effect without rebuilding the app.
"""

from __future__ import annotations

from typing import Callable, Mapping, Optional

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from docpipe.core.exceptions import UploadTooLargeError
from docpipe.core.logger import get_logger

logger = get_logger(__name__)

LimitsProvider = Callable[[], Mapping[str, int]]


class BodySizeLimitMiddleware:
    """Reject oversized request bodies with ``413`` before they reach the route."""

    def __init__(self, app: ASGIApp, limits: LimitsProvider) -> None:
        """
        Args:
            app    : The wrapped ASGI application.
            limits : Returns ``{path_prefix: max_bytes}``; paths matching
                     no prefix are not limited.
        """
        self.app = app
        self._limits = limits

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = self._limit_for(scope.get("path", ""))
        if limit is None:
            await self.app(scope, receive, send)
            return

        declared = _declared_length(scope)
        if declared is not None and declared > limit:
            logger.warning(
                "Rejected %s — declared %d byte(s), limit %d.", scope.get("path"), declared, limit
            )
            await _reject(scope, receive, send, limit)
            return

        received = 0
        response_started = False

        async def counting_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    raise UploadTooLargeError(limit)
            return message

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, counting_receive, tracking_send)
        except UploadTooLargeError:
            if response_started:
                raise
            logger.warning(
                "Rejected %s — body passed %d byte(s) mid-stream.", scope.get("path"), limit
            )
            await _reject(scope, receive, send, limit)

    def _limit_for(self, path: str) -> Optional[int]:
        for prefix, limit in self._limits().items():
            if path == prefix or path.startswith(prefix.rstrip("/") + "/"):
                return limit
        return None


def _declared_length(scope: Scope) -> Optional[int]:
    for name, value in scope.get("headers", []):
        if name == b"content-length":
            try:
                return int(value)
            except ValueError:
                return None
    return None


async def _reject(scope: Scope, receive: Receive, send: Send, limit: int) -> None:
    response = JSONResponse(
        status_code=413,
        content={"error": f"File too large (max {limit} bytes)."},
    )
    await response(scope, receive, send)
