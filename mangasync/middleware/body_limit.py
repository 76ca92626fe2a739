"""Request body size cap, enforced on the declared length and on the bytes actually received."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import HTTPException
from starlette.datastructures import Headers
from starlette.responses import JSONResponse

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

TOO_LARGE_DETAIL = "Request body too large"


class RequestSizeLimitMiddleware:
    """Refuse request bodies larger than ``max_body_bytes`` with HTTP 413.

    A ``Content-Length`` over the limit is refused before the app runs.
    Chunked or under-declared bodies are counted as they are received and
    cut off with an ``HTTPException`` once the running total passes the limit;
    the route's body reader re-raises it and the app answers 413.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length is not None:
            try:
                size = int(content_length)
            except ValueError:
                response = JSONResponse(
                    status_code=400,
                    content={"detail": "Invalid Content-Length header"},
                )
                await response(scope, receive, send)
                return
            if size > self.max_body_bytes:
                self._log_rejection(scope, size)
                response = JSONResponse(status_code=413, content={"detail": TOO_LARGE_DETAIL})
                await response(scope, receive, send)
                return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    self._log_rejection(scope, received)
                    raise HTTPException(status_code=413, detail=TOO_LARGE_DETAIL)
            return message

        await self.app(scope, limited_receive, send)

    @staticmethod
    def _log_rejection(scope: Scope, size: int) -> None:
        logger.warning(
            "Rejected %s %s: body of at least %d bytes exceeds limit",
            scope.get("method"),
            scope.get("path"),
            size,
        )
