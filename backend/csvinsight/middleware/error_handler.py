"""
Error handling middleware.

The analysis services report bad input as empty results, so anything that
reaches this layer is a defect. It is logged with its traceback and turned
into a JSON 500 body instead of a bare server error.

Pure ASGI middleware (not BaseHTTPMiddleware) so it can be stacked with
the request logger without buffering response bodies.
"""

import json
import logging

from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger("csvinsight.middleware.error_handler")


class ErrorHandlerMiddleware:
    """Converts unhandled exceptions into a structured JSON 500 response."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message):
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            method = scope.get("method", "?")
            path = scope.get("path", "?")
            logger.exception("Unhandled exception on %s %s", method, path)
            if response_started:
                raise

            body = json.dumps({
                "error": "internal_server_error",
                "message": "The request could not be processed.",
                "method": method,
                "path": path,
            }).encode("utf-8")

            await send({
                "type": "http.response.start",
                "status": 500,
                "headers": [
                    [b"content-type", b"application/json"],
                    [b"content-length", str(len(body)).encode()],
                ],
            })
            await send({"type": "http.response.body", "body": body})
