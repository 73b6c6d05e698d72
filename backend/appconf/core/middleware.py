"""Request/response body logging middleware."""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from appconf.core.logging import get_logger

logger = get_logger(__name__)


class _BodyTooLarge(Exception):
    pass


class RequestLoggingMiddleware:
    """Raw ASGI middleware that buffers and logs request and response bodies.

    The request body is read up front (at most ``max_body_bytes``) and replayed
    to the application; the response is held until complete, logged, then
    sent. While the application runs, the client connection is watched and a
    disconnect cancels the downstream call.
    """

    def __init__(self, app: ASGIApp, *, max_body_bytes: int, log_body_chars: int = 4096) -> None:
        self.app = app
        self.max_body_bytes = int(max_body_bytes)
        self.log_body_chars = int(log_body_chars)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        await self._handle_http(scope, receive, send)

    async def _handle_http(self, scope: Scope, receive: Receive, send: Send) -> None:
        method = str(scope.get("method", "GET"))
        path = str(scope.get("path", ""))
        started = time.perf_counter()

        try:
            body = await self._read_body(scope, receive)
        except _BodyTooLarge:
            logger.warning(
                "request_body_too_large",
                method=method,
                path=path,
                max_bytes=self.max_body_bytes,
            )
            await self._send_413(send)
            return

        if body is None:
            logger.info("client_disconnected", method=method, path=path, stage="request")
            return

        logger.info("http_request", method=method, path=path, body=self._render(body))

        disconnected = asyncio.Event()
        replayed = False

        async def replay_receive() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            await disconnected.wait()
            return {"type": "http.disconnect"}

        start_message: Message | None = None
        chunks: list[bytes] = []
        response_sent = False

        async def buffer_send(message: Message) -> None:
            nonlocal start_message, response_sent
            if message["type"] == "http.response.start":
                start_message = message
                return
            if message["type"] != "http.response.body":
                await send(message)
                return

            chunks.append(message.get("body", b""))
            if message.get("more_body", False):
                return

            response_body = b"".join(chunks)
            logger.info(
                "http_response",
                method=method,
                path=path,
                status=start_message["status"] if start_message else None,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                body=self._render(response_body),
            )
            if start_message is not None:
                await send(start_message)
            await send({"type": "http.response.body", "body": response_body, "more_body": False})
            response_sent = True

        app_task = asyncio.ensure_future(self.app(scope, replay_receive, buffer_send))
        watch_task = asyncio.ensure_future(self._wait_for_disconnect(receive))
        try:
            await asyncio.wait({app_task, watch_task}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            app_task.cancel()
            watch_task.cancel()
            raise

        # Servers report a disconnect once the response is out; only an
        # earlier one means the client gave up.
        if not app_task.done() and not response_sent:
            disconnected.set()
            app_task.cancel()
            logger.info("client_disconnected", method=method, path=path, stage="handler")
            try:
                await app_task
            except asyncio.CancelledError:
                pass
            return

        watch_task.cancel()
        try:
            await watch_task
        except asyncio.CancelledError:
            pass
        try:
            await app_task
        except Exception:
            # The server error middleware outside this one answers with a 500.
            if not response_sent:
                logger.error(
                    "http_response",
                    method=method,
                    path=path,
                    status=500,
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                    body=None,
                )
            raise

    async def _read_body(self, scope: Scope, receive: Receive) -> bytes | None:
        """Read the full request body, or None if the client went away."""
        headers = dict(scope.get("headers") or [])
        declared = headers.get(b"content-length")
        if declared is not None:
            try:
                if int(declared) > self.max_body_bytes:
                    raise _BodyTooLarge()
            except ValueError:
                pass

        chunks: list[bytes] = []
        size = 0
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                return None
            chunk = message.get("body", b"")
            size += len(chunk)
            if size > self.max_body_bytes:
                raise _BodyTooLarge()
            chunks.append(chunk)
            if not message.get("more_body", False):
                return b"".join(chunks)

    @staticmethod
    async def _wait_for_disconnect(receive: Receive) -> None:
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                return

    def _render(self, body: bytes) -> str:
        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError:
            return f"<{len(body)} bytes, not utf-8>"
        if len(text) > self.log_body_chars:
            return text[: self.log_body_chars] + f"... <{len(text)} chars>"
        return text

    async def _send_413(self, send: Send) -> None:
        payload: dict[str, Any] = {
            "code": 0,
            "result": f"Request body exceeds limit of {self.max_body_bytes} bytes",
        }
        body = json.dumps(payload).encode("utf-8")
        await send(
            {
                "type": "http.response.start",
                "status": 413,
                "headers": [
                    (b"content-type", b"application/json"),
                    (b"content-length", str(len(body)).encode("latin-1")),
                ],
            }
        )
        await send({"type": "http.response.body", "body": body, "more_body": False})
