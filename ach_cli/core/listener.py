"""One-shot local HTTP listener receiving the OAuth redirect.

Use it as an async context manager: the port is bound on entry and released
on exit, whether the callback arrived or an error interrupted the flow::

    async with CallbackListener(port=3333) as listener:
        ...
        callback_url = await listener.wait()
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Set

from .config import REDIRECT_HOST, REDIRECT_PATH, REDIRECT_PORT
from .errors import AuthorizationTimeout, PortUnavailable

log = logging.getLogger(__name__)

LISTEN_HOST = "127.0.0.1"

_DONE_PAGE = (
    b"<html><body><p>ACH is authorized, you can close this window.</p></body></html>"
)


class CallbackListener:
    def __init__(self, port: int = REDIRECT_PORT, path: str = REDIRECT_PATH, host: str = LISTEN_HOST):
        self.host = host
        self.port = port
        self.path = path
        self._server: Optional[asyncio.AbstractServer] = None
        self._result: Optional[asyncio.Future] = None
        self._handlers: Set[asyncio.Task] = set()

    @property
    def redirect_uri(self) -> str:
        return f"http://{REDIRECT_HOST}:{self.port}{self.path}"

    async def __aenter__(self) -> "CallbackListener":
        self._result = asyncio.get_running_loop().create_future()
        try:
            self._server = await asyncio.start_server(self._handle, self.host, self.port)
        except OSError as e:
            raise PortUnavailable(self.port, e.strerror or str(e)) from e
        if self.port == 0:
            self.port = self._server.sockets[0].getsockname()[1]
        log.debug("Listening for OAuth callback on %s", self.redirect_uri)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._result is not None and not self._result.done():
            self._result.cancel()
        if self._server is not None:
            self._server.close()
            # idle browser connections would keep wait_closed() pending
            for task in list(self._handlers):
                task.cancel()
            await self._server.wait_closed()
            self._server = None
            log.debug("OAuth callback listener on port %d closed", self.port)

    async def wait(self, timeout: float | None = None) -> str:
        """Return the full callback URL of the first request to ``path``.

        Waits forever when *timeout* is ``None``.
        """
        if self._result is None:
            raise RuntimeError("listener is not started")
        try:
            return await asyncio.wait_for(asyncio.shield(self._result), timeout)
        except asyncio.TimeoutError as e:
            raise AuthorizationTimeout(
                f"No OAuth redirect received on {self.redirect_uri} after {timeout:g}s"
            ) from e

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        task = asyncio.current_task()
        self._handlers.add(task)
        try:
            request_line = await reader.readline()
            if not request_line:
                return
            # skip headers, the request has no body we care about
            while True:
                line = await reader.readline()
                if line in (b"\r\n", b"\n", b""):
                    break
            parts = request_line.decode("latin-1").split()
            target = parts[1] if len(parts) >= 2 else ""
            if target.startswith(self.path) and self._result is not None and not self._result.done():
                self._respond(writer, "200 OK", _DONE_PAGE)
                self._result.set_result(f"http://{REDIRECT_HOST}:{self.port}{target}")
            else:
                self._respond(writer, "404 Not Found", b"Not found")
            await writer.drain()
        except ConnectionError as e:
            log.debug("OAuth callback connection dropped: %s", e)
        finally:
            self._handlers.discard(task)
            writer.close()

    @staticmethod
    def _respond(writer: asyncio.StreamWriter, status: str, body: bytes) -> None:
        head = (
            f"HTTP/1.1 {status}\r\n"
            "Content-Type: text/html; charset=utf-8\r\n"
            f"Content-Length: {len(body)}\r\n"
            "Connection: close\r\n\r\n"
        )
        writer.write(head.encode("latin-1") + body)
