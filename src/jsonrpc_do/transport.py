"""
Transports - the persistent message channel a session talks through.

A transport moves one request string out and one response message back.
Framing, handshake and keep-alive are the transport library's business.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol, runtime_checkable

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import WebSocketException
from websockets.protocol import State

from .errors import TransportError

__all__ = ["Transport", "WebSocketTransport", "build_ws_url"]

logger = logging.getLogger(__name__)


def build_ws_url(url: str) -> str:
    """
    Build a WebSocket URL from a URL or bare host.

    Args:
        url: ``ws://``/``wss://`` URL, ``http(s)://`` URL or ``host:port``

    Returns:
        WebSocket URL for the endpoint
    """
    if url.startswith("wss://") or url.startswith("ws://"):
        return url

    if url.startswith("https://"):
        return "wss://" + url[len("https://"):]

    if url.startswith("http://"):
        return "ws://" + url[len("http://"):]

    # Just a host like "localhost:8546"
    return f"ws://{url}"


@runtime_checkable
class Transport(Protocol):
    """Contract a session expects from its message channel."""

    @property
    def connected(self) -> bool: ...

    async def connect(self, timeout: float | None = None) -> None: ...

    async def send(self, payload: str) -> str | bytes: ...

    async def close(self) -> None: ...


class WebSocketTransport:
    """
    Request/response channel over one WebSocket connection.

    Each send() writes one frame and waits for the next frame, so sends
    are serialized. connect() is idempotent and safe to call from several
    tasks at once; only one socket is opened.

    Example:
        transport = WebSocketTransport("ws://127.0.0.1:8546")
        await transport.connect(timeout=1.0)
        raw = await transport.send('{"jsonrpc":"2.0","method":"eth_chainId","id":1}')
        await transport.close()
    """

    __slots__ = ("_url", "_ws", "_connect_lock", "_send_lock", "_options")

    def __init__(self, url: str, **options: Any) -> None:
        """
        Args:
            url: Endpoint URL (see build_ws_url)
            **options: Extra keyword arguments for websockets' connect()
        """
        self._url = build_ws_url(url)
        self._ws: Any = None
        self._connect_lock = asyncio.Lock()
        self._send_lock = asyncio.Lock()
        self._options = options

    @property
    def url(self) -> str:
        return self._url

    @property
    def connected(self) -> bool:
        return self._ws is not None and self._ws.state is State.OPEN

    async def connect(self, timeout: float | None = None) -> None:
        """
        Open the WebSocket unless it is already open.

        Raises:
            TransportError: If the handshake fails or times out
        """
        async with self._connect_lock:
            if self.connected:
                return

            logger.debug("Connecting to %s", self._url)
            try:
                self._ws = await ws_connect(self._url, open_timeout=timeout, **self._options)
            except (WebSocketException, OSError, asyncio.TimeoutError) as e:
                self._ws = None
                logger.warning("Connection to %s failed: %s", self._url, e)
                raise TransportError(f"Could not connect to {self._url}: {e}") from e

    async def send(self, payload: str) -> str | bytes:
        """
        Send one request frame and return the next received frame.

        Raises:
            TransportError: If the socket is not open or fails mid-exchange
        """
        async with self._send_lock:
            if not self.connected:
                raise TransportError("Transport is not connected")
            try:
                await self._ws.send(payload)
                return await self._ws.recv()
            except WebSocketException as e:
                logger.warning("WebSocket exchange with %s failed: %s", self._url, e)
                raise TransportError(str(e)) from e

    async def close(self) -> None:
        """Close the WebSocket connection."""
        if self._ws is not None:
            ws, self._ws = self._ws, None
            await ws.close()
            logger.debug("Closed connection to %s", self._url)

    def __repr__(self) -> str:
        return f"WebSocketTransport({self._url!r}, connected={self.connected})"
