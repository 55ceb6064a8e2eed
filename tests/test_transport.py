"""
Unit tests for WebSocketTransport.

The websockets connect() call is patched; no sockets are opened.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from websockets.exceptions import WebSocketException
from websockets.protocol import State

from jsonrpc_do import Transport, TransportError, WebSocketTransport
from jsonrpc_do.transport import build_ws_url


@pytest.fixture
def mock_websocket():
    """Create an open mock WebSocket connection."""
    ws = MagicMock()
    ws.state = State.OPEN
    ws.send = AsyncMock()
    ws.recv = AsyncMock(return_value='{"result":"0x1"}')
    ws.close = AsyncMock()
    return ws


@pytest.fixture
def ws_connect(mock_websocket):
    """Patch websockets' connect() to hand out the mock connection."""
    with patch("jsonrpc_do.transport.ws_connect", AsyncMock(return_value=mock_websocket)) as mock:
        yield mock


class TestBuildWsUrl:
    def test_ws_urls_kept(self):
        assert build_ws_url("ws://localhost:8546") == "ws://localhost:8546"
        assert build_ws_url("wss://node.example.org/ws") == "wss://node.example.org/ws"

    def test_http_urls_converted(self):
        assert build_ws_url("http://localhost:8546") == "ws://localhost:8546"
        assert build_ws_url("https://node.example.org/ws") == "wss://node.example.org/ws"

    def test_bare_host(self):
        assert build_ws_url("localhost:8546") == "ws://localhost:8546"


class TestWebSocketTransport:
    """Tests for connect, send and close."""

    def test_satisfies_transport_protocol(self):
        assert isinstance(WebSocketTransport("ws://x"), Transport)

    def test_not_connected_initially(self):
        transport = WebSocketTransport("localhost:8546")
        assert transport.connected is False
        assert transport.url == "ws://localhost:8546"

    async def test_connect_passes_timeout(self, ws_connect):
        transport = WebSocketTransport("ws://node", max_size=None)

        await transport.connect(timeout=1.5)

        ws_connect.assert_awaited_once_with("ws://node", open_timeout=1.5, max_size=None)
        assert transport.connected

    async def test_connect_idempotent(self, ws_connect):
        """Test that connecting twice opens one socket."""
        transport = WebSocketTransport("ws://node")

        await transport.connect()
        await transport.connect()

        ws_connect.assert_awaited_once()

    async def test_concurrent_connects_open_one_socket(self, ws_connect):
        """Test that tasks racing to connect share one connection."""
        transport = WebSocketTransport("ws://node")

        await asyncio.gather(*(transport.connect() for _ in range(5)))

        ws_connect.assert_awaited_once()

    async def test_reconnects_after_socket_closed(self, ws_connect, mock_websocket):
        transport = WebSocketTransport("ws://node")
        await transport.connect()

        mock_websocket.state = State.CLOSED
        assert not transport.connected

        fresh = MagicMock()
        fresh.state = State.OPEN
        ws_connect.return_value = fresh
        await transport.connect()

        assert ws_connect.await_count == 2
        assert transport.connected

    @pytest.mark.parametrize(
        "error",
        [OSError("refused"), asyncio.TimeoutError(), WebSocketException("handshake failed")],
    )
    async def test_connect_failure(self, error):
        transport = WebSocketTransport("ws://node")

        with patch("jsonrpc_do.transport.ws_connect", AsyncMock(side_effect=error)):
            with pytest.raises(TransportError, match="Could not connect to ws://node") as exc_info:
                await transport.connect()

        assert exc_info.value.__cause__ is error
        assert not transport.connected

    async def test_send_returns_next_frame(self, ws_connect, mock_websocket):
        transport = WebSocketTransport("ws://node")
        await transport.connect()

        raw = await transport.send('{"method":"eth_chainId"}')

        mock_websocket.send.assert_awaited_once_with('{"method":"eth_chainId"}')
        assert raw == '{"result":"0x1"}'

    async def test_send_when_not_connected(self):
        transport = WebSocketTransport("ws://node")

        with pytest.raises(TransportError, match="not connected"):
            await transport.send("{}")

    async def test_send_failure(self, ws_connect, mock_websocket):
        transport = WebSocketTransport("ws://node")
        await transport.connect()
        mock_websocket.recv.side_effect = WebSocketException("connection lost")

        with pytest.raises(TransportError, match="connection lost"):
            await transport.send("{}")

    async def test_close(self, ws_connect, mock_websocket):
        transport = WebSocketTransport("ws://node")
        await transport.connect()

        await transport.close()
        await transport.close()

        mock_websocket.close.assert_awaited_once()
        assert not transport.connected


class TestSessionOverWebSocket:
    """End-to-end through RpcSession with a mocked socket."""

    async def test_lazy_connect_and_call(self, ws_connect, mock_websocket):
        from jsonrpc_do import Method, RpcSession, hex_to_int

        session = RpcSession(WebSocketTransport("ws://node"), timeout=0.5)

        result = await session.dispatch(Method("eth_chainId", output_formatters=[hex_to_int]))

        assert result == 1
        ws_connect.assert_awaited_once_with("ws://node", open_timeout=0.5)
        await session.close()
        mock_websocket.close.assert_awaited_once()
