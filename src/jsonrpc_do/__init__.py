"""
jsonrpc-do - JSON-RPC sessions over a persistent WebSocket.

This package provides an asyncio JSON-RPC 2.0 client with support for:
- Lazy connect-before-send over a long-lived transport
- Batching many calls into one message
- Per-method output formatters
- Distinct error types for transport, protocol and remote failures

Example usage:
    from jsonrpc_do import Method, connect, hex_to_int

    async def main():
        session = await connect("ws://127.0.0.1:8546")

        # Single call
        number = await session.dispatch(
            Method("eth_blockNumber", output_formatters=[hex_to_int])
        )

        # Batch
        session.set_batch_mode(True)
        await session.dispatch(Method("eth_chainId"))
        await session.dispatch(Method("eth_gasPrice"))
        batch = await session.flush()
        print(batch.results, batch.errors)

        await session.close()

    import asyncio
    asyncio.run(main())
"""

from __future__ import annotations

__version__ = "0.1.0"

from .batch import BatchAccumulator, Call
from .config import SessionConfig, configure, configure_from_env, get_config
from .decoder import BatchResponse, Outcome, SingleResponse, decode_response
from .errors import (
    ErrorKind,
    InvalidPayloadError,
    InvalidResponseFormat,
    JsonRpcDoError,
    JsonRpcErrorCode,
    ProtocolError,
    RpcError,
    TransportError,
    UsageError,
    is_error_kind,
)
from .methods import Method, MethodDescriptor, hex_to_int, to_bool
from .session import BatchResult, RpcSession, connect
from .transport import Transport, WebSocketTransport

__all__ = [
    # Main API
    "connect",
    "RpcSession",
    "BatchResult",
    "Method",
    "MethodDescriptor",
    "Transport",
    "WebSocketTransport",
    # Formatters
    "hex_to_int",
    "to_bool",
    # Decoding
    "decode_response",
    "Outcome",
    "SingleResponse",
    "BatchResponse",
    "Call",
    "BatchAccumulator",
    # Errors
    "ErrorKind",
    "JsonRpcErrorCode",
    "JsonRpcDoError",
    "InvalidPayloadError",
    "TransportError",
    "ProtocolError",
    "InvalidResponseFormat",
    "RpcError",
    "UsageError",
    "is_error_kind",
    # Configuration
    "SessionConfig",
    "configure",
    "configure_from_env",
    "get_config",
    # Version
    "__version__",
]
