"""
RpcSession - JSON-RPC calls and batches over a persistent transport.

The session encodes method descriptors, connects lazily before the first
send, decodes responses and runs each descriptor's output formatters over
its result. In batch mode calls are buffered and go out together as one
JSON array on flush().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Callable

from .batch import BatchAccumulator, Call
from .config import get_config
from .decoder import (
    BatchResponse,
    Outcome,
    SingleResponse,
    apply_transform,
    correlate,
    decode_response,
)
from .errors import JsonRpcDoError, ProtocolError, RpcError, UsageError, wrap_error
from .methods import MethodDescriptor
from .transport import Transport, WebSocketTransport

__all__ = ["RpcSession", "BatchResult", "connect"]

logger = logging.getLogger(__name__)

Callback = Callable[[Any, Any], Any]


@dataclass(frozen=True)
class BatchResult:
    """
    Outcome of a flushed batch, one entry per call in dispatch order.

    Attributes:
        outcomes: Per-position Outcome (value or RpcError)
    """

    outcomes: tuple[Outcome, ...]

    @property
    def results(self) -> list[Any]:
        """Transformed values; None where the call failed."""
        return [outcome.value if outcome.ok else None for outcome in self.outcomes]

    @property
    def errors(self) -> list[RpcError]:
        """RpcErrors in batch order; each carries its position as ``index``."""
        return [outcome.error for outcome in self.outcomes if outcome.error is not None]

    @property
    def ok(self) -> bool:
        return all(outcome.ok for outcome in self.outcomes)

    def __len__(self) -> int:
        return len(self.outcomes)


class RpcSession:
    """
    JSON-RPC session on top of a Transport.

    Example:
        session = RpcSession(WebSocketTransport("ws://127.0.0.1:8546"))

        # Single call
        number = await session.dispatch(Method("eth_blockNumber"))

        # Batch
        session.set_batch_mode(True)
        await session.dispatch(Method("eth_chainId"))
        await session.dispatch(Method("eth_gasPrice"))
        batch = await session.flush()
        print(batch.results, batch.errors)

        await session.close()

    Every public coroutine also accepts a ``callback(error, result)``. With
    a callback, failures are reported to it instead of being raised.
    Invalid payloads and usage errors are always raised, before any I/O.
    """

    __slots__ = ("_transport", "_timeout", "_batch", "_batching", "_closed")

    def __init__(self, transport: Transport, *, timeout: float | None = None) -> None:
        """
        Args:
            transport: Message channel; the session does not own its lifetime
                beyond calling close() on it
            timeout: Connect timeout in seconds (default: configured timeout)
        """
        self._transport = transport
        self._timeout = timeout if timeout is not None else get_config().timeout
        self._batch = BatchAccumulator()
        self._batching = False
        self._closed = False

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def batching(self) -> bool:
        return self._batching

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> list[Call]:
        """Calls buffered for the next flush."""
        return self._batch.snapshot()

    def set_batch_mode(self, enabled: bool) -> None:
        """
        Turn batch mode on or off.

        Pending calls are kept either way; turning batch mode off does not
        flush them.
        """
        self._batching = bool(enabled)

    async def dispatch(
        self,
        descriptor: MethodDescriptor,
        callback: Callback | None = None,
    ) -> Any:
        """
        Send one call, or buffer it when batch mode is on.

        Args:
            descriptor: The call to make
            callback: Optional ``callback(error, result)``; invoked once when
                the call completes, never for buffered calls

        Returns:
            The transformed result, or None for buffered calls and for calls
            whose failure went to ``callback``

        Raises:
            InvalidPayloadError: If the descriptor encodes to a bad payload
            UsageError: If the session is closed
            TransportError: If connecting or sending fails
            ProtocolError: If the response cannot be interpreted
            RpcError: If the server returned an error object
        """
        self._check_open()
        call = Call.from_descriptor(descriptor)

        if self._batching:
            self._batch.add(call)
            logger.debug("Queued %s (%d pending)", call.request_id, len(self._batch))
            return None

        try:
            result = await self._execute_call(call)
        except JsonRpcDoError as e:
            if callback is None:
                raise
            callback(e, None)
            return None

        if callback is not None:
            callback(None, result)
        return result

    async def flush(self, callback: Callback | None = None) -> BatchResult | None:
        """
        Send all pending calls as one batch.

        Pending calls are cleared whether or not the send succeeds. Remote
        errors for individual calls do not raise; they are returned in the
        BatchResult next to the results of the calls that succeeded.

        Args:
            callback: Optional ``callback(errors, results)``. ``errors`` is
                None when every call succeeded, the list of RpcErrors when
                some failed, or the single error that sank the whole batch
                (``results`` is then None)

        Raises:
            UsageError: If batch mode is off, nothing is pending, or the
                session is closed
            TransportError: If connecting or sending fails
            ProtocolError: If the response cannot be lined up with the calls
            RpcError: If the server rejected the batch as a whole
        """
        self._check_open()
        if not self._batching:
            raise UsageError("Batch mode is not enabled; call set_batch_mode(True) first")
        if not self._batch:
            raise UsageError("No pending calls to flush")

        calls = self._batch.snapshot()
        envelope = self._batch.envelope()
        self._batch.clear()
        logger.debug("Flushing batch of %d calls", len(calls))

        try:
            result = await self._execute_batch(calls, envelope)
        except JsonRpcDoError as e:
            if callback is None:
                raise
            callback(e, None)
            return None

        if callback is not None:
            callback(result.errors or None, result.results)
        return result

    async def close(self) -> None:
        """Close the transport. Later dispatches raise UsageError."""
        if self._closed:
            return
        self._closed = True
        if self._batch:
            logger.debug("Discarding %d pending calls on close", len(self._batch))
            self._batch.clear()
        await self._transport.close()

    def _check_open(self) -> None:
        if self._closed:
            raise UsageError("Session is closed")

    async def _connect(self) -> None:
        try:
            await self._transport.connect(self._timeout)
        except JsonRpcDoError:
            raise
        except Exception as e:
            raise wrap_error(e) from e

    async def _send(self, payload: str) -> str | bytes:
        if not self._transport.connected:
            await self._connect()
        try:
            return await self._transport.send(payload)
        except JsonRpcDoError:
            raise
        except Exception as e:
            raise wrap_error(e) from e

    async def _execute_call(self, call: Call) -> Any:
        raw = await self._send(call.payload)
        response = decode_response(raw)

        if isinstance(response, BatchResponse):
            raise ProtocolError(
                f"Expected a single response, got a batch of {len(response)}"
            )
        if response.outcome.error is not None:
            raise response.outcome.error
        return self._transform(call, response.outcome.value)

    def _transform(self, call: Call, value: Any) -> Any:
        try:
            return apply_transform(call.descriptor, value)
        except Exception as e:
            raise ProtocolError(f"Output transform failed: {e}") from e

    async def _execute_batch(self, calls: list[Call], envelope: str) -> BatchResult:
        raw = await self._send(envelope)
        response = decode_response(raw)

        if isinstance(response, SingleResponse):
            if response.outcome.error is not None:
                raise response.outcome.error
            raise ProtocolError("Expected a batch response, got a single result")

        outcomes = []
        for call, outcome in zip(calls, correlate(calls, response)):
            if outcome.ok and outcome.value is not None:
                outcome = Outcome(value=self._transform(call, outcome.value))
            outcomes.append(outcome)
        return BatchResult(tuple(outcomes))

    async def open(self) -> RpcSession:
        """
        Connect the transport now instead of on the first send.

        Returns:
            The session itself
        """
        self._check_open()
        if not self._transport.connected:
            await self._connect()
        return self

    async def __aenter__(self) -> RpcSession:
        """Async context manager entry."""
        return await self.open()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit."""
        await self.close()

    def __repr__(self) -> str:
        return (
            f"RpcSession({self._transport!r}, batching={self._batching}, "
            f"pending={len(self._batch)})"
        )


async def connect(url: str | None = None, **options: Any) -> RpcSession:
    """
    Connect to a JSON-RPC WebSocket endpoint.

    Args:
        url: Endpoint URL or host (default: configured URL)
        **options: Connection options
            - timeout: Connect timeout in seconds (default: configured timeout)
            - anything else is passed to websockets' connect()

    Returns:
        Connected RpcSession instance

    Example:
        session = await connect("ws://127.0.0.1:8546")

        # With options
        session = await connect("wss://node.example.org", timeout=5.0)
    """
    config = get_config()
    timeout = options.pop("timeout", config.timeout)

    transport = WebSocketTransport(url or config.url, **options)
    session = RpcSession(transport, timeout=timeout)
    return await session.open()
