"""
Error hierarchy for jsonrpc-do.

Every failure a session can report is one of five kinds, each with its own
subclass so callers can tell them apart with a plain ``except``:

Error Kinds:
- 1xxx: Invalid request payloads (raised before any I/O)
- 2xxx: Transport failures (connect or send rejected)
- 3xxx: Protocol failures (malformed JSON, unexpected response shape)
- 4xxx: Remote JSON-RPC errors (the server returned an ``error`` object)
- 5xxx: Local misuse of the session
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any


# ============================================================================
# Error Kinds
# ============================================================================


class ErrorKind(IntEnum):
    """Local classification of every error raised by jsonrpc-do."""

    INVALID_PAYLOAD = 1001
    TRANSPORT_ERROR = 2001
    PROTOCOL_ERROR = 3001
    RPC_ERROR = 4001
    USAGE_ERROR = 5001


ERROR_KIND_NAMES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_PAYLOAD: "INVALID_PAYLOAD",
    ErrorKind.TRANSPORT_ERROR: "TRANSPORT_ERROR",
    ErrorKind.PROTOCOL_ERROR: "PROTOCOL_ERROR",
    ErrorKind.RPC_ERROR: "RPC_ERROR",
    ErrorKind.USAGE_ERROR: "USAGE_ERROR",
}


class JsonRpcErrorCode(IntEnum):
    """Reserved JSON-RPC 2.0 error codes."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
    SERVER_ERROR = -32000


# ============================================================================
# Base Error Class
# ============================================================================


class JsonRpcDoError(Exception):
    """
    Base class for all jsonrpc-do errors.

    Error Hierarchy:
    - JsonRpcDoError (base)
      - InvalidPayloadError: request payload is not a JSON-RPC request
      - TransportError: the transport failed to connect or send
      - ProtocolError: the response could not be interpreted
        - InvalidResponseFormat: the response was not valid JSON
      - RpcError: the server answered with an ``error`` object
      - UsageError: the session was used incorrectly

    Example:
        ```python
        try:
            await session.dispatch(Method("eth_blockNumber"))
        except JsonRpcDoError as error:
            print(f"[{error.kind_name}] {error.message}")
        ```

    Attributes:
        message: Human-readable error message.
        kind: Local error kind (e.g., ErrorKind.TRANSPORT_ERROR).
        kind_name: String name of the kind (e.g., 'TRANSPORT_ERROR').
    """

    def __init__(self, message: str, kind: ErrorKind) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.kind_name = ERROR_KIND_NAMES.get(kind, "UNKNOWN_ERROR")

    def __str__(self) -> str:
        return f"{self.kind_name}({int(self.kind)}): {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"

    def to_dict(self) -> dict[str, Any]:
        """Return a dictionary representation of the error."""
        return {
            "name": self.__class__.__name__,
            "message": self.message,
            "kind": int(self.kind),
            "kind_name": self.kind_name,
        }


# ============================================================================
# Specific Error Types
# ============================================================================


class InvalidPayloadError(JsonRpcDoError):
    """
    Raised before any I/O when a descriptor produces an unusable payload.

    The payload must be a string holding a JSON object with a string
    ``method`` member.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorKind.INVALID_PAYLOAD)


class TransportError(JsonRpcDoError):
    """
    Raised when the transport's connect or send fails.

    The original exception is kept as ``__cause__``.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorKind.TRANSPORT_ERROR)


class ProtocolError(JsonRpcDoError):
    """
    Raised when a round trip succeeded but the response makes no sense.

    Common causes:
    - Response is not valid JSON (see InvalidResponseFormat)
    - Response is neither a JSON-RPC response object nor an array of them
    - Batch response does not line up with the submitted requests
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorKind.PROTOCOL_ERROR)


class InvalidResponseFormat(ProtocolError):
    """Raised when the raw response cannot be parsed as JSON."""


class RpcError(JsonRpcDoError):
    """
    The remote endpoint answered with a JSON-RPC ``error`` object.

    Example:
        ```python
        try:
            await session.dispatch(Method("eth_call", [tx, "latest"]))
        except RpcError as error:
            print(error.code, error.message)
        ```

    Attributes:
        code: The JSON-RPC error code from the response.
        data: The optional ``data`` member of the error object.
        index: Position of the failing call inside a batch, if any.
    """

    def __init__(
        self,
        message: str,
        code: int = JsonRpcErrorCode.SERVER_ERROR,
        data: Any = None,
        index: int | None = None,
    ) -> None:
        super().__init__(message, ErrorKind.RPC_ERROR)
        self.code = int(code)
        self.data = data
        self.index = index

    @property
    def code_name(self) -> str | None:
        """Name of a reserved JSON-RPC code, or None for application codes."""
        try:
            return JsonRpcErrorCode(self.code).name
        except ValueError:
            return None

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return f"RpcError({self.message!r}, code={self.code})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RpcError):
            return NotImplemented
        return (self.message, self.code, self.data) == (other.message, other.code, other.data)

    def __hash__(self) -> int:
        return hash((self.message, self.code))

    def to_dict(self) -> dict[str, Any]:
        error = super().to_dict()
        error["code"] = self.code
        if self.data is not None:
            error["data"] = self.data
        if self.index is not None:
            error["index"] = self.index
        return error


class UsageError(JsonRpcDoError):
    """
    Raised on local misuse of a session.

    Common causes:
    - Calling flush() without enabling batch mode first
    - Flushing an empty batch
    - Dispatching after close()
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorKind.USAGE_ERROR)


# ============================================================================
# Error Utilities
# ============================================================================


def is_error_kind(error: BaseException, kind: ErrorKind) -> bool:
    """
    Check if an error is a JsonRpcDoError of a specific kind.

    Example:
        ```python
        try:
            await session.dispatch(method)
        except Exception as error:
            if is_error_kind(error, ErrorKind.TRANSPORT_ERROR):
                ...
        ```
    """
    return isinstance(error, JsonRpcDoError) and error.kind == kind


def create_error(kind: ErrorKind, message: str) -> JsonRpcDoError:
    """Create the JsonRpcDoError subclass matching ``kind``."""
    if kind == ErrorKind.INVALID_PAYLOAD:
        return InvalidPayloadError(message)
    elif kind == ErrorKind.TRANSPORT_ERROR:
        return TransportError(message)
    elif kind == ErrorKind.PROTOCOL_ERROR:
        return ProtocolError(message)
    elif kind == ErrorKind.RPC_ERROR:
        return RpcError(message)
    elif kind == ErrorKind.USAGE_ERROR:
        return UsageError(message)
    else:
        return JsonRpcDoError(message, kind)


def wrap_error(
    error: BaseException,
    default_kind: ErrorKind = ErrorKind.TRANSPORT_ERROR,
) -> JsonRpcDoError:
    """
    Wrap an arbitrary exception into a JsonRpcDoError.

    JsonRpcDoError instances are returned unchanged. Anything else becomes
    an error of ``default_kind`` whose ``__cause__`` is the original.
    """
    if isinstance(error, JsonRpcDoError):
        return error
    wrapped = create_error(default_kind, str(error) or error.__class__.__name__)
    wrapped.__cause__ = error
    return wrapped
