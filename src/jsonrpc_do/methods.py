"""
Method descriptors - what a session needs to know about one call.

A descriptor encodes itself as a JSON-RPC request string and knows how to
turn the raw result values of that request into Python values. Anything
with ``to_payload()`` and ``transform()`` works; ``Method`` is the stock
implementation with positional output formatters.
"""

from __future__ import annotations

import itertools
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol, Sequence, runtime_checkable

from .errors import InvalidPayloadError

__all__ = ["MethodDescriptor", "Method", "hex_to_int", "to_bool"]

OutputFormatter = Callable[[Any], Any]

_ids = itertools.count(1)


@runtime_checkable
class MethodDescriptor(Protocol):
    """Encode/decode contract for a single JSON-RPC call."""

    def to_payload(self) -> str:
        """Serialized JSON-RPC request object."""
        ...

    def transform(self, values: list[Any]) -> list[Any]:
        """Apply output formatters positionally to ``values``."""
        ...


@dataclass
class Method:
    """
    A JSON-RPC 2.0 method call.

    Example:
        block = Method("eth_blockNumber", output_formatters=[hex_to_int])
        number = await session.dispatch(block)

    Attributes:
        method: Remote method name
        params: Positional (list) or named (dict) parameters
        id: Request id; a process-wide counter is used when omitted
        output_formatters: Formatter per result position; a missing or
            None entry leaves that position unchanged
    """

    method: str
    params: Sequence[Any] | dict[str, Any] = field(default_factory=list)
    id: int | str | None = None
    output_formatters: Sequence[OutputFormatter | None] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if isinstance(self.params, (str, bytes, bytearray)):
            raise InvalidPayloadError(
                f"params must be a list or dict, got {type(self.params).__name__}"
            )
        if self.id is None:
            self.id = next(_ids)

    def to_dict(self) -> dict[str, Any]:
        params = self.params if isinstance(self.params, dict) else list(self.params)
        return {
            "jsonrpc": "2.0",
            "method": self.method,
            "params": params,
            "id": self.id,
        }

    def to_payload(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    def transform(self, values: list[Any]) -> list[Any]:
        transformed = list(values)
        for position, value in enumerate(transformed):
            if position >= len(self.output_formatters):
                break
            formatter = self.output_formatters[position]
            if formatter is not None:
                transformed[position] = formatter(value)
        return transformed


# ============================================================================
# Output formatters
# ============================================================================


def hex_to_int(value: Any) -> Any:
    """Decode a ``0x``-prefixed hex quantity; other values pass through."""
    if isinstance(value, str) and value[:2].lower() == "0x":
        return int(value, 16) if len(value) > 2 else 0
    return value


def to_bool(value: Any) -> bool:
    """Decode booleans sent as JSON booleans or hex/int quantities."""
    if isinstance(value, str):
        return hex_to_int(value) not in (0, "", "false")
    return bool(value)
