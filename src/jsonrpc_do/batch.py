"""
Pending calls and the batch envelope.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from .errors import InvalidPayloadError
from .methods import MethodDescriptor

__all__ = ["Call", "BatchAccumulator"]


@dataclass(frozen=True)
class Call:
    """A descriptor together with the request string it encoded to."""

    descriptor: MethodDescriptor
    payload: str
    request_id: int | str | None = None

    @classmethod
    def from_descriptor(cls, descriptor: MethodDescriptor) -> Call:
        """
        Encode ``descriptor`` and validate the result.

        Raises:
            InvalidPayloadError: If encoding fails or the payload is not a
                string holding a JSON-RPC request object
        """
        try:
            payload = descriptor.to_payload()
        except (TypeError, ValueError) as e:
            raise InvalidPayloadError(f"Could not encode payload: {e}") from e
        if not isinstance(payload, str):
            raise InvalidPayloadError(
                f"Payload must be a string, got {type(payload).__name__}"
            )

        try:
            request: Any = json.loads(payload)
        except json.JSONDecodeError as e:
            raise InvalidPayloadError(f"Payload is not valid JSON: {e}") from e

        if not isinstance(request, dict):
            raise InvalidPayloadError(
                f"Payload must be a JSON object, got {type(request).__name__}"
            )
        if not isinstance(request.get("method"), str):
            raise InvalidPayloadError("Payload is missing a string 'method' member")

        return cls(descriptor, payload, request.get("id"))


class BatchAccumulator:
    """
    Ordered buffer of calls waiting for a flush.

    Not locked; the owning session serializes access.
    """

    __slots__ = ("_calls",)

    def __init__(self) -> None:
        self._calls: list[Call] = []

    def add(self, call: Call) -> None:
        self._calls.append(call)

    def snapshot(self) -> list[Call]:
        """Copy of the pending calls in dispatch order."""
        return list(self._calls)

    def clear(self) -> None:
        self._calls.clear()

    def envelope(self) -> str:
        """Concatenate the pending payloads into one JSON array literal."""
        return "[" + ",".join(call.payload for call in self._calls) + "]"

    def __len__(self) -> int:
        return len(self._calls)

    def __bool__(self) -> bool:
        return bool(self._calls)

    def __repr__(self) -> str:
        return f"BatchAccumulator(pending={len(self._calls)})"
