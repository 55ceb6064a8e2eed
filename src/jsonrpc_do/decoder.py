"""
Response decoding.

Turns the raw text of one transport message into a tagged response:
``SingleResponse`` for a lone JSON-RPC response object, ``BatchResponse``
for an array of them. The shape is decided once, here, so the session
never has to inspect raw JSON.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Sequence, Union

from pydantic import BaseModel, ValidationError

from .errors import InvalidResponseFormat, JsonRpcErrorCode, ProtocolError, RpcError

if TYPE_CHECKING:
    from .batch import Call
    from .methods import MethodDescriptor

__all__ = [
    "Outcome",
    "SingleResponse",
    "BatchResponse",
    "DecodedResponse",
    "decode_response",
    "correlate",
    "apply_transform",
    "strip_error_prefix",
]

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Error: "


class ErrorObjectModel(BaseModel):
    """Pydantic model for the ``error`` member of a JSON-RPC response."""

    code: int
    message: str = ""
    data: Any = None

    model_config = {"extra": "ignore"}


@dataclass(frozen=True)
class Outcome:
    """Result of one call: either a value or an RpcError."""

    value: Any = None
    error: RpcError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class SingleResponse:
    outcome: Outcome


@dataclass(frozen=True)
class BatchResponse:
    """Outcomes in the order the server returned them, with their ids."""

    outcomes: tuple[Outcome, ...]
    ids: tuple[Any, ...]

    def __len__(self) -> int:
        return len(self.outcomes)


DecodedResponse = Union[SingleResponse, BatchResponse]


def strip_error_prefix(message: str) -> str:
    """Drop the leading ``"Error: "`` some nodes put on error messages."""
    if message.startswith(ERROR_PREFIX):
        return message[len(ERROR_PREFIX):]
    return message


def _error_from_object(error: Any) -> RpcError:
    try:
        parsed = ErrorObjectModel.model_validate(error)
    except ValidationError as e:
        raise ProtocolError(f"Malformed error object: {e.errors()[0]['msg']}") from e
    return RpcError(strip_error_prefix(parsed.message), parsed.code, parsed.data)


def _batch_error(error: Any) -> RpcError:
    """
    Build the RpcError for one batch element.

    A malformed error object only fails its own position: it becomes an
    ``INTERNAL_ERROR`` carrying whatever message it had and the raw object
    as ``data``.
    """
    try:
        return _error_from_object(error)
    except ProtocolError:
        logger.debug("Malformed error object in batch response: %r", error)
    message = error.get("message") if isinstance(error, dict) else None
    if not isinstance(message, str):
        message = "Malformed error object"
    return RpcError(strip_error_prefix(message), JsonRpcErrorCode.INTERNAL_ERROR, error)


def _batch_outcome(item: Any) -> Outcome:
    if not isinstance(item, dict):
        raise ProtocolError(
            f"Batch response element must be an object, got {type(item).__name__}"
        )
    if "result" in item:
        return Outcome(value=item["result"])
    if item.get("error") is not None:
        return Outcome(error=_batch_error(item["error"]))
    # Lossy on purpose: neither result nor error reads as a null success.
    logger.debug("Batch response element without result or error: %r", item)
    return Outcome(value=None)


def decode_response(raw: str | bytes) -> DecodedResponse:
    """
    Parse one raw transport message.

    Args:
        raw: Text (or UTF-8 bytes) received from the transport

    Returns:
        SingleResponse or BatchResponse

    Raises:
        InvalidResponseFormat: If ``raw`` is not valid JSON text
        ProtocolError: If the JSON is not a response object or an array of
            response objects
    """
    try:
        parsed = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        raise InvalidResponseFormat(f"json decode error: {e}") from e

    if isinstance(parsed, list):
        outcomes = tuple(_batch_outcome(item) for item in parsed)
        ids = tuple(item.get("id") for item in parsed)
        return BatchResponse(outcomes, ids)

    if isinstance(parsed, dict):
        if "result" in parsed:
            return SingleResponse(Outcome(value=parsed["result"]))
        if parsed.get("error") is not None:
            return SingleResponse(Outcome(error=_error_from_object(parsed["error"])))
        raise ProtocolError("Unexpected response shape: no result or error member")

    raise ProtocolError(f"Unexpected response shape: {type(parsed).__name__}")


def _ids_match(request_ids: Sequence[Any], response_ids: Sequence[Any]) -> bool:
    ids = [*request_ids, *response_ids]
    if not all(isinstance(i, (int, str)) and not isinstance(i, bool) for i in ids):
        return False
    return len(set(request_ids)) == len(request_ids) and set(request_ids) == set(response_ids)


def correlate(calls: Sequence[Call], response: BatchResponse) -> list[Outcome]:
    """
    Line the outcomes of ``response`` up with ``calls``.

    Outcomes are matched by request id when every call and every response
    element carries a distinct id and the two id sets agree. Otherwise they
    are matched by position. Errors get their final position as ``index``.

    Raises:
        ProtocolError: If the response has a different number of elements
    """
    if len(response) != len(calls):
        raise ProtocolError(
            f"Batch response has {len(response)} elements for {len(calls)} requests"
        )

    outcomes = list(response.outcomes)
    request_ids = [call.request_id for call in calls]
    if _ids_match(request_ids, response.ids):
        by_id = dict(zip(response.ids, response.outcomes))
        outcomes = [by_id[request_id] for request_id in request_ids]

    for index, outcome in enumerate(outcomes):
        if outcome.error is not None:
            outcome.error.index = index
    return outcomes


def apply_transform(descriptor: MethodDescriptor, value: Any) -> Any:
    """
    Run ``descriptor.transform`` over a result value.

    Transforms work on sequences, so a scalar result is wrapped in a
    one-element list and unwrapped again afterwards. A list result is
    transformed as a whole.
    """
    if isinstance(value, list):
        return descriptor.transform(value)
    return descriptor.transform([value])[0]
