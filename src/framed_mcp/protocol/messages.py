"""JSON-RPC 2.0 message model: error codes, classification and envelopes.

A message's shape is decided structurally, never by a tag field:

- Request: has ``method`` and ``id`` (``id`` may be ``null``)
- Notification: has ``method``, no ``id``
- Response: has ``result`` or ``error``, no ``method``
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any

from mcp import types

JSONRPC_VERSION = "2.0"


class ErrorCode(IntEnum):
    """Standard JSON-RPC error codes used by the server."""

    PARSE_ERROR = types.PARSE_ERROR
    INVALID_REQUEST = types.INVALID_REQUEST
    METHOD_NOT_FOUND = types.METHOD_NOT_FOUND
    INTERNAL_ERROR = types.INTERNAL_ERROR


class MessageKind(Enum):
    """Outcome of :func:`classify`."""

    REQUEST = "request"
    NOTIFICATION = "notification"
    RESPONSE = "response"
    INVALID_VERSION = "invalid_version"
    UNKNOWN = "unknown"


class RpcError(Exception):
    """A failure that is answered with a JSON-RPC error object."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = int(code)
        self.message = message

    def to_response(self, request_id: Any) -> dict[str, Any]:
        return error_response(request_id, self.code, self.message)

    def __repr__(self) -> str:
        return f"RpcError(code={self.code}, message={self.message!r})"


@dataclass
class Request:
    """A request that expects exactly one response."""

    id: Any
    method: Any
    params: Any = None

    @classmethod
    def from_message(cls, message: dict[str, Any]) -> Request:
        return cls(
            id=message["id"],
            method=message["method"],
            params=message.get("params"),
        )


@dataclass
class Notification:
    """A message that must never be answered."""

    method: Any
    params: Any = None

    @classmethod
    def from_message(cls, message: dict[str, Any]) -> Notification:
        return cls(method=message["method"], params=message.get("params"))


def decode_message(payload: bytes | str) -> Any:
    """Parse a frame payload as JSON.

    Raises:
        ValueError: The payload is not valid UTF-8 JSON. Covers both
            ``json.JSONDecodeError`` and ``UnicodeDecodeError``.
    """
    return json.loads(payload)


def encode_message(message: dict[str, Any]) -> str:
    return json.dumps(message, separators=(",", ":"))


def classify(message: Any) -> MessageKind:
    """Decide which of the JSON-RPC shapes a decoded message has.

    The checks run in a fixed order: version tag first, then
    request, notification and response.
    """
    if not isinstance(message, dict) or message.get("jsonrpc") != JSONRPC_VERSION:
        return MessageKind.INVALID_VERSION
    if "method" in message:
        if "id" in message:
            return MessageKind.REQUEST
        return MessageKind.NOTIFICATION
    if "result" in message or "error" in message:
        return MessageKind.RESPONSE
    return MessageKind.UNKNOWN


def success_response(request_id: Any, result: Any) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def error_response(request_id: Any, code: int, message: str) -> dict[str, Any]:
    error = types.ErrorData(code=int(code), message=message)
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "error": error.model_dump(exclude_none=True),
    }


def parse_error_response() -> dict[str, Any]:
    """Response for a payload that is not JSON; there is no id to echo."""
    return error_response(None, ErrorCode.PARSE_ERROR, "Unable to parse JSON payload")
