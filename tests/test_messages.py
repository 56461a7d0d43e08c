"""Tests for JSON-RPC message classification and envelopes."""

import pytest

from framed_mcp.protocol.messages import (
    ErrorCode,
    MessageKind,
    Notification,
    Request,
    RpcError,
    classify,
    decode_message,
    encode_message,
    error_response,
    parse_error_response,
    success_response,
)


def test_error_code_values():
    """Codes must match the JSON-RPC standard."""
    assert ErrorCode.PARSE_ERROR == -32700
    assert ErrorCode.INVALID_REQUEST == -32600
    assert ErrorCode.METHOD_NOT_FOUND == -32601
    assert ErrorCode.INTERNAL_ERROR == -32603


@pytest.mark.parametrize(
    "message, kind",
    [
        ({"jsonrpc": "2.0", "id": 1, "method": "ping"}, MessageKind.REQUEST),
        ({"jsonrpc": "2.0", "id": None, "method": "ping"}, MessageKind.REQUEST),
        ({"jsonrpc": "2.0", "id": "abc", "method": "ping"}, MessageKind.REQUEST),
        ({"jsonrpc": "2.0", "method": "notifications/initialized"}, MessageKind.NOTIFICATION),
        ({"jsonrpc": "2.0", "id": 1, "result": {}}, MessageKind.RESPONSE),
        ({"jsonrpc": "2.0", "id": 1, "error": {"code": 1}}, MessageKind.RESPONSE),
        ({"jsonrpc": "2.0", "id": 1}, MessageKind.UNKNOWN),
        ({"id": 1, "method": "ping"}, MessageKind.INVALID_VERSION),
        ({"jsonrpc": "1.0", "id": 1, "method": "ping"}, MessageKind.INVALID_VERSION),
        ({"jsonrpc": 2.0, "id": 1, "method": "ping"}, MessageKind.INVALID_VERSION),
        ([{"jsonrpc": "2.0", "id": 1, "method": "ping"}], MessageKind.INVALID_VERSION),
        ("ping", MessageKind.INVALID_VERSION),
    ],
)
def test_classify(message, kind):
    assert classify(message) is kind


def test_version_checked_before_shape():
    """A request-shaped message with the wrong version is still rejected."""
    assert classify({"jsonrpc": "3.0", "id": 1, "method": "initialize"}) is MessageKind.INVALID_VERSION


def test_method_wins_over_result():
    """Presence of ``method`` decides before ``result``/``error``."""
    msg = {"jsonrpc": "2.0", "method": "x", "result": 1}
    assert classify(msg) is MessageKind.NOTIFICATION


def test_request_from_message():
    req = Request.from_message({"jsonrpc": "2.0", "id": 7, "method": "tools/call", "params": {"a": 1}})
    assert req == Request(id=7, method="tools/call", params={"a": 1})


def test_request_without_params():
    req = Request.from_message({"jsonrpc": "2.0", "id": 7, "method": "ping"})
    assert req.params is None


def test_notification_from_message():
    note = Notification.from_message({"jsonrpc": "2.0", "method": "notifications/initialized"})
    assert note.method == "notifications/initialized"
    assert note.params is None


def test_success_response_echoes_id():
    assert success_response("r-1", {"ok": True}) == {
        "jsonrpc": "2.0",
        "id": "r-1",
        "result": {"ok": True},
    }


def test_error_response_shape():
    """Error objects carry only code and message."""
    assert error_response(3, ErrorCode.METHOD_NOT_FOUND, "nope") == {
        "jsonrpc": "2.0",
        "id": 3,
        "error": {"code": -32601, "message": "nope"},
    }


def test_parse_error_response_has_null_id():
    response = parse_error_response()
    assert response["id"] is None
    assert response["error"]["code"] == -32700


def test_rpc_error_to_response():
    exc = RpcError(ErrorCode.INVALID_REQUEST, "bad")
    assert exc.code == -32600
    assert str(exc) == "bad"
    assert exc.to_response(None)["error"] == {"code": -32600, "message": "bad"}
    assert "code=-32600" in repr(exc)


def test_decode_rejects_invalid_json():
    with pytest.raises(ValueError):
        decode_message(b"{not json")


def test_decode_rejects_invalid_utf8():
    with pytest.raises(ValueError):
        decode_message(b'"\xff\xfe"')


def test_encode_is_compact():
    assert encode_message({"a": [1, 2]}) == '{"a":[1,2]}'
