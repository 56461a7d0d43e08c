"""MCP server entry point.

Reads Content-Length framed JSON-RPC messages from standard input, drives
the session lifecycle (initialize, dispatch, shutdown) and writes one
response frame per request to standard output. Log records go to
standard error.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, BinaryIO, Callable

from mcp import types

from .config import ServerConfig
from .models.tools import ToolError, ToolRegistry, default_registry
from .protocol.framing import FrameError, read_frame, write_frame
from .protocol.messages import (
    ErrorCode,
    MessageKind,
    Notification,
    Request,
    RpcError,
    classify,
    decode_message,
    encode_message,
    parse_error_response,
    success_response,
)

logger = logging.getLogger(__name__)

MethodHandler = Callable[[Request], Any]
NotificationHandler = Callable[[Notification], None]

LOG_FORMAT = "[%(name)s] %(levelname)s %(message)s"


class McpServer:
    """One protocol session over a pair of binary streams.

    Usage::

        server = McpServer(sys.stdin.buffer, sys.stdout.buffer)
        server.run()

    The ``initialized`` flag belongs to this instance; every session gets
    its own server object.
    """

    def __init__(
        self,
        input_stream: BinaryIO,
        output_stream: BinaryIO,
        registry: ToolRegistry | None = None,
        config: ServerConfig | None = None,
    ) -> None:
        self._input = input_stream
        self._output = output_stream
        self._registry = registry if registry is not None else default_registry()
        self._config = config if config is not None else ServerConfig()
        self._initialized = False

        self._methods: dict[str, MethodHandler] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
            "shutdown": self._shutdown,
        }
        self._notifications: dict[str, NotificationHandler] = {
            "notifications/initialized": self._on_initialized,
        }

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def register_method(self, method: str, handler: MethodHandler) -> None:
        """Expose an extra request method. It is gated on initialization."""
        if method in self._methods:
            raise ValueError(f"Method already registered: {method}")
        self._methods[method] = handler

    # ─── MAIN LOOP ───────────────────────────────────────────────────

    def run(self) -> bool:
        """Serve frames until the input is exhausted.

        Returns:
            ``True`` if the input ended cleanly between frames, ``False`` if
            the session ended on a truncated or malformed frame.

        Raises:
            OSError: Reading or writing the underlying streams failed.
        """
        logger.info("Serving %s %s", self._config.name, self._config.version)
        while True:
            try:
                frame = read_frame(self._input)
            except FrameError as exc:
                logger.warning("Session ended on malformed frame: %s", exc)
                return False
            if frame is None:
                logger.info("Input closed, session ended")
                return True

            logger.debug("Received %r", frame)
            try:
                response = self.handle_payload(frame.payload)
                if response is None:
                    continue
                payload = encode_message(response)
            except Exception:
                logger.exception("Unexpected error while handling frame")
                continue
            self._send(payload)

    def _send(self, payload: str) -> None:
        logger.debug("Sending %s", payload)
        write_frame(self._output, payload)

    # ─── JSON IN / JSON OUT ──────────────────────────────────────────

    def handle_payload(self, payload: bytes | str) -> dict[str, Any] | None:
        """Handle one raw payload and return the response owed, if any."""
        try:
            message = decode_message(payload)
        except ValueError as exc:
            logger.warning("Failed to parse payload: %s", exc)
            return parse_error_response()
        return self.handle_message(message)

    def handle_message(self, message: Any) -> dict[str, Any] | None:
        """Classify and dispatch a decoded message.

        Returns the response object for requests, ``None`` for everything
        else.
        """
        kind = classify(message)
        if kind is MessageKind.REQUEST:
            return self._handle_request(Request.from_message(message))
        if kind is MessageKind.NOTIFICATION:
            self._handle_notification(Notification.from_message(message))
        elif kind is MessageKind.INVALID_VERSION:
            logger.warning("Dropping message without jsonrpc version 2.0")
        elif kind is MessageKind.UNKNOWN:
            logger.warning("Unrecognized message shape: %s", encode_message(message))
        # Responses are ignored: this server never sends requests.
        return None

    def _handle_request(self, request: Request) -> dict[str, Any]:
        try:
            result = self._dispatch(request)
        except RpcError as exc:
            return exc.to_response(request.id)
        except (KeyError, TypeError, AttributeError, ToolError) as exc:
            return RpcError(ErrorCode.INTERNAL_ERROR, _describe(exc)).to_response(request.id)
        return success_response(request.id, result)

    def _dispatch(self, request: Request) -> Any:
        if not isinstance(request.method, str):
            raise RpcError(ErrorCode.INVALID_REQUEST, "Request method must be a string")
        if request.method != "initialize" and not self._initialized:
            raise RpcError(ErrorCode.INVALID_REQUEST, "Server has not been initialized")
        handler = self._methods.get(request.method)
        if handler is None:
            raise RpcError(
                ErrorCode.METHOD_NOT_FOUND,
                f"Method not implemented: {request.method}",
            )
        return handler(request)

    def _handle_notification(self, notification: Notification) -> None:
        if not isinstance(notification.method, str):
            logger.warning("Dropping notification with a non-string method")
            return
        handler = self._notifications.get(notification.method)
        if handler is None:
            logger.info("Ignoring notification: %s", notification.method)
            return
        handler(notification)

    # ─── LIFECYCLE ───────────────────────────────────────────────────

    def _initialize(self, request: Request) -> dict[str, Any]:
        params = request.params if isinstance(request.params, dict) else {}
        requested = params.get("protocolVersion")
        protocol_version = (
            requested if isinstance(requested, str) else types.LATEST_PROTOCOL_VERSION
        )
        if self._initialized:
            logger.info("Repeated initialize request")
        self._initialized = True
        logger.info("Session initialized (protocol %s)", protocol_version)
        return {
            "protocolVersion": protocol_version,
            "capabilities": {"tools": {"list": True, "call": True}},
            "serverInfo": self._config.server_info(),
        }

    def _on_initialized(self, notification: Notification) -> None:
        logger.info("Client signalled that initialization is complete")

    def _ping(self, request: Request) -> dict[str, str]:
        return {"result": "pong"}

    def _shutdown(self, request: Request) -> dict[str, Any]:
        logger.info("Shutdown requested, serving until input closes")
        return {}

    # ─── TOOLS ───────────────────────────────────────────────────────

    def _list_tools(self, request: Request) -> dict[str, Any]:
        return {"tools": self._registry.list_tools()}

    def _call_tool(self, request: Request) -> dict[str, Any]:
        params = request.params
        if params is None:
            raise RpcError(ErrorCode.INVALID_REQUEST, "Missing params for tools/call")
        if not isinstance(params, dict):
            raise TypeError("params for tools/call must be an object")
        name = params["name"]
        try:
            return self._registry.call(name, params.get("arguments"))
        except ToolError:
            raise
        except Exception as exc:
            logger.exception("Tool %s failed", name)
            raise ToolError(f"Tool {name} failed: {exc}") from exc


def _describe(exc: Exception) -> str:
    if isinstance(exc, KeyError):
        return f"Missing field: {exc.args[0]}"
    return str(exc)


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main() -> int:
    """Run the MCP server with stdio transport."""
    try:
        config = ServerConfig.from_env()
    except ValueError as exc:
        print(f"framed-mcp: invalid configuration: {exc}", file=sys.stderr)
        return 2
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT, stream=sys.stderr)
    server = McpServer(sys.stdin.buffer, sys.stdout.buffer, config=config)
    try:
        server.run()
    except OSError:
        logger.exception("MCP server exited with a stream error")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
