"""Stdio client for a framed MCP server.

Spawns the server command as a subprocess and exchanges Content-Length
framed JSON-RPC messages over its standard input and output. Requests are
strictly sequential: one request is written, and its response is read
before the next request goes out.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from typing import Any

from ..protocol.framing import read_frame, write_frame
from ..protocol.messages import JSONRPC_VERSION, decode_message, encode_message

logger = logging.getLogger(__name__)

CLOSE_TIMEOUT_S = 2.0
CLIENT_INFO = {"name": "framed-mcp-client", "version": "0.1.0"}


class ClientError(Exception):
    """The server answered a request with a JSON-RPC error object."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"{message} (code {code})")
        self.code = code
        self.message = message


@dataclass
class ServerInfo:
    """Identity and capabilities reported by the initialize result."""

    name: str = ""
    version: str = ""
    protocol_version: str = ""
    capabilities: dict[str, Any] = field(default_factory=dict)


class StdioClient:
    """Drives an MCP server subprocess over framed stdio.

    Usage::

        with StdioClient(["framed-mcp"]) as client:
            client.initialize()
            print(client.call_tool("echo", {"text": "hi"}))
    """

    def __init__(self, command: list[str], env: dict[str, str] | None = None) -> None:
        self._command = list(command)
        self._env = env
        self._process: subprocess.Popen | None = None
        self._next_id = 0
        self._server_info = ServerInfo()

    @property
    def connected(self) -> bool:
        return self._process is not None and self._process.poll() is None

    @property
    def server_info(self) -> ServerInfo:
        return self._server_info

    def __enter__(self) -> StdioClient:
        self.open()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def open(self) -> None:
        """Start the server process.

        Raises:
            ConnectionError: If the command cannot be started.
        """
        if self.connected:
            return
        try:
            self._process = subprocess.Popen(
                self._command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                env=self._env,
            )
        except OSError as e:
            raise ConnectionError(
                f"Could not start MCP server {self._command[0]!r}: {e}"
            ) from e
        logger.info("Started MCP server: %s", " ".join(self._command))

    def close(self) -> int | None:
        """Close the server's input and wait for it to exit.

        Returns:
            The server's exit status, or ``None`` if it was never started.
        """
        process = self._process
        if process is None:
            return None
        try:
            if process.stdin is not None:
                process.stdin.close()
            try:
                return process.wait(timeout=CLOSE_TIMEOUT_S)
            except subprocess.TimeoutExpired:
                logger.warning("MCP server did not exit, killing it")
                process.kill()
                return process.wait()
        finally:
            if process.stdout is not None:
                process.stdout.close()
            self._process = None
            logger.info("Disconnected")

    # ─── RAW MESSAGES ────────────────────────────────────────────────

    def _pipes(self) -> subprocess.Popen:
        if not self.connected:
            raise ConnectionError("MCP server is not running")
        return self._process

    def _write(self, message: dict[str, Any]) -> None:
        process = self._pipes()
        write_frame(process.stdin, encode_message(message))

    def request(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """Send a request and return the ``result`` of its response.

        Raises:
            ClientError: The server answered with an error object.
            ConnectionError: The server closed its output or answered a
                different request id.
        """
        self._next_id += 1
        request_id = self._next_id
        message: dict[str, Any] = {
            "jsonrpc": JSONRPC_VERSION,
            "id": request_id,
            "method": method,
        }
        if params is not None:
            message["params"] = params
        self._write(message)

        frame = read_frame(self._pipes().stdout)
        if frame is None:
            raise ConnectionError(f"MCP server closed its output during {method}")
        response = decode_message(frame.payload)
        if response.get("id") != request_id:
            raise ConnectionError(
                f"Response id {response.get('id')!r} does not match request {request_id}"
            )
        if "error" in response:
            error = response["error"]
            raise ClientError(error.get("code", 0), error.get("message", ""))
        return response.get("result")

    def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        """Send a notification. No response is read."""
        message: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "method": method}
        if params is not None:
            message["params"] = params
        self._write(message)

    # ─── PROTOCOL OPERATIONS ─────────────────────────────────────────

    def initialize(self, protocol_version: str | None = None) -> ServerInfo:
        """Run the initialize handshake and return the server's identity."""
        params: dict[str, Any] = {"capabilities": {}, "clientInfo": dict(CLIENT_INFO)}
        if protocol_version is not None:
            params["protocolVersion"] = protocol_version
        result = self.request("initialize", params)
        self.notify("notifications/initialized")

        server = result.get("serverInfo", {})
        self._server_info = ServerInfo(
            name=server.get("name", ""),
            version=server.get("version", ""),
            protocol_version=result.get("protocolVersion", ""),
            capabilities=result.get("capabilities", {}),
        )
        logger.info(
            "Initialized %s %s",
            self._server_info.name,
            self._server_info.version,
        )
        return self._server_info

    def ping(self) -> bool:
        result = self.request("ping")
        return result == {"result": "pong"}

    def list_tools(self) -> list[dict[str, Any]]:
        return self.request("tools/list").get("tools", [])

    def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> str:
        """Invoke a tool and join the text of its text content items."""
        result = self.request(
            "tools/call", {"name": name, "arguments": arguments or {}}
        )
        content = result.get("content", [])
        return "".join(
            item.get("text", "") for item in content if item.get("type") == "text"
        )

    def shutdown(self) -> None:
        self.request("shutdown")
