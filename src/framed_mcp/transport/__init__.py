"""Client-side transports for talking to a framed MCP server."""

from .stdio_client import ClientError, ServerInfo, StdioClient
