"""Tool catalog: named, schema-described capabilities exposed over MCP.

Each tool is a :class:`ToolDescriptor` held by a :class:`ToolRegistry`.
Adding a tool means registering a descriptor; the dispatch code never
changes. An unknown tool name is a registry lookup miss.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from mcp import types

logger = logging.getLogger(__name__)

# A tool receives its ``arguments`` object and returns content items.
ToolHandler = Callable[[dict[str, Any]], list[dict[str, Any]]]


class ToolError(Exception):
    """A tool could not be found or failed while running."""


@dataclass(frozen=True)
class ToolDescriptor:
    """Immutable catalog entry for one tool."""

    name: str
    description: str
    input_schema: dict[str, Any]
    handler: ToolHandler = field(repr=False, compare=False)

    def to_dict(self) -> dict[str, Any]:
        tool = types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=copy.deepcopy(self.input_schema),
        )
        return tool.model_dump(exclude_none=True, by_alias=True)


def text_content(text: str) -> dict[str, Any]:
    """Build a ``{"type": "text", "text": ...}`` content item."""
    item = types.TextContent(type="text", text=text)
    return item.model_dump(exclude_none=True, by_alias=True)


class ToolRegistry:
    """Mapping from tool name to descriptor.

    Usage::

        registry = ToolRegistry()

        @registry.tool("shout", "Upper-case the text", schema)
        def shout(arguments):
            return [text_content(arguments.get("text", "").upper())]

        registry.call("shout", {"text": "hi"})
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolDescriptor] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def register(self, descriptor: ToolDescriptor) -> ToolDescriptor:
        """Add a tool to the catalog.

        Raises:
            ValueError: A tool with the same name is already registered.
        """
        if descriptor.name in self._tools:
            raise ValueError(f"Tool already registered: {descriptor.name}")
        self._tools[descriptor.name] = descriptor
        logger.debug("Registered tool %s", descriptor.name)
        return descriptor

    def tool(
        self,
        name: str,
        description: str,
        input_schema: dict[str, Any],
    ) -> Callable[[ToolHandler], ToolHandler]:
        """Decorator form of :meth:`register`."""

        def decorator(handler: ToolHandler) -> ToolHandler:
            self.register(ToolDescriptor(name, description, input_schema, handler))
            return handler

        return decorator

    def get(self, name: str) -> ToolDescriptor:
        try:
            return self._tools[name]
        except KeyError:
            raise ToolError(f"Unknown tool: {name}") from None

    def list_tools(self) -> list[dict[str, Any]]:
        """Serialize the catalog. A fresh list is built on every call."""
        return [descriptor.to_dict() for descriptor in self._tools.values()]

    def call(self, name: str, arguments: Any = None) -> dict[str, Any]:
        """Invoke a tool and wrap its output in a ``tools/call`` result.

        Args:
            name: Registered tool name.
            arguments: The ``arguments`` object from the request. ``None``
                is treated as an empty object.

        Raises:
            ToolError: Unknown tool, arguments that are not an object, or
                a failure raised by the tool itself.
        """
        descriptor = self.get(name)
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ToolError(f"Arguments for {name} must be an object")
        content = descriptor.handler(arguments)
        return {"content": content}


# ─── BUILT-IN TOOLS ──────────────────────────────────────────────────

ECHO_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "text": {
            "type": "string",
            "description": "Text to echo back to the caller.",
        },
    },
    "required": ["text"],
}


def echo(arguments: dict[str, Any]) -> list[dict[str, Any]]:
    """Return the ``text`` argument verbatim; a missing one echoes ``""``."""
    text = arguments.get("text", "")
    if not isinstance(text, str):
        raise ToolError("Argument 'text' must be a string")
    return [text_content(text)]


def default_registry() -> ToolRegistry:
    """Build a new registry holding the built-in tools."""
    registry = ToolRegistry()
    registry.register(
        ToolDescriptor(
            name="echo",
            description="Return the same text that the caller provides.",
            input_schema=ECHO_SCHEMA,
            handler=echo,
        )
    )
    return registry
