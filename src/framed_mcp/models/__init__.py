"""Data models for the tool catalog."""

from .tools import ToolDescriptor, ToolError, ToolRegistry, default_registry
