"""Minimal Model Context Protocol server over Content-Length framed stdio."""

__version__ = "0.1.0"
