"""Server configuration.

Precedence (highest to lowest):
1. Environment variables (FRAMED_MCP_*)
2. Default values

Usage:
    config = ServerConfig.from_env()
    logging.basicConfig(level=config.log_level)
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from mcp import types

from . import __version__

logger = logging.getLogger(__name__)

ENV_PREFIX = "FRAMED_MCP_"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

ENV_OVERRIDES = {
    "name": ENV_PREFIX + "SERVER_NAME",
    "version": ENV_PREFIX + "SERVER_VERSION",
    "log_level": ENV_PREFIX + "LOG_LEVEL",
}


@dataclass(frozen=True)
class ServerConfig:
    """Identity and logging settings for one server process.

    Attributes:
        name: Reported as ``serverInfo.name`` in the initialize result
        version: Reported as ``serverInfo.version`` (semantic version string)
        log_level: Standard logging level name
    """

    name: str = "framed-mcp"
    version: str = __version__
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        level = self.log_level.upper()
        if level not in LOG_LEVELS:
            msg = f"Unknown log level {self.log_level!r}, expected one of {', '.join(LOG_LEVELS)}"
            raise ValueError(msg)
        object.__setattr__(self, "log_level", level)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ServerConfig:
        """Build a config from defaults overridden by FRAMED_MCP_* variables."""
        env = os.environ if environ is None else environ
        overrides: dict[str, str] = {}
        for attr, key in ENV_OVERRIDES.items():
            if key in env:
                overrides[attr] = env[key]
        if overrides:
            logger.debug("Config overrides from environment: %s", sorted(overrides))
        return cls(**overrides)

    def server_info(self) -> dict[str, Any]:
        """The ``serverInfo`` object sent in the initialize result."""
        info = types.Implementation(name=self.name, version=self.version)
        return info.model_dump(exclude_none=True)
