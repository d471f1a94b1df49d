"""
Tool registry with dispatch table for the MCP server.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from .types import ToolResult

if TYPE_CHECKING:
    from ..context import PerfContext

logger = logging.getLogger("mcp.perf_trace.registry")

HandlerFunc = Callable[["PerfContext", dict[str, Any]], ToolResult]


class ToolRegistry:
    """Registry for tool handlers with automatic browser lifecycle management."""

    def __init__(self) -> None:
        # name -> (handler, requires_browser)
        self._handlers: dict[str, tuple[HandlerFunc, bool]] = {}

    def register_many(self, handlers: dict[str, tuple[HandlerFunc, bool]]) -> None:
        self._handlers.update(handlers)

    def has(self, name: str) -> bool:
        return name in self._handlers

    def dispatch(self, name: str, context: PerfContext, arguments: dict[str, Any]) -> ToolResult:
        """
        Dispatch a tool call to its handler.

        Raises:
            KeyError: If tool not found
        """
        handler_info = self._handlers.get(name)
        if handler_info is None:
            raise KeyError(f"Unknown tool: {name}")

        handler, requires_browser = handler_info
        if requires_browser:
            launch_res = context.launcher.ensure_running()
            # Fail fast when the port listens but /json/version hangs.
            if not context.launcher.cdp_ready(timeout=0.6):
                logger.warning("cdp_not_ready tool=%s port=%s", name, context.config.cdp_port)
                return ToolResult.error(
                    "CDP endpoint not reachable (port may be in use or Chrome is hung)",
                    tool=name,
                    suggestion="Restart Chrome with remote debugging or change MCP_BROWSER_PORT",
                    details={"cdpPort": context.config.cdp_port, "message": launch_res.message},
                )

        return handler(context, arguments)

    @property
    def tool_names(self) -> list[str]:
        return list(self._handlers.keys())

    def __len__(self) -> int:
        return len(self._handlers)


def create_default_registry() -> ToolRegistry:
    from .handlers import ALL_HANDLERS

    registry = ToolRegistry()
    registry.register_many(ALL_HANDLERS)
    return registry


__all__ = ["HandlerFunc", "ToolRegistry", "create_default_registry"]
