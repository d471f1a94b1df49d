"""
Emulation and navigation tool handlers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ...emulation import apply_emulation
from ...errors import SmartToolError
from ..types import ToolResult

if TYPE_CHECKING:
    from ...context import PerfContext


def handle_emulate(context: PerfContext, args: dict[str, Any]) -> ToolResult:
    context.emulation = apply_emulation(context.get_selected_page(), context.emulation, args)
    applied = context.emulation.describe()
    return ToolResult.json({"ok": True, "emulation": applied or "none"})


def handle_navigate_page(context: PerfContext, args: dict[str, Any]) -> ToolResult:
    url = args.get("url")
    if not isinstance(url, str) or not url.strip():
        raise SmartToolError(
            tool="navigate_page",
            action="validate",
            reason="url is required",
            suggestion="Pass an absolute URL such as https://example.com",
        )
    timeout = args.get("timeout", 15)
    timeout = float(timeout) if isinstance(timeout, (int, float)) and not isinstance(timeout, bool) else 15.0

    page = context.get_selected_page()
    loaded = page.navigate(url.strip(), wait_until="load", timeout=timeout)
    return ToolResult.json({"ok": True, "url": page.get_url(), "loaded": loaded})


EMULATION_HANDLERS: dict[str, tuple] = {
    "emulate": (handle_emulate, True),
    "navigate_page": (handle_navigate_page, True),
}
