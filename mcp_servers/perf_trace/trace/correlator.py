"""Correlate a trace-side DOM node id with a live element and screenshot it."""

from __future__ import annotations

import base64
import io
import logging
from typing import TYPE_CHECKING, Any

from PIL import Image

from ..ax_tree import AXNode
from ..browser_session import resolve_page
from .lcp import select_final_lcp_breakdown
from .results import BestEffort, TraceResult

if TYPE_CHECKING:
    from ..browser_session import PageSource

logger = logging.getLogger("mcp.perf_trace.trace")


def find_ax_node(root: AXNode | None, backend_node_id: int) -> AXNode | None:
    """Pre-order search (parent first, children in order) without recursion."""
    if root is None:
        return None
    stack = [root]
    while stack:
        node = stack.pop()
        if node.backend_node_id == backend_node_id:
            return node
        stack.extend(reversed(node.children))
    return None


def _bound_png(png: bytes, max_px: int) -> bytes:
    with Image.open(io.BytesIO(png)) as img:
        if max(img.size) <= max_px:
            return png
        img.thumbnail((max_px, max_px))
        out = io.BytesIO()
        img.save(out, format="PNG", optimize=True)
        return out.getvalue()


def capture_node_screenshot(page: PageSource, backend_node_id: int, *, max_px: int = 800) -> BestEffort[str]:
    """Base64 PNG (no data-URI prefix) of the element behind `backend_node_id`.

    A callable `page` is only resolved here, so a failed reconnect is one more screenshot error.
    """
    try:
        session = resolve_page(page)
        root = session.accessibility_snapshot(include_iframes=True)
        if root is None:
            return BestEffort(error="accessibility snapshot is empty")
        node = find_ax_node(root, backend_node_id)
        if node is None:
            return BestEffort(error=f"node {backend_node_id} not found in accessibility tree")
        handle = session.element_handle(backend_node_id)
        if handle is None:
            return BestEffort(error=f"node {backend_node_id} has no live element handle")
        try:
            png = handle.screenshot(type="png")
        finally:
            handle.dispose()
        return BestEffort(value=base64.b64encode(_bound_png(png, max_px)).decode("ascii"))
    except Exception as exc:
        return BestEffort(error=str(exc) or repr(exc))


def get_lcp_data_with_screenshot(
    page: PageSource | None, result: TraceResult, *, max_px: int = 800
) -> dict[str, Any] | None:
    selected = select_final_lcp_breakdown(result)
    if selected is None:
        return None
    _set_id, lcp_data = selected

    payload = lcp_data.to_dict()
    if lcp_data.backend_node_id and page is not None:
        shot = capture_node_screenshot(page, lcp_data.backend_node_id, max_px=max_px)
        screenshot = shot.unwrap_or_log(logger, "LCP element screenshot")
        if screenshot:
            payload["screenshot"] = screenshot
    return payload


__all__ = ["capture_node_screenshot", "find_ax_node", "get_lcp_data_with_screenshot"]
