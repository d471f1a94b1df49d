"""High-level browser session: the browser control surface used by the trace pipeline."""

from __future__ import annotations

import base64
import time
from contextlib import suppress
from collections.abc import Callable
from typing import Any, Union

from .ax_tree import AXNode, attach_subtree, build_ax_tree
from .http_client import HttpClientError
from .session_cdp import CdpConnection


class ElementHandle:
    """Remote object handle for a DOM node, addressed by backendNodeId."""

    def __init__(self, session: BrowserSession, backend_node_id: int, object_id: str) -> None:
        self.session = session
        self.backend_node_id = backend_node_id
        self.object_id = object_id

    def _clip(self) -> dict[str, float]:
        with suppress(Exception):
            self.session.send("DOM.scrollIntoViewIfNeeded", {"backendNodeId": self.backend_node_id})
        box = self.session.send("DOM.getBoxModel", {"backendNodeId": self.backend_node_id})
        model = box.get("model") if isinstance(box, dict) else None
        quad = model.get("border") if isinstance(model, dict) else None
        if not isinstance(quad, list) or len(quad) < 8:
            raise HttpClientError(f"No box model for node {self.backend_node_id}")

        xs = [float(v) for v in quad[0::2]]
        ys = [float(v) for v in quad[1::2]]
        width = max(xs) - min(xs)
        height = max(ys) - min(ys)
        if width <= 0 or height <= 0:
            raise HttpClientError(f"Node {self.backend_node_id} is not visible")

        # Box model quads are viewport-relative; captureScreenshot clips are page-relative.
        page_x = page_y = 0.0
        with suppress(Exception):
            metrics = self.session.send("Page.getLayoutMetrics")
            viewport = metrics.get("cssLayoutViewport") or metrics.get("layoutViewport") or {}
            page_x = float(viewport.get("pageX") or 0.0)
            page_y = float(viewport.get("pageY") or 0.0)
        return {"x": min(xs) + page_x, "y": min(ys) + page_y, "width": width, "height": height, "scale": 1}

    def screenshot(self, type: str = "png") -> bytes:
        """Capture this element's bounding box as raw image bytes."""
        params = {"format": type, "clip": self._clip(), "captureBeyondViewport": True}
        result = self.session.send("Page.captureScreenshot", params)
        data = result.get("data") if isinstance(result, dict) else None
        if not isinstance(data, str) or not data:
            raise HttpClientError("Screenshot data is empty")
        return base64.b64decode(data)

    def dispose(self) -> None:
        with suppress(Exception):
            self.session.send("Runtime.releaseObject", {"objectId": self.object_id})


class BrowserSession:
    """
    High-level browser session for a specific tab.

    Wraps CdpConnection with the operations the trace pipeline needs:
    navigation, tracing, accessibility snapshots, element screenshots and emulation.
    """

    def __init__(self, connection: CdpConnection, tab_id: str, tab_url: str = ""):
        self.conn = connection
        self.tab_id = tab_id
        self.tab_url = tab_url
        self._page_enabled = False

    def close(self) -> None:
        self.conn.close()

    def enable_page(self) -> None:
        if self._page_enabled:
            return
        self.conn.send("Page.enable")
        self._page_enabled = True

    def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return self.conn.send(method, params)

    # ─────────────────────────────────────────────────────────────────────────
    # Navigation
    # ─────────────────────────────────────────────────────────────────────────

    def navigate(self, url: str, *, wait_until: str = "load", timeout: float = 15.0) -> bool:
        """Navigate and wait for `load` or `networkidle`. Returns False if the wait timed out."""
        self.enable_page()
        if wait_until == "networkidle":
            with suppress(Exception):
                self.conn.send("Page.setLifecycleEventsEnabled", {"enabled": True})
        result = self.conn.send("Page.navigate", {"url": url})
        if isinstance(result, dict) and result.get("errorText"):
            raise HttpClientError(f"Navigation to {url} failed: {result['errorText']}")
        self.tab_url = url

        if wait_until == "networkidle":
            deadline = time.time() + timeout
            while (remaining := deadline - time.time()) > 0:
                ev = self.conn.wait_for_event("Page.lifecycleEvent", timeout=remaining)
                if ev is None:
                    return False
                if ev.get("name") == "networkIdle":
                    return True
            return False
        return self.conn.wait_for_event("Page.loadEventFired", timeout=timeout) is not None

    def get_url(self) -> str:
        try:
            history = self.conn.send("Page.getNavigationHistory")
            entries = history.get("entries") or []
            idx = int(history.get("currentIndex", len(entries) - 1))
            if 0 <= idx < len(entries):
                return str(entries[idx].get("url") or "")
        except (HttpClientError, TypeError, ValueError):
            pass
        return self.tab_url

    # ─────────────────────────────────────────────────────────────────────────
    # Tracing
    # ─────────────────────────────────────────────────────────────────────────

    def tracing_start(self, categories: list[str]) -> None:
        """Start a trace. Categories prefixed with '-' are excluded (DevTools convention)."""
        included = [c for c in categories if not c.startswith("-")]
        excluded = [c[1:] for c in categories if c.startswith("-")]
        self.conn.send(
            "Tracing.start",
            {
                "transferMode": "ReturnAsStream",
                "traceConfig": {
                    "recordMode": "recordAsMuchAsPossible",
                    "includedCategories": included,
                    "excludedCategories": excluded,
                },
            },
        )

    def tracing_stop(self, timeout: float = 30.0) -> bytes:
        """End the trace and read the whole stream into memory."""
        self.conn.send("Tracing.end")
        done = self.conn.wait_for_event("Tracing.tracingComplete", timeout=timeout)
        if done is None:
            raise HttpClientError(f"Tracing did not complete within {timeout:.0f}s")
        handle = done.get("stream")
        if not isinstance(handle, str) or not handle:
            raise HttpClientError("Tracing completed without a stream handle")

        chunks: list[bytes] = []
        try:
            while True:
                chunk = self.conn.send("IO.read", {"handle": handle})
                data = chunk.get("data") or ""
                if data:
                    if chunk.get("base64Encoded"):
                        chunks.append(base64.b64decode(data))
                    else:
                        chunks.append(data.encode("utf-8"))
                if chunk.get("eof"):
                    break
        finally:
            with suppress(Exception):
                self.conn.send("IO.close", {"handle": handle})
        return b"".join(chunks)

    # ─────────────────────────────────────────────────────────────────────────
    # Accessibility & elements
    # ─────────────────────────────────────────────────────────────────────────

    def accessibility_snapshot(self, *, include_iframes: bool = False) -> AXNode | None:
        """Full AX tree of the page; iframe documents grafted under their owner nodes."""
        res = self.conn.send("Accessibility.getFullAXTree")
        root = build_ax_tree(res.get("nodes") or [])
        if root is None or not include_iframes:
            return root

        frames: list[dict[str, Any]] = []
        tree = self.conn.send("Page.getFrameTree").get("frameTree") or {}
        pending = list(tree.get("childFrames") or [])
        while pending:
            item = pending.pop(0)
            frame = item.get("frame") if isinstance(item, dict) else None
            if isinstance(frame, dict) and frame.get("id"):
                frames.append(frame)
            pending.extend(item.get("childFrames") or [])

        for frame in frames:
            frame_id = str(frame["id"])
            try:
                sub = self.conn.send("Accessibility.getFullAXTree", {"frameId": frame_id})
            except HttpClientError:
                # Out-of-process iframes are not reachable from this target.
                continue
            subtree = build_ax_tree(sub.get("nodes") or [], frame_id=frame_id)
            if subtree is None:
                continue
            owner: int | None = None
            with suppress(Exception):
                owner = self.conn.send("DOM.getFrameOwner", {"frameId": frame_id}).get("backendNodeId")
            attach_subtree(root, owner if isinstance(owner, int) else None, subtree)
        return root

    def element_handle(self, backend_node_id: int) -> ElementHandle | None:
        res = self.conn.send("DOM.resolveNode", {"backendNodeId": int(backend_node_id)})
        obj = res.get("object") if isinstance(res, dict) else None
        object_id = obj.get("objectId") if isinstance(obj, dict) else None
        if not isinstance(object_id, str) or not object_id:
            return None
        return ElementHandle(self, int(backend_node_id), object_id)

    # ─────────────────────────────────────────────────────────────────────────
    # Emulation
    # ─────────────────────────────────────────────────────────────────────────

    def emulate_network_conditions(self, conditions: dict[str, Any] | None) -> None:
        self.conn.send("Network.enable")
        if conditions is None:
            params = {"offline": False, "latency": 0, "downloadThroughput": -1, "uploadThroughput": -1}
        else:
            params = {
                "offline": bool(conditions.get("offline", False)),
                "latency": float(conditions.get("latency", 0)),
                "downloadThroughput": float(conditions.get("download", -1)),
                "uploadThroughput": float(conditions.get("upload", -1)),
            }
        self.conn.send("Network.emulateNetworkConditions", params)

    def emulate_cpu_throttling(self, rate: float) -> None:
        self.conn.send("Emulation.setCPUThrottlingRate", {"rate": float(rate)})

    def set_geolocation(self, geolocation: dict[str, float] | None) -> None:
        if geolocation is None:
            self.conn.send("Emulation.clearGeolocationOverride")
            return
        self.conn.send(
            "Emulation.setGeolocationOverride",
            {"latitude": geolocation["latitude"], "longitude": geolocation["longitude"], "accuracy": 0},
        )


# A live session, or a callable that connects one on demand.
PageSource = Union[BrowserSession, Callable[[], BrowserSession]]


def resolve_page(page: PageSource) -> BrowserSession:
    return page() if callable(page) else page


__all__ = ["BrowserSession", "ElementHandle", "PageSource", "resolve_page"]
