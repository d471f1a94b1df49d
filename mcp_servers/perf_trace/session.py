"""Selected-page session management.

A trace spans several tool calls (start, then stop), and CDP tracing is tied to
the connection that started it, so the selected page keeps one long-lived
connection instead of a connection per tool call.
"""

from __future__ import annotations

import logging
import threading
from contextlib import suppress
from typing import Any

from .browser_session import BrowserSession
from .config import PerfTraceConfig
from .http_client import HttpClientError, http_get_json
from .session_cdp import CdpConnection

logger = logging.getLogger("mcp.perf_trace.session")


class SessionManager:
    """Owns the selected tab and its CDP connection."""

    def __init__(self, config: PerfTraceConfig) -> None:
        self.config = config
        self.tab_id: str | None = None
        self._session: BrowserSession | None = None
        self._lock = threading.Lock()

    def _get_targets(self) -> list[dict[str, Any]]:
        try:
            targets = http_get_json(f"http://127.0.0.1:{self.config.cdp_port}/json/list")
        except HttpClientError:
            return []
        return [t for t in targets if isinstance(t, dict)] if isinstance(targets, list) else []

    def _create_tab(self, url: str = "about:blank") -> str:
        version = http_get_json(f"http://127.0.0.1:{self.config.cdp_port}/json/version")
        browser_ws = version.get("webSocketDebuggerUrl") if isinstance(version, dict) else None
        if not browser_ws:
            raise HttpClientError("CDP browser WebSocket URL not found")
        conn = CdpConnection(browser_ws, timeout=5.0)
        try:
            tab_id = conn.send("Target.createTarget", {"url": url}).get("targetId")
        finally:
            conn.close()
        if not tab_id:
            raise HttpClientError("Failed to create browser tab")
        return str(tab_id)

    def _tab_ws_url(self, tab_id: str) -> str | None:
        for target in self._get_targets():
            if target.get("id") == tab_id:
                return target.get("webSocketDebuggerUrl")
        return None

    def _connect(self) -> BrowserSession:
        if self.tab_id is None:
            pages = [t for t in self._get_targets() if t.get("type") == "page"]
            self.tab_id = str(pages[0]["id"]) if pages else self._create_tab()

        ws_url = self._tab_ws_url(self.tab_id)
        if not ws_url:
            # Tab disappeared; start over with a fresh one.
            self.tab_id = self._create_tab()
            ws_url = self._tab_ws_url(self.tab_id)
        if not ws_url:
            raise HttpClientError("Failed to get selected tab WebSocket URL")

        session = BrowserSession(CdpConnection(ws_url, timeout=self.config.cdp_timeout), self.tab_id)
        session.enable_page()
        logger.info("session_connected tab=%s", self.tab_id)
        return session

    def get_page(self) -> BrowserSession:
        """Return the live session for the selected page, reconnecting if needed."""
        with self._lock:
            sess = self._session
            if sess is not None and getattr(sess.conn.ws, "connected", True):
                return sess
            if sess is not None:
                with suppress(Exception):
                    sess.close()
            self._session = self._connect()
            return self._session

    def close(self) -> None:
        with self._lock:
            if self._session is not None:
                with suppress(Exception):
                    self._session.close()
            self._session = None


__all__ = ["SessionManager"]
