"""Per-server state shared by tool handlers."""

from __future__ import annotations

import logging
from contextlib import suppress

from .browser_session import BrowserSession
from .config import PerfTraceConfig
from .emulation import EmulationState
from .launcher import BrowserLauncher
from .recorder import TraceRecorder
from .session import SessionManager
from .trace.adapter import TraceAdapter
from .trace.engine import TraceEngine
from .trace.results import TraceResult

logger = logging.getLogger("mcp.perf_trace")


class PerfContext:
    """Owns the launcher, the selected page session, the recorder and emulation state.

    Created once per server and torn down with close(); nothing here is a module global.
    """

    def __init__(
        self,
        config: PerfTraceConfig | None = None,
        *,
        launcher: BrowserLauncher | None = None,
        sessions: SessionManager | None = None,
        engine: TraceEngine | None = None,
    ) -> None:
        self.config = config or PerfTraceConfig.from_env()
        self.launcher = launcher or BrowserLauncher(self.config)
        self.sessions = sessions or SessionManager(self.config)
        self.emulation = EmulationState()
        self.recorder = TraceRecorder(
            TraceAdapter(engine),
            auto_stop_seconds=self.config.auto_stop_seconds,
            stop_timeout=self.config.trace_stop_timeout,
            summary_context=lambda: self.emulation.describe(),
        )

    def get_selected_page(self) -> BrowserSession:
        return self.sessions.get_page()

    def last_recording(self) -> TraceResult | None:
        return self.recorder.last_recording()

    def close(self) -> None:
        self.recorder.close()
        with suppress(Exception):
            self.sessions.close()
        logger.info("context_closed")


__all__ = ["PerfContext"]
