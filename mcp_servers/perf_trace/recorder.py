"""Trace capture lifecycle: IDLE -> RECORDING -> STOPPING -> IDLE.

One recording at a time per recorder. Starts are gated by the state lock, stop
sequences by the stop lock, and parses by the adapter's own lock. History is an
immutable tuple replaced on append, so readers always see a consistent snapshot.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from contextlib import suppress
from typing import TYPE_CHECKING, Any

from .browser_session import resolve_page
from .persistence import SavedFile, save_file
from .trace.adapter import TraceAdapter
from .trace.insights import get_trace_summary
from .trace.results import BestEffort, TraceResult, trace_result_is_success

if TYPE_CHECKING:
    from .browser_session import BrowserSession, PageSource

logger = logging.getLogger("mcp.perf_trace.recorder")

IDLE = "idle"
RECORDING = "recording"
STOPPING = "stopping"

# Same category set as the DevTools Performance panel and Lighthouse.
TRACE_CATEGORIES: tuple[str, ...] = (
    "-*",
    "blink.console",
    "blink.user_timing",
    "devtools.timeline",
    "disabled-by-default-devtools.screenshot",
    "disabled-by-default-devtools.timeline",
    "disabled-by-default-devtools.timeline.invalidationTracking",
    "disabled-by-default-devtools.timeline.frame",
    "disabled-by-default-devtools.timeline.stack",
    "disabled-by-default-v8.cpu_profiler",
    "disabled-by-default-v8.cpu_profiler.hires",
    "latencyInfo",
    "loading",
    "disabled-by-default-lighthouse",
    "v8.execute",
    "v8",
)

ALREADY_RUNNING = (
    "Error: a performance trace is already running. Use performance_stop_trace to stop it. "
    "Only one trace can be running at any given time."
)
RECORDING_STARTED = "The performance trace is being recorded. Use performance_stop_trace to stop it."
STOPPED_EARLY = "The performance trace was stopped before the auto-stop delay elapsed."
TRACE_STOPPED = "The performance trace has been stopped."
PARSE_FAILED = "There was an unexpected error parsing the trace:"
RESPONSE_FAILED = "An error occurred generating the response for this trace:"


def save_trace(buffer: bytes, file_path: str) -> BestEffort[SavedFile]:
    try:
        return BestEffort(value=save_file(buffer, file_path))
    except OSError as exc:
        return BestEffort(error=str(exc) or repr(exc))


class TraceRecorder:
    """Owns the recording flag, the auto-stop wait and the recording history."""

    def __init__(
        self,
        adapter: TraceAdapter | None = None,
        *,
        auto_stop_seconds: float = 5.0,
        stop_timeout: float = 30.0,
        summary_context: Callable[[], dict[str, Any]] | None = None,
    ) -> None:
        self.adapter = adapter or TraceAdapter()
        self.auto_stop_seconds = auto_stop_seconds
        self.stop_timeout = stop_timeout
        self.summary_context = summary_context

        self._state = IDLE
        self._state_lock = threading.Lock()
        self._stop_lock = threading.Lock()
        self._stop_event: threading.Event | None = None
        self._history: tuple[TraceResult, ...] = ()

    @property
    def state(self) -> str:
        return self._state

    def is_recording(self) -> bool:
        return self._state != IDLE

    def recorded_traces(self) -> tuple[TraceResult, ...]:
        return self._history

    def last_recording(self) -> TraceResult | None:
        history = self._history
        return history[-1] if history else None

    def _set_idle(self) -> None:
        with self._state_lock:
            self._state = IDLE
            self._stop_event = None

    def start(
        self,
        session: BrowserSession,
        *,
        reload: bool = False,
        auto_stop: bool = False,
        file_path: str | None = None,
    ) -> list[str]:
        with self._state_lock:
            if self._state != IDLE:
                return [ALREADY_RUNNING]
            self._state = RECORDING
            stop_event = self._stop_event = threading.Event()

        tracing = False
        try:
            page_url = session.get_url()
            if reload:
                # Clear out any page state before recording.
                session.navigate("about:blank", wait_until="networkidle")
            session.tracing_start(list(TRACE_CATEGORIES))
            tracing = True
            if reload and page_url:
                session.navigate(page_url, wait_until="load")
        except Exception:
            if tracing:
                with suppress(Exception):
                    session.tracing_stop(timeout=self.stop_timeout)
            self._set_idle()
            raise
        logger.info("trace_started reload=%s auto_stop=%s", reload, auto_stop)

        if not auto_stop:
            return [RECORDING_STARTED]

        if stop_event.wait(self.auto_stop_seconds):
            return [STOPPED_EARLY]
        lines = self.stop(session, file_path)
        # An explicit stop can win the race between the wait timing out and stop() taking the lock.
        return lines or [STOPPED_EARLY]

    def stop(self, page: PageSource, file_path: str | None = None) -> list[str]:
        """Stop, save and parse the recording. Silent no-op (empty list) when idle.

        A callable `page` is resolved inside the stop sequence; the recorder returns
        to idle even when resolving it raises.
        """
        with self._stop_lock:
            with self._state_lock:
                if self._state != RECORDING:
                    return []
                self._state = STOPPING
                stop_event = self._stop_event
            if stop_event is not None:
                stop_event.set()
            return self._stop_and_parse(page, file_path)

    def _stop_and_parse(self, page: PageSource, file_path: str | None) -> list[str]:
        lines: list[str] = []
        try:
            session = resolve_page(page)
            buffer = session.tracing_stop(timeout=self.stop_timeout)
            if file_path and buffer:
                saved = save_trace(buffer, file_path).unwrap_or_log(logger, "Saving raw trace")
                if saved is not None:
                    lines.append(f"The raw trace data was saved to {saved.filename}.")

            result = self.adapter.parse_raw_trace_buffer(buffer)
            lines.append(TRACE_STOPPED)
            if trace_result_is_success(result):
                with self._state_lock:
                    self._history = (*self._history, result)
                extra = self.summary_context() if self.summary_context else None
                lines.append(get_trace_summary(result, extra=extra))
            else:
                lines.append(PARSE_FAILED)
                lines.append(result.error)
        except Exception as exc:
            logger.exception("trace_stop_failed")
            lines.append(RESPONSE_FAILED)
            lines.append(str(exc) or repr(exc))
        finally:
            self._set_idle()
        return lines

    def close(self) -> None:
        """Cancel a pending auto-stop wait. The recording flag is left to the stop path."""
        with self._state_lock:
            stop_event = self._stop_event
        if stop_event is not None:
            stop_event.set()


__all__ = [
    "ALREADY_RUNNING",
    "IDLE",
    "RECORDING",
    "RECORDING_STARTED",
    "STOPPING",
    "TRACE_CATEGORIES",
    "TraceRecorder",
    "save_trace",
]
