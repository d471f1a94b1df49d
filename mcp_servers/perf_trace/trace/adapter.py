"""Drive a trace engine over raw trace buffers.

The engine keeps per-parse state, so reset -> parse -> retrieve runs under one
lock. This is the only place the engine protocol is invoked.
"""

from __future__ import annotations

import logging
import threading

from .decoder import decode_trace_buffer
from .engine import TimelineEngine, TraceEngine
from .results import TraceParseError, TraceResult

logger = logging.getLogger("mcp.perf_trace.trace")


class TraceAdapter:
    def __init__(self, engine: TraceEngine | None = None) -> None:
        self.engine: TraceEngine = engine if engine is not None else TimelineEngine()
        self._lock = threading.Lock()

    def parse_raw_trace_buffer(self, buffer: bytes | None) -> TraceResult | TraceParseError:
        with self._lock:
            self.engine.reset()

            events = decode_trace_buffer(buffer)
            if isinstance(events, TraceParseError):
                return events

            try:
                self.engine.parse(events)
                parsed = self.engine.parsed_trace()
            except Exception as exc:
                logger.exception("trace_engine_failed events=%s", len(events))
                return TraceParseError(str(exc) or repr(exc))

            if parsed is None:
                return TraceParseError("No parsed trace was returned from the trace engine.")

            logger.info("trace_parsed events=%s insight_sets=%s", len(events), len(parsed.insights or {}))
            return TraceResult(parsed_trace=parsed, insights=parsed.insights)


__all__ = ["TraceAdapter"]
