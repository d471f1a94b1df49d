"""Trace pipeline: decode -> engine -> insights, LCP and layout shift derivations."""

from __future__ import annotations

from .adapter import TraceAdapter
from .correlator import capture_node_screenshot, find_ax_node, get_lcp_data_with_screenshot
from .decoder import decode_trace_buffer
from .engine import NO_NAVIGATION, TimelineEngine, TraceEngine
from .insights import get_insight_output, get_trace_summary
from .layout_shifts import get_layout_shift_images, get_layout_shifts
from .lcp import get_lcp_breakdown_data, select_final_lcp_breakdown
from .results import (
    BestEffort,
    LayoutShiftData,
    LayoutShiftImages,
    LCPBreakdownData,
    LCPPhase,
    TraceParseError,
    TraceResult,
    trace_result_is_success,
)

__all__ = [
    "NO_NAVIGATION",
    "BestEffort",
    "LCPBreakdownData",
    "LCPPhase",
    "LayoutShiftData",
    "LayoutShiftImages",
    "TimelineEngine",
    "TraceAdapter",
    "TraceEngine",
    "TraceParseError",
    "TraceResult",
    "capture_node_screenshot",
    "decode_trace_buffer",
    "find_ax_node",
    "get_insight_output",
    "get_layout_shift_images",
    "get_layout_shifts",
    "get_lcp_breakdown_data",
    "get_lcp_data_with_screenshot",
    "get_trace_summary",
    "select_final_lcp_breakdown",
    "trace_result_is_success",
]
