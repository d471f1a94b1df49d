"""
Performance trace tool handlers.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from ...errors import SmartToolError
from ...trace.correlator import get_lcp_data_with_screenshot
from ...trace.insights import get_insight_output
from ...trace.layout_shifts import get_layout_shift_images, get_layout_shifts
from ..types import ToolResult

if TYPE_CHECKING:
    from ...context import PerfContext

NO_RECORDING = "No recorded traces found. Record a performance trace so you have Insights to analyze."
LCP_HINT = "\nTo see a detailed visual breakdown of LCP phases and the LCP element, call `performance_show_lcp_breakdown`."


def _fenced_json(payload: dict[str, Any]) -> list[str]:
    return ["```json", json.dumps(payload, indent=2), "```"]


def _optional_path(tool: str, args: dict[str, Any]) -> str | None:
    path = args.get("filePath")
    if path is None or path == "":
        return None
    if not isinstance(path, str):
        raise SmartToolError(
            tool=tool,
            action="validate",
            reason="filePath must be a string",
            suggestion="Pass a path such as trace.json or trace.json.gz",
        )
    return path


def handle_performance_start_trace(context: PerfContext, args: dict[str, Any]) -> ToolResult:
    file_path = _optional_path("performance_start_trace", args)
    page = context.get_selected_page()
    lines = context.recorder.start(
        page,
        reload=bool(args.get("reload", False)),
        auto_stop=bool(args.get("autoStop", False)),
        file_path=file_path,
    )
    return ToolResult.lines(lines)


def handle_performance_stop_trace(context: PerfContext, args: dict[str, Any]) -> ToolResult:
    file_path = _optional_path("performance_stop_trace", args)
    if not context.recorder.is_recording():
        return ToolResult.text("")
    lines = context.recorder.stop(context.get_selected_page, file_path)
    return ToolResult.lines(lines)


def handle_performance_analyze_insight(context: PerfContext, args: dict[str, Any]) -> ToolResult:
    last = context.last_recording()
    if last is None:
        return ToolResult.text(NO_RECORDING)

    output = get_insight_output(last, str(args.get("insightSetId") or ""), str(args.get("insightName") or ""))
    if "error" in output:
        return ToolResult.text(output["error"])
    return ToolResult.lines([output["output"], LCP_HINT])


def handle_performance_show_lcp_breakdown(context: PerfContext, args: dict[str, Any]) -> ToolResult:
    last = context.last_recording()
    if last is None:
        return ToolResult.text(NO_RECORDING)

    lcp_data = get_lcp_data_with_screenshot(
        context.get_selected_page, last, max_px=context.config.screenshot_max_px
    )
    if lcp_data is None:
        return ToolResult.text("No LCP data found in the current recording.")

    payload = {"lcpData": lcp_data}
    result = ToolResult.lines(["LCP Breakdown UI opened.", *_fenced_json(payload)])
    result.data = payload
    return result


def handle_performance_show_layout_shifts(context: PerfContext, args: dict[str, Any]) -> ToolResult:
    last = context.last_recording()
    if last is None:
        return ToolResult.text(NO_RECORDING)

    shifts = get_layout_shifts(last)
    if not shifts:
        return ToolResult.text("No layout shifts found in the current recording.")

    payload = {"layoutShifts": [s.to_dict() for s in shifts]}
    result = ToolResult.lines([f"Found {len(shifts)} layout shifts.", *_fenced_json(payload)])
    result.data = payload
    return result


def handle_performance_get_layout_shift_images(context: PerfContext, args: dict[str, Any]) -> ToolResult:
    timestamp = args.get("timestamp")
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        raise SmartToolError(
            tool="performance_get_layout_shift_images",
            action="validate",
            reason="timestamp must be a number",
            suggestion="Use a `ts` value from performance_show_layout_shifts",
            details={"got": timestamp},
        )

    last = context.last_recording()
    if last is None:
        return ToolResult.text(NO_RECORDING)

    images = get_layout_shift_images(last, timestamp)
    if images is None:
        return ToolResult.text(f"No layout shift found at timestamp {timestamp}.")

    payload = {"images": images.to_dict()}
    result = ToolResult.lines(_fenced_json(payload))
    result.data = payload
    return result


PERFORMANCE_HANDLERS: dict[str, tuple] = {
    "performance_start_trace": (handle_performance_start_trace, True),
    "performance_stop_trace": (handle_performance_stop_trace, False),
    "performance_analyze_insight": (handle_performance_analyze_insight, False),
    "performance_show_lcp_breakdown": (handle_performance_show_lcp_breakdown, False),
    "performance_show_layout_shifts": (handle_performance_show_layout_shifts, False),
    "performance_get_layout_shift_images": (handle_performance_get_layout_shift_images, False),
}
