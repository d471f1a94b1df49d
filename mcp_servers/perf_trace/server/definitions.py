"""Tool schema definitions."""

from __future__ import annotations

from typing import Any

from ..emulation import CPU_RATE_MAX, CPU_RATE_MIN, NETWORK_CONDITIONS

_FILE_PATH: dict[str, Any] = {
    "type": "string",
    "description": (
        "The absolute file path, or a file path relative to the current working directory, to save the raw "
        "trace data. For example, trace.json.gz (compressed) or trace.json (uncompressed)."
    ),
}

_NO_ARGS: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {},
}

PERFORMANCE_START_TRACE_TOOL: dict[str, Any] = {
    "name": "performance_start_trace",
    "description": """Starts a performance trace recording on the selected page.
Use it to look for performance problems and insights; the summary reports Core Web Vitals (LCP, CLS).
To record with network or CPU throttling, call `emulate` first.""",
    "inputSchema": {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "properties": {
            "reload": {
                "type": "boolean",
                "description": "Determines if, once tracing has started, the page should be automatically reloaded.",
            },
            "autoStop": {
                "type": "boolean",
                "description": "Determines if the trace recording should be automatically stopped.",
            },
            "filePath": _FILE_PATH,
        },
        "required": ["reload", "autoStop"],
    },
}

PERFORMANCE_STOP_TRACE_TOOL: dict[str, Any] = {
    "name": "performance_stop_trace",
    "description": "Stops the active performance trace recording on the selected page.",
    "inputSchema": {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "properties": {"filePath": _FILE_PATH},
    },
}

PERFORMANCE_ANALYZE_INSIGHT_TOOL: dict[str, Any] = {
    "name": "performance_analyze_insight",
    "description": (
        "Provides more detailed information on a specific Performance Insight of an insight set that was "
        "highlighted in the results of a trace recording."
    ),
    "inputSchema": {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "properties": {
            "insightSetId": {
                "type": "string",
                "description": 'The id for the specific insight set. Only use the ids given in the "Available insight sets" list.',
            },
            "insightName": {
                "type": "string",
                "description": 'The name of the Insight you want more information on. For example: "DocumentLatency" or "LCPBreakdown"',
            },
        },
        "required": ["insightSetId", "insightName"],
    },
}

PERFORMANCE_SHOW_LCP_BREAKDOWN_TOOL: dict[str, Any] = {
    "name": "performance_show_lcp_breakdown",
    "description": """Returns the Largest Contentful Paint (LCP) phase breakdown of the last recording.
RESPONSE: a fenced JSON block {"lcpData": {"lcpMs", "backendNodeId"?, "phases": [{"name", "durationMs"}], "screenshot"?}}.
`screenshot` is a base64 PNG of the LCP element when it could be captured.""",
    "inputSchema": _NO_ARGS,
}

PERFORMANCE_SHOW_LAYOUT_SHIFTS_TOOL: dict[str, Any] = {
    "name": "performance_show_layout_shifts",
    "description": """Lists every layout shift of the last recording.
RESPONSE: a fenced JSON block {"layoutShifts": [{"ts", "score", "images": {"before"?, "after"?}}]}.
Use `ts` with performance_get_layout_shift_images to fetch the screenshots of one shift.""",
    "inputSchema": _NO_ARGS,
}

PERFORMANCE_GET_LAYOUT_SHIFT_IMAGES_TOOL: dict[str, Any] = {
    "name": "performance_get_layout_shift_images",
    "description": "Returns the before/after screenshots of the layout shift at the given trace timestamp.",
    "inputSchema": {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "properties": {
            "timestamp": {
                "type": "number",
                "description": "The `ts` of a layout shift as listed by performance_show_layout_shifts.",
            },
        },
        "required": ["timestamp"],
    },
}

EMULATE_TOOL: dict[str, Any] = {
    "name": "emulate",
    "description": """Emulates network conditions, CPU throttling and/or geolocation on the selected page.
The settings stay active for subsequent trace recordings and are reported in trace summaries.""",
    "inputSchema": {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "properties": {
            "networkConditions": {
                "type": "string",
                "enum": list(NETWORK_CONDITIONS),
                "description": "Network conditions to emulate. Use 'No emulation' to disable throttling.",
            },
            "cpuThrottlingRate": {
                "type": "number",
                "minimum": CPU_RATE_MIN,
                "maximum": CPU_RATE_MAX,
                "description": "CPU slowdown factor. 1 disables throttling.",
            },
            "geolocation": {
                "type": ["object", "null"],
                "properties": {
                    "latitude": {"type": "number", "minimum": -90, "maximum": 90},
                    "longitude": {"type": "number", "minimum": -180, "maximum": 180},
                },
                "required": ["latitude", "longitude"],
                "description": "Geolocation to emulate. Set to null to clear the geolocation override.",
            },
        },
    },
}

NAVIGATE_PAGE_TOOL: dict[str, Any] = {
    "name": "navigate_page",
    "description": "Navigates the selected page to a URL and waits for the load event.",
    "inputSchema": {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "properties": {
            "url": {"type": "string", "description": "URL to navigate to"},
            "timeout": {"type": "number", "default": 15, "description": "Seconds to wait for load"},
        },
        "required": ["url"],
    },
}

TOOL_DEFINITIONS: list[dict[str, Any]] = [
    PERFORMANCE_START_TRACE_TOOL,
    PERFORMANCE_STOP_TRACE_TOOL,
    PERFORMANCE_ANALYZE_INSIGHT_TOOL,
    PERFORMANCE_SHOW_LCP_BREAKDOWN_TOOL,
    PERFORMANCE_SHOW_LAYOUT_SHIFTS_TOOL,
    PERFORMANCE_GET_LAYOUT_SHIFT_IMAGES_TOOL,
    EMULATE_TOOL,
    NAVIGATE_PAGE_TOOL,
]
