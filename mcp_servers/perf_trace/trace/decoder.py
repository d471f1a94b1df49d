"""Raw trace buffer -> list of trace events.

Accepted wire shapes:
- {"traceEvents": [event, ...], ...}
- [event, ...]
"""

from __future__ import annotations

import json
from typing import Any

from .results import TraceParseError


def _error_text(exc: BaseException) -> str:
    text = str(exc)
    return text if text else repr(exc)


def decode_trace_buffer(buffer: bytes | bytearray | memoryview | None) -> list[Any] | TraceParseError:
    if buffer is None:
        return TraceParseError("No buffer was provided.")

    try:
        as_string = bytes(buffer).decode("utf-8")
    except UnicodeDecodeError as exc:
        return TraceParseError(_error_text(exc))
    if not as_string:
        return TraceParseError("Decoding the trace buffer returned an empty string.")

    try:
        data = json.loads(as_string)
    except ValueError as exc:
        return TraceParseError(_error_text(exc))

    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        events = data.get("traceEvents")
        if isinstance(events, list):
            return events
        return TraceParseError("Trace JSON object has no traceEvents array.")
    return TraceParseError(f"Unexpected trace JSON payload of type {type(data).__name__}.")


__all__ = ["decode_trace_buffer"]
