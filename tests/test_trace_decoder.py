from __future__ import annotations

import json

import pytest

from mcp_servers.perf_trace.trace.decoder import decode_trace_buffer
from mcp_servers.perf_trace.trace.results import TraceParseError

EVENTS = [
    {"name": "navigationStart", "ph": "R", "ts": 100},
    {"name": "LayoutShift", "ph": "I", "ts": 200},
    {"name": "Screenshot", "ph": "O", "ts": 300},
]


def test_decoder_accepts_both_wire_shapes_with_same_event_count() -> None:
    wrapped = decode_trace_buffer(json.dumps({"traceEvents": EVENTS, "metadata": {}}).encode())
    bare = decode_trace_buffer(json.dumps(EVENTS).encode())
    assert isinstance(wrapped, list)
    assert isinstance(bare, list)
    assert len(wrapped) == len(bare) == 3


def test_decoder_missing_buffer() -> None:
    result = decode_trace_buffer(None)
    assert isinstance(result, TraceParseError)
    assert result.ok is False
    assert result.error == "No buffer was provided."


def test_decoder_empty_buffer() -> None:
    result = decode_trace_buffer(b"")
    assert isinstance(result, TraceParseError)
    assert result.error == "Decoding the trace buffer returned an empty string."


@pytest.mark.parametrize("raw", [b"{not json", b"\xff\xfe\xfa", b'{"traceEvents": 3}', b"42"])
def test_decoder_reports_bad_payloads_as_errors(raw: bytes) -> None:
    result = decode_trace_buffer(raw)
    assert isinstance(result, TraceParseError)
    assert result.error


def test_decoder_accepts_memoryview() -> None:
    result = decode_trace_buffer(memoryview(b"[]"))
    assert result == []
