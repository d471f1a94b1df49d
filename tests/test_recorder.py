from __future__ import annotations

import gzip
import json
import threading
import time
from pathlib import Path
from typing import Any

import pytest

from mcp_servers.perf_trace.recorder import (
    ALREADY_RUNNING,
    IDLE,
    RECORDING,
    RECORDING_STARTED,
    STOPPED_EARLY,
    TRACE_CATEGORIES,
    TraceRecorder,
)
from mcp_servers.perf_trace.trace.adapter import TraceAdapter
from mcp_servers.perf_trace.trace.engine import TimelineEngine

TRACE = json.dumps(
    {
        "traceEvents": [
            {
                "name": "navigationStart",
                "ph": "R",
                "ts": 1000,
                "args": {"data": {"isLoadingMainFrame": True, "navigationId": "N1", "documentLoaderURL": "https://example.com/"}},
            },
            {"name": "LayoutShift", "ph": "I", "ts": 2000, "args": {"data": {"weighted_score_delta": 0.05}}},
        ]
    }
).encode()


class FakeSession:
    def __init__(self, buffer: bytes = TRACE, *, stop_error: Exception | None = None, start_error: Exception | None = None) -> None:
        self.buffer = buffer
        self.stop_error = stop_error
        self.start_error = start_error
        self.calls: list[tuple[str, Any]] = []
        self.started = threading.Event()

    def get_url(self) -> str:
        return "https://example.com/"

    def navigate(self, url: str, *, wait_until: str = "load", timeout: float = 15.0) -> bool:
        self.calls.append(("navigate", (url, wait_until)))
        return True

    def tracing_start(self, categories: list[str]) -> None:
        self.calls.append(("tracing_start", categories))
        if self.start_error is not None:
            raise self.start_error
        self.started.set()

    def tracing_stop(self, timeout: float = 30.0) -> bytes:
        self.calls.append(("tracing_stop", timeout))
        if self.stop_error is not None:
            raise self.stop_error
        return self.buffer


def recorder(**kwargs: Any) -> TraceRecorder:
    kwargs.setdefault("auto_stop_seconds", 0.01)
    return TraceRecorder(TraceAdapter(TimelineEngine()), **kwargs)


def test_start_then_stop_records_history() -> None:
    rec = recorder()
    session = FakeSession()
    assert rec.start(session) == [RECORDING_STARTED]
    assert rec.state == RECORDING

    lines = rec.stop(session)
    assert lines[0] == "The performance trace has been stopped."
    assert lines[1].startswith("## Summary of Performance trace findings:")
    assert "- N1: https://example.com/" in lines[1]
    assert rec.state == IDLE
    assert len(rec.recorded_traces()) == 1
    assert rec.last_recording() is rec.recorded_traces()[-1]


def test_second_start_is_rejected_until_stop() -> None:
    rec = recorder()
    session = FakeSession()
    rec.start(session)
    assert rec.start(session) == [ALREADY_RUNNING]
    assert [c for c, _ in session.calls].count("tracing_start") == 1
    rec.stop(session)
    assert rec.start(session) == [RECORDING_STARTED]


def test_stop_when_idle_is_silent() -> None:
    rec = recorder()
    session = FakeSession()
    assert rec.stop(session) == []
    assert session.calls == []


def test_reload_navigates_blank_then_back() -> None:
    rec = recorder()
    session = FakeSession()
    rec.start(session, reload=True)
    assert session.calls[0] == ("navigate", ("about:blank", "networkidle"))
    assert session.calls[1] == ("tracing_start", list(TRACE_CATEGORIES))
    assert session.calls[2] == ("navigate", ("https://example.com/", "load"))


def test_failed_tracing_start_returns_to_idle() -> None:
    rec = recorder()
    with pytest.raises(RuntimeError):
        rec.start(FakeSession(start_error=RuntimeError("Tracing is already started")))
    assert rec.state == IDLE
    assert rec.start(FakeSession()) == [RECORDING_STARTED]


def test_stop_failure_clears_recording_flag() -> None:
    rec = recorder()
    session = FakeSession(stop_error=TimeoutError("Tracing did not complete within 30s"))
    rec.start(session)
    lines = rec.stop(session)
    assert lines == ["An error occurred generating the response for this trace:", "Tracing did not complete within 30s"]
    assert rec.state == IDLE
    assert rec.recorded_traces() == ()
    assert rec.start(FakeSession()) == [RECORDING_STARTED]



def test_unreachable_page_on_stop_clears_recording_flag() -> None:
    rec = recorder()
    rec.start(FakeSession())

    def connect() -> FakeSession:
        raise ConnectionError("CDP endpoint not reachable")

    lines = rec.stop(connect)
    assert lines == ["An error occurred generating the response for this trace:", "CDP endpoint not reachable"]
    assert rec.state == IDLE
    assert rec.start(FakeSession()) == [RECORDING_STARTED]


def test_page_callable_is_resolved_on_stop() -> None:
    rec = recorder()
    session = FakeSession()
    rec.start(session)
    lines = rec.stop(lambda: session)
    assert "The performance trace has been stopped." in lines
    assert rec.last_recording() is not None

def test_parse_error_is_reported_and_not_stored() -> None:
    rec = recorder()
    session = FakeSession(buffer=b"not json")
    rec.start(session)
    lines = rec.stop(session)
    assert lines[0] == "The performance trace has been stopped."
    assert lines[1] == "There was an unexpected error parsing the trace:"
    assert lines[2]
    assert rec.last_recording() is None


def test_stop_saves_gzip_trace(tmp_path: Path) -> None:
    rec = recorder()
    session = FakeSession()
    rec.start(session)
    target = tmp_path / "traces" / "run.json.gz"
    lines = rec.stop(session, str(target))
    assert lines[0] == f"The raw trace data was saved to {target}."
    assert gzip.decompress(target.read_bytes()) == TRACE


def test_save_failure_does_not_abort_stop(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory")
    rec = recorder()
    session = FakeSession()
    rec.start(session)
    lines = rec.stop(session, str(blocker / "run.json"))
    assert lines[0] == "The performance trace has been stopped."
    assert rec.last_recording() is not None


def test_auto_stop_runs_stop_sequence() -> None:
    rec = recorder()
    lines = rec.start(FakeSession(), auto_stop=True)
    assert lines[0] == "The performance trace has been stopped."
    assert rec.state == IDLE
    assert len(rec.recorded_traces()) == 1


def test_explicit_stop_during_auto_stop_wait_wins() -> None:
    rec = recorder(auto_stop_seconds=10)
    session = FakeSession()
    out: list[list[str]] = []
    worker = threading.Thread(target=lambda: out.append(rec.start(session, auto_stop=True)))
    worker.start()
    assert session.started.wait(2)

    began = time.monotonic()
    stop_lines = rec.stop(session)
    worker.join(2)
    assert not worker.is_alive()
    assert time.monotonic() - began < 2
    assert stop_lines[0] == "The performance trace has been stopped."
    assert out == [[STOPPED_EARLY]]
    assert [c for c, _ in session.calls].count("tracing_stop") == 1


def test_close_cancels_pending_auto_stop() -> None:
    rec = recorder(auto_stop_seconds=10)
    session = FakeSession()
    out: list[list[str]] = []
    worker = threading.Thread(target=lambda: out.append(rec.start(session, auto_stop=True)))
    worker.start()
    assert session.started.wait(2)
    rec.close()
    worker.join(2)
    assert out == [[STOPPED_EARLY]]


def test_history_is_append_only() -> None:
    rec = recorder()
    session = FakeSession()
    rec.start(session)
    rec.stop(session)
    first = rec.recorded_traces()
    rec.start(session)
    rec.stop(session)
    assert len(first) == 1
    assert len(rec.recorded_traces()) == 2
    assert rec.recorded_traces()[0] is first[0]
