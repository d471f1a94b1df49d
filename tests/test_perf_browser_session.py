from __future__ import annotations

import base64
from typing import Any

import pytest

from mcp_servers.perf_trace.ax_tree import build_ax_tree
from mcp_servers.perf_trace.browser_session import BrowserSession
from mcp_servers.perf_trace.http_client import HttpClientError
from mcp_servers.perf_trace.trace.correlator import find_ax_node


class DummyConn:
    def __init__(self, responses: dict[str, Any] | None = None, events: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self.responses = responses or {}
        self.events = events or {}
        self.calls: list[tuple[str, dict[str, Any] | None]] = []

    def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        self.calls.append((method, params))
        resp = self.responses.get(method, {})
        if callable(resp):
            return resp(params)
        if isinstance(resp, list):
            return resp.pop(0) if resp else {}
        return resp

    def wait_for_event(self, event_name: str, timeout: float = 10.0) -> dict[str, Any] | None:  # noqa: ARG002
        queue = self.events.get(event_name) or []
        return queue.pop(0) if queue else None

    def close(self) -> None:
        return


def test_tracing_start_splits_excluded_categories() -> None:
    conn = DummyConn()
    BrowserSession(conn, tab_id="t1").tracing_start(["-*", "devtools.timeline", "loading"])
    method, params = conn.calls[0]
    assert method == "Tracing.start"
    assert params["transferMode"] == "ReturnAsStream"
    assert params["traceConfig"]["includedCategories"] == ["devtools.timeline", "loading"]
    assert params["traceConfig"]["excludedCategories"] == ["*"]


def test_tracing_stop_reads_stream_chunks_and_closes() -> None:
    conn = DummyConn(
        responses={
            "IO.read": [
                {"data": '{"traceEvents": [', "eof": False},
                {"data": base64.b64encode(b"]}").decode(), "base64Encoded": True, "eof": True},
            ]
        },
        events={"Tracing.tracingComplete": [{"stream": "S1"}]},
    )
    buffer = BrowserSession(conn, tab_id="t1").tracing_stop(timeout=1)
    assert buffer == b'{"traceEvents": []}'
    assert [m for m, _ in conn.calls] == ["Tracing.end", "IO.read", "IO.read", "IO.close"]
    assert conn.calls[-1][1] == {"handle": "S1"}


def test_tracing_stop_times_out() -> None:
    with pytest.raises(HttpClientError):
        BrowserSession(DummyConn(), tab_id="t1").tracing_stop(timeout=0.01)


def test_navigate_waits_for_network_idle() -> None:
    conn = DummyConn(events={"Page.lifecycleEvent": [{"name": "load"}, {"name": "networkIdle"}]})
    assert BrowserSession(conn, tab_id="t1").navigate("about:blank", wait_until="networkidle", timeout=1) is True


def test_navigate_raises_on_error_text() -> None:
    conn = DummyConn(responses={"Page.navigate": {"errorText": "net::ERR_NAME_NOT_RESOLVED"}})
    with pytest.raises(HttpClientError):
        BrowserSession(conn, tab_id="t1").navigate("https://nope.invalid/")


def test_get_url_uses_navigation_history() -> None:
    conn = DummyConn(
        responses={"Page.getNavigationHistory": {"currentIndex": 1, "entries": [{"url": "a"}, {"url": "https://b/"}]}}
    )
    assert BrowserSession(conn, tab_id="t1").get_url() == "https://b/"


def _ax(node_id: str, backend: int, children: list[str] | None = None, parent: str | None = None) -> dict[str, Any]:
    raw: dict[str, Any] = {"nodeId": node_id, "backendDOMNodeId": backend, "role": {"value": "generic"}, "childIds": children or []}
    if parent:
        raw["parentId"] = parent
    return raw


def test_accessibility_snapshot_merges_iframe_trees() -> None:
    def full_tree(params: dict[str, Any] | None) -> dict[str, Any]:
        if params and params.get("frameId") == "F2":
            return {"nodes": [_ax("f1", 100, ["f2"]), _ax("f2", 101, parent="f1")]}
        return {"nodes": [_ax("1", 1, ["2", "3"]), _ax("2", 2, parent="1"), _ax("3", 3, parent="1")]}

    conn = DummyConn(
        responses={
            "Accessibility.getFullAXTree": full_tree,
            "Page.getFrameTree": {"frameTree": {"frame": {"id": "F1"}, "childFrames": [{"frame": {"id": "F2"}}]}},
            "DOM.getFrameOwner": {"backendNodeId": 3},
        }
    )
    session = BrowserSession(conn, tab_id="t1")

    plain = session.accessibility_snapshot()
    assert find_ax_node(plain, 101) is None

    root = session.accessibility_snapshot(include_iframes=True)
    owner = find_ax_node(root, 3)
    assert owner.children[0].backend_node_id == 100
    assert find_ax_node(root, 101).frame_id == "F2"


def test_build_ax_tree_attaches_shared_children_once() -> None:
    root = build_ax_tree([_ax("1", 1, ["2", "3"]), _ax("2", 2, ["3"], parent="1"), _ax("3", 3, ["1"], parent="1")])
    assert [c.node_id for c in root.children] == ["2", "3"]
    assert root.children[0].children == []


def test_element_handle_screenshot_and_dispose() -> None:
    png = b"\x89PNG fake"
    conn = DummyConn(
        responses={
            "DOM.resolveNode": {"object": {"objectId": "obj-1"}},
            "DOM.getBoxModel": {"model": {"border": [10, 20, 110, 20, 110, 70, 10, 70]}},
            "Page.getLayoutMetrics": {"cssLayoutViewport": {"pageX": 0, "pageY": 500}},
            "Page.captureScreenshot": {"data": base64.b64encode(png).decode()},
        }
    )
    session = BrowserSession(conn, tab_id="t1")
    handle = session.element_handle(42)
    assert handle is not None
    assert handle.screenshot(type="png") == png
    clip = next(p for m, p in conn.calls if m == "Page.captureScreenshot")["clip"]
    assert clip == {"x": 10, "y": 520, "width": 100, "height": 50, "scale": 1}
    handle.dispose()
    assert conn.calls[-1] == ("Runtime.releaseObject", {"objectId": "obj-1"})


def test_element_handle_missing_object() -> None:
    conn = DummyConn(responses={"DOM.resolveNode": {}})
    assert BrowserSession(conn, tab_id="t1").element_handle(1) is None


def test_emulation_commands() -> None:
    conn = DummyConn()
    session = BrowserSession(conn, tab_id="t1")
    session.emulate_network_conditions(None)
    session.emulate_cpu_throttling(4)
    session.set_geolocation(None)
    session.set_geolocation({"latitude": 1.0, "longitude": 2.0})
    methods = [m for m, _ in conn.calls]
    assert methods == [
        "Network.enable",
        "Network.emulateNetworkConditions",
        "Emulation.setCPUThrottlingRate",
        "Emulation.clearGeolocationOverride",
        "Emulation.setGeolocationOverride",
    ]
    assert conn.calls[1][1]["downloadThroughput"] == -1
