from __future__ import annotations

from mcp_servers.perf_trace.trace.lcp import get_lcp_breakdown_data, select_final_lcp_breakdown
from mcp_servers.perf_trace.trace.model import DocumentLatencyInsight, LCPBreakdownInsight, LCPSubparts, TimeRange


def r(micros: float) -> TimeRange:
    return TimeRange.between(0, micros)


def test_lcp_breakdown_none_cases(make_result) -> None:
    assert get_lcp_breakdown_data(make_result(no_insights=True), "nav") is None
    assert get_lcp_breakdown_data(make_result({"nav": {}}), "missing") is None
    no_lcp = make_result({"nav": {"DocumentLatency": DocumentLatencyInsight("https://example.com/")}})
    assert get_lcp_breakdown_data(no_lcp, "nav") is None


def test_lcp_breakdown_converts_phases_to_ms(make_result) -> None:
    insight = LCPBreakdownInsight(lcp_ms=70, subparts=LCPSubparts(ttfb=r(50_000), load_delay=r(20_000)))
    data = get_lcp_breakdown_data(make_result({"nav": {"LCPBreakdown": insight}}), "nav")
    assert data is not None
    assert data.to_dict() == {
        "lcpMs": 70,
        "phases": [{"name": "TTFB", "durationMs": 50}, {"name": "Load Delay", "durationMs": 20}],
    }


def test_lcp_breakdown_omits_missing_subparts_and_keeps_order(make_result) -> None:
    insight = LCPBreakdownInsight(lcp_ms=100, subparts=LCPSubparts(render_delay=r(30_000), ttfb=r(10_000)))
    data = get_lcp_breakdown_data(make_result({"nav": {"LCPBreakdown": insight}}), "nav")
    assert [p.name for p in data.phases] == ["TTFB", "Render Delay"]


def test_lcp_breakdown_reads_backend_node_id(make_result) -> None:
    insight = LCPBreakdownInsight(lcp_ms=10, lcp_event={"args": {"data": {"nodeId": 77}}})
    data = get_lcp_breakdown_data(make_result({"nav": {"LCPBreakdown": insight}}), "nav")
    assert data.backend_node_id == 77
    assert data.to_dict()["backendNodeId"] == 77


def test_lcp_breakdown_defaults_unknown_lcp_to_zero(make_result) -> None:
    data = get_lcp_breakdown_data(make_result({"nav": {"LCPBreakdown": LCPBreakdownInsight()}}), "nav")
    assert data.lcp_ms == 0
    assert data.phases == ()
    assert "backendNodeId" not in data.to_dict()


def test_select_final_lcp_prefers_latest_positive(make_result) -> None:
    result = make_result(
        {
            "A": {"LCPBreakdown": LCPBreakdownInsight(lcp_ms=0)},
            "B": {"LCPBreakdown": LCPBreakdownInsight(lcp_ms=120)},
        }
    )
    selected = select_final_lcp_breakdown(result)
    assert selected is not None
    assert selected[0] == "B"
    assert selected[1].lcp_ms == 120


def test_select_final_lcp_skips_later_sets_without_lcp(make_result) -> None:
    result = make_result(
        {
            "A": {"LCPBreakdown": LCPBreakdownInsight(lcp_ms=90)},
            "B": {"LCPBreakdown": LCPBreakdownInsight(lcp_ms=0)},
            "C": {},
        }
    )
    assert select_final_lcp_breakdown(result)[0] == "A"
    assert select_final_lcp_breakdown(make_result({"C": {}})) is None
