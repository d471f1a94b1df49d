"""LCP phase breakdown derived from an LCPBreakdown insight."""

from __future__ import annotations

from .model import LCPBreakdownInsight, event_data
from .results import LCPBreakdownData, LCPPhase, TraceResult

_PHASES: tuple[tuple[str, str], ...] = (
    ("ttfb", "TTFB"),
    ("load_delay", "Load Delay"),
    ("load_duration", "Load Duration"),
    ("render_delay", "Render Delay"),
)


def _backend_node_id(insight: LCPBreakdownInsight) -> int | None:
    node_id = event_data(insight.lcp_event).get("nodeId")
    if isinstance(node_id, bool) or not isinstance(node_id, int):
        return None
    return node_id


def get_lcp_breakdown_data(result: TraceResult, insight_set_id: str) -> LCPBreakdownData | None:
    """Phase breakdown for one insight set, or None when there is nothing to show."""
    if not result.insights:
        return None
    insight_set = result.insights.get(insight_set_id)
    if insight_set is None:
        return None
    insight = insight_set.model.get("LCPBreakdown")
    if not isinstance(insight, LCPBreakdownInsight):
        return None

    phases: list[LCPPhase] = []
    if insight.subparts is not None:
        for attr, label in _PHASES:
            part = getattr(insight.subparts, attr)
            if part is not None:
                phases.append(LCPPhase(name=label, duration_ms=part.range / 1000))

    return LCPBreakdownData(
        lcp_ms=insight.lcp_ms if insight.lcp_ms is not None else 0,
        phases=tuple(phases),
        backend_node_id=_backend_node_id(insight),
    )


def select_final_lcp_breakdown(result: TraceResult) -> tuple[str, LCPBreakdownData] | None:
    """Most recent insight set with a positive LCP; earlier navigations may have been aborted."""
    if not result.insights:
        return None
    for set_id in reversed(list(result.insights.keys())):
        data = get_lcp_breakdown_data(result, set_id)
        if data is not None and data.lcp_ms > 0:
            return set_id, data
    return None


__all__ = ["get_lcp_breakdown_data", "select_final_lcp_breakdown"]
