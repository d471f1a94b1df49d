"""Text rendering of parsed traces and insights for agent consumption."""

from __future__ import annotations

from typing import Any

from ..server.ai_format import RenderBudget, render_ctx_markdown
from .model import CLSCulpritsInsight, InsightModel, InsightSet, LCPBreakdownInsight, ParsedTrace

INSIGHT_BUDGET = RenderBudget(max_chars=6000, max_depth=5, max_list_items=12)

FORMAT_DESCRIPTION = """Timestamps are trace-relative microseconds; durations are milliseconds.
Each insight set covers one navigation (or the whole trace when there was none).
Use performance_analyze_insight with an insight set id and one of the listed insight names for details."""


def _ms(micros: float) -> str:
    return f"{micros / 1000:.0f} ms"


class InsightFormatter:
    """Formats a single insight model from one parsed trace."""

    def __init__(self, parsed_trace: ParsedTrace, insight: InsightModel) -> None:
        self.parsed_trace = parsed_trace
        self.insight = insight

    def format_insight(self) -> str:
        details: dict[str, Any] = self.insight.to_dict()
        return (
            f"## Insight Title: {self.insight.title}\n\n"
            f"## Insight Summary:\n{self.insight.description}\n\n"
            f"## Detailed analysis:\n{render_ctx_markdown(details, budget=INSIGHT_BUDGET)}"
        )


def _describe_set(insight_set: InsightSet) -> list[str]:
    lines = [f"- {insight_set.id}: {insight_set.url or '(no navigation)'}"]
    lcp = insight_set.model.get("LCPBreakdown")
    if isinstance(lcp, LCPBreakdownInsight) and lcp.lcp_ms is not None:
        lines.append(f"  - LCP: {lcp.lcp_ms:.0f} ms")
    cls = insight_set.model.get("CLSCulprits")
    if isinstance(cls, CLSCulpritsInsight):
        lines.append(f"  - CLS: {cls.cls:.4f}")
    names = ", ".join(insight_set.model.keys()) or "(none)"
    lines.append(f"  - Available insights: {names}")
    return lines


def format_trace_summary(parsed_trace: ParsedTrace, *, extra: dict[str, Any] | None = None) -> str:
    bounds = parsed_trace.meta.bounds
    lines = [
        f"Trace bounds: {{min: {bounds.min:.0f}, max: {bounds.max:.0f}}}",
        f"Trace duration: {_ms(bounds.range)}",
        f"Events: {parsed_trace.meta.event_count}",
    ]
    shifts = parsed_trace.data.layout_shifts
    if shifts.clusters:
        lines.append(f"Layout shift clusters: {len(shifts.clusters)} (CLS {shifts.cls:.4f})")
    for key, value in (extra or {}).items():
        lines.append(f"{key}: {value}")

    lines.append("")
    lines.append("# Available insight sets")
    if parsed_trace.insights:
        for insight_set in parsed_trace.insights.values():
            lines.extend(_describe_set(insight_set))
    else:
        lines.append("(none)")
    return "\n".join(lines)


__all__ = ["FORMAT_DESCRIPTION", "InsightFormatter", "format_trace_summary"]
