"""Insight lookup over a stored TraceResult.

Read-only against the result; safe to call concurrently.
"""

from __future__ import annotations

from typing import Any

from .formatter import FORMAT_DESCRIPTION, InsightFormatter, format_trace_summary
from .results import TraceResult

InsightOutput = dict[str, str]  # {"output": ...} | {"error": ...}


def get_insight_output(result: TraceResult, insight_set_id: str, insight_name: str) -> InsightOutput:
    if not result.insights:
        return {"error": "No Performance insights are available for this trace."}

    insight_set = result.insights.get(insight_set_id)
    if insight_set is None:
        return {
            "error": (
                "No Performance Insights for the given insight set id. "
                'Only use ids given in the "Available insight sets" list.'
            )
        }

    insight = insight_set.model.get(insight_name) if insight_name else None
    if not insight:
        return {
            "error": (
                f"No Insight with the name {insight_name} found. "
                "Double check the name you provided is accurate and try again."
            )
        }

    return {"output": InsightFormatter(result.parsed_trace, insight).format_insight()}


def get_trace_summary(result: TraceResult, *, extra: dict[str, Any] | None = None) -> str:
    summary = format_trace_summary(result.parsed_trace, extra=extra)
    return (
        "## Summary of Performance trace findings:\n"
        f"{summary}\n\n"
        "## Details on insight output formats:\n"
        f"{FORMAT_DESCRIPTION}"
    )


__all__ = ["InsightOutput", "get_insight_output", "get_trace_summary"]
