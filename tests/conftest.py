from __future__ import annotations

from collections.abc import Callable
from types import MappingProxyType
from typing import Any

import pytest

from mcp_servers.perf_trace.trace.model import (
    InsightSet,
    LayoutShiftCluster,
    LayoutShiftsData,
    ParsedTrace,
    TimeRange,
    TraceData,
    TraceMeta,
)
from mcp_servers.perf_trace.trace.results import TraceResult


def _result(
    sets: dict[str, dict[str, Any]] | None = None,
    clusters: tuple[LayoutShiftCluster, ...] = (),
    *,
    no_insights: bool = False,
) -> TraceResult:
    bounds = TimeRange.between(0, 10_000_000)
    insights = None
    if not no_insights:
        insights = MappingProxyType(
            {set_id: InsightSet(set_id, f"https://example.com/{set_id}", bounds, MappingProxyType(model))
             for set_id, model in (sets or {}).items()}
        )
    parsed = ParsedTrace(
        meta=TraceMeta(bounds, 1),
        data=TraceData(layout_shifts=LayoutShiftsData(clusters=clusters)),
        insights=insights,
    )
    return TraceResult(parsed_trace=parsed, insights=insights)


@pytest.fixture
def make_result() -> Callable[..., TraceResult]:
    """Build a TraceResult from {set_id: {insight_name: model}} and optional shift clusters."""
    return _result
