from __future__ import annotations

from types import MappingProxyType

from mcp_servers.perf_trace.trace.layout_shifts import get_layout_shift_images, get_layout_shifts
from mcp_servers.perf_trace.trace.model import (
    LayoutShiftCluster,
    LayoutShiftParsedData,
    ScreenshotEvent,
    ShiftScreenshots,
    SyntheticLayoutShift,
    TimeRange,
)


def shift(ts: float, score: float | None = None, before: dict | None = None, after: dict | None = None) -> SyntheticLayoutShift:
    args = {"data": {"weighted_score_delta": score}} if score is not None else {}
    shots = ShiftScreenshots(
        before=ScreenshotEvent(ts - 1, MappingProxyType(before)) if before else None,
        after=ScreenshotEvent(ts + 1, MappingProxyType(after)) if after else None,
    )
    return SyntheticLayoutShift(ts, MappingProxyType(args), LayoutShiftParsedData(shots))


def cluster(*events: SyntheticLayoutShift) -> LayoutShiftCluster:
    return LayoutShiftCluster(events=events, bounds=TimeRange.between(events[0].ts, events[-1].ts), score=0)


def test_layout_shifts_flatten_clusters_in_order(make_result) -> None:
    result = make_result(
        clusters=(
            cluster(shift(10, 0.1, before={"snapshot": "b64-before"}), shift(20, 0.2)),
            cluster(shift(3000, None, after={"dataUri": "data:image/png;base64,AA"})),
        )
    )
    shifts = get_layout_shifts(result)
    assert [s.ts for s in shifts] == [10, 20, 3000]
    assert [s.score for s in shifts] == [0.1, 0.2, 0]
    assert shifts[0].to_dict() == {"ts": 10, "score": 0.1, "images": {"before": "b64-before"}}
    assert shifts[1].images.to_dict() == {}
    assert shifts[2].images.after == "data:image/png;base64,AA"


def test_layout_shifts_empty_without_clusters(make_result) -> None:
    assert get_layout_shifts(make_result()) == []


def test_layout_shift_images_first_match(make_result) -> None:
    result = make_result(
        clusters=(
            cluster(shift(1234, 0.1, before={"snapshot": "first"})),
            cluster(shift(1234, 0.3, before={"snapshot": "second"})),
        )
    )
    images = get_layout_shift_images(result, 1234)
    assert images is not None
    assert images.before == "first"
    assert get_layout_shift_images(result, 99) is None
