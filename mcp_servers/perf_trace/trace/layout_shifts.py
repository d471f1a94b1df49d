"""Flatten layout shift clusters into a timestamp-addressable list."""

from __future__ import annotations

from collections.abc import Mapping

from .model import ScreenshotEvent
from .results import LayoutShiftData, LayoutShiftImages, TraceResult


def _image(screenshot: ScreenshotEvent | None) -> str | None:
    if screenshot is None:
        return None
    args = screenshot.args
    # An artifact carries either an inline snapshot or a data URI.
    if "snapshot" in args:
        return args["snapshot"]
    return args.get("dataUri")


def _score(args: Mapping) -> float:
    data = args.get("data") if isinstance(args, Mapping) else None
    score = data.get("weighted_score_delta") if isinstance(data, Mapping) else None
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        return 0
    return score


def get_layout_shifts(result: TraceResult) -> list[LayoutShiftData]:
    shifts: list[LayoutShiftData] = []
    for cluster in result.parsed_trace.data.layout_shifts.clusters:
        for event in cluster.events:
            screenshots = event.parsed_data.screenshots
            images = LayoutShiftImages(before=_image(screenshots.before), after=_image(screenshots.after))
            shifts.append(LayoutShiftData(ts=event.ts, score=_score(event.args), images=images))
    return shifts


def get_layout_shift_images(result: TraceResult, timestamp: float) -> LayoutShiftImages | None:
    """Images of the first shift at `timestamp` (first match wins on duplicate timestamps)."""
    for shift in get_layout_shifts(result):
        if shift.ts == timestamp:
            return shift.images
    return None


__all__ = ["get_layout_shift_images", "get_layout_shifts"]
