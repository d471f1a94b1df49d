"""Parsed trace model produced by a trace engine.

Timestamps and ranges are trace-relative microseconds, as in the raw trace.
Everything here is immutable once built: raw event payloads are frozen into
read-only mappings and tuples so downstream readers cannot mutate them.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, ClassVar, Union


def freeze(value: Any) -> Any:
    """Recursively convert dicts/lists into read-only mappings/tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    return value


def event_data(event: Any) -> Mapping[str, Any]:
    """`args.data` of a raw trace event, or an empty mapping when any level is missing."""
    args = event.get("args") if isinstance(event, Mapping) else None
    data = args.get("data") if isinstance(args, Mapping) else None
    return data if isinstance(data, Mapping) else MappingProxyType({})


@dataclass(frozen=True)
class TimeRange:
    min: float
    max: float
    range: float

    @classmethod
    def between(cls, start: float, end: float) -> TimeRange:
        end = max(start, end)
        return cls(min=start, max=end, range=end - start)


@dataclass(frozen=True)
class TraceMeta:
    bounds: TimeRange
    event_count: int


@dataclass(frozen=True)
class Navigation:
    navigation_id: str
    ts: float
    url: str
    frame: str | None = None


@dataclass(frozen=True)
class NetworkRequest:
    request_id: str
    url: str
    start_ts: float
    response_ts: float | None = None
    end_ts: float | None = None
    status_code: int | None = None
    resource_type: str | None = None


@dataclass(frozen=True)
class ScreenshotEvent:
    ts: float
    # Either {"snapshot": <base64>} or {"dataUri": <data:...>}, never both.
    args: Mapping[str, Any]


@dataclass(frozen=True)
class ShiftScreenshots:
    before: ScreenshotEvent | None = None
    after: ScreenshotEvent | None = None


@dataclass(frozen=True)
class LayoutShiftParsedData:
    screenshots: ShiftScreenshots


@dataclass(frozen=True)
class SyntheticLayoutShift:
    ts: float
    args: Mapping[str, Any]
    parsed_data: LayoutShiftParsedData


@dataclass(frozen=True)
class LayoutShiftCluster:
    events: tuple[SyntheticLayoutShift, ...]
    bounds: TimeRange
    score: float


@dataclass(frozen=True)
class LayoutShiftsData:
    clusters: tuple[LayoutShiftCluster, ...] = ()
    cls: float = 0.0


@dataclass(frozen=True)
class TraceData:
    navigations: tuple[Navigation, ...] = ()
    network_requests: tuple[NetworkRequest, ...] = ()
    screenshots: tuple[ScreenshotEvent, ...] = ()
    layout_shifts: LayoutShiftsData = LayoutShiftsData()


# Insight models


@dataclass(frozen=True)
class LCPSubparts:
    ttfb: TimeRange | None = None
    load_delay: TimeRange | None = None
    load_duration: TimeRange | None = None
    render_delay: TimeRange | None = None


@dataclass(frozen=True)
class LCPBreakdownInsight:
    title: ClassVar[str] = "LCP breakdown"
    description: ClassVar[str] = (
        "Each subpart has specific improvement strategies. Ideally, most of the LCP time "
        "should be spent on loading the resources, not within delays."
    )

    lcp_ms: float | None = None
    lcp_ts: float | None = None
    lcp_event: Mapping[str, Any] | None = None
    lcp_request_url: str | None = None
    subparts: LCPSubparts | None = None

    def to_dict(self) -> dict[str, Any]:
        data = event_data(self.lcp_event)
        subparts: dict[str, Any] = {}
        if self.subparts is not None:
            for key, value in (
                ("ttfb", self.subparts.ttfb),
                ("loadDelay", self.subparts.load_delay),
                ("loadDuration", self.subparts.load_duration),
                ("renderDelay", self.subparts.render_delay),
            ):
                if value is not None:
                    subparts[key] = f"{value.range / 1000:.1f} ms"
        return {
            "lcp": f"{self.lcp_ms:.0f} ms" if self.lcp_ms is not None else None,
            "type": data.get("type"),
            "nodeId": data.get("nodeId"),
            "size": data.get("size"),
            **({"resource": self.lcp_request_url} if self.lcp_request_url else {}),
            "subparts": subparts,
        }


@dataclass(frozen=True)
class DocumentLatencyInsight:
    title: ClassVar[str] = "Document request latency"
    description: ClassVar[str] = (
        "Your first network request is the most important. Reduce its latency by avoiding "
        "redirects and ensuring a fast server response."
    )

    url: str
    status_code: int | None = None
    ttfb_ms: float | None = None
    server_response_ms: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "status": self.status_code,
            "ttfb": f"{self.ttfb_ms:.0f} ms" if self.ttfb_ms is not None else None,
            "serverResponse": f"{self.server_response_ms:.0f} ms" if self.server_response_ms is not None else None,
            "slowServer": self.server_response_ms is not None and self.server_response_ms > 600,
        }


@dataclass(frozen=True)
class CLSCulpritsInsight:
    title: ClassVar[str] = "Layout shift culprits"
    description: ClassVar[str] = (
        "Layout shifts occur when elements move absent any user interaction. The worst "
        "cluster of shifts determines the Cumulative Layout Shift score."
    )

    cls: float
    cluster_count: int
    shift_count: int
    worst_cluster: LayoutShiftCluster | None = None

    def to_dict(self) -> dict[str, Any]:
        worst = self.worst_cluster
        return {
            "cls": round(self.cls, 4),
            "clusters": self.cluster_count,
            "shifts": self.shift_count,
            **(
                {
                    "worstCluster": {
                        "start": worst.bounds.min,
                        "durationMs": round(worst.bounds.range / 1000, 1),
                        "score": round(worst.score, 4),
                        "shifts": len(worst.events),
                    }
                }
                if worst is not None
                else {}
            ),
        }


InsightModel = Union[LCPBreakdownInsight, DocumentLatencyInsight, CLSCulpritsInsight]


@dataclass(frozen=True)
class InsightSet:
    id: str
    url: str
    bounds: TimeRange
    model: Mapping[str, InsightModel]
    navigation: Navigation | None = None


@dataclass(frozen=True)
class ParsedTrace:
    meta: TraceMeta
    data: TraceData
    insights: Mapping[str, InsightSet] | None = None


__all__ = [
    "CLSCulpritsInsight",
    "DocumentLatencyInsight",
    "InsightModel",
    "InsightSet",
    "LCPBreakdownInsight",
    "LCPSubparts",
    "LayoutShiftCluster",
    "LayoutShiftParsedData",
    "LayoutShiftsData",
    "Navigation",
    "NetworkRequest",
    "ParsedTrace",
    "ScreenshotEvent",
    "ShiftScreenshots",
    "SyntheticLayoutShift",
    "TimeRange",
    "TraceData",
    "TraceMeta",
    "event_data",
    "freeze",
]
