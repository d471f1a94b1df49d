"""Trace engine boundary + the built-in timeline engine.

Any engine exposing reset()/parse()/parsed_trace() can sit behind TraceAdapter.
TimelineEngine is the default: a small single-pass model builder covering what
the insight tools need (navigations, document request, LCP candidates, layout
shift clusters and screenshots). It is not a full DevTools trace model.
"""

from __future__ import annotations

import bisect
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Protocol

from .model import (
    CLSCulpritsInsight,
    DocumentLatencyInsight,
    InsightModel,
    InsightSet,
    LayoutShiftCluster,
    LayoutShiftParsedData,
    LayoutShiftsData,
    LCPBreakdownInsight,
    LCPSubparts,
    Navigation,
    NetworkRequest,
    ParsedTrace,
    ScreenshotEvent,
    ShiftScreenshots,
    SyntheticLayoutShift,
    TimeRange,
    TraceData,
    TraceMeta,
    event_data,
    freeze,
)

NO_NAVIGATION = "NO_NAVIGATION"

# Session-window rules for clustering layout shifts (CLS definition).
CLUSTER_MAX_GAP_US = 1_000_000
CLUSTER_MAX_DURATION_US = 5_000_000


class TraceEngine(Protocol):
    def reset(self) -> None: ...

    def parse(self, events: Sequence[Any]) -> None: ...

    def parsed_trace(self) -> ParsedTrace | None: ...


def _num(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _ts(event: Mapping[str, Any]) -> float:
    # Integral microseconds stay ints.
    ts = event["ts"]
    return int(ts) if float(ts).is_integer() else float(ts)


@dataclass
class _RequestBuilder:
    request_id: str
    url: str = ""
    start_ts: float | None = None
    response_ts: float | None = None
    end_ts: float | None = None
    status_code: int | None = None
    resource_type: str | None = None

    def build(self) -> NetworkRequest | None:
        if self.start_ts is None:
            return None
        return NetworkRequest(
            request_id=self.request_id,
            url=self.url,
            start_ts=self.start_ts,
            response_ts=self.response_ts,
            end_ts=self.end_ts,
            status_code=self.status_code,
            resource_type=self.resource_type,
        )


@dataclass
class _Collected:
    navigations: list[Navigation] = field(default_factory=list)
    requests: dict[str, _RequestBuilder] = field(default_factory=dict)
    lcp_events: list[Mapping[str, Any]] = field(default_factory=list)
    image_paints: list[Mapping[str, Any]] = field(default_factory=list)
    shifts: list[Mapping[str, Any]] = field(default_factory=list)
    screenshots: list[ScreenshotEvent] = field(default_factory=list)
    min_ts: float | None = None
    max_ts: float | None = None
    count: int = 0


def _screenshot_args(event: Mapping[str, Any]) -> dict[str, str] | None:
    args = event.get("args")
    if not isinstance(args, Mapping):
        return None
    snapshot = args.get("snapshot")
    if isinstance(snapshot, str) and snapshot:
        return {"snapshot": snapshot}
    data_uri = args.get("dataUri")
    if isinstance(data_uri, str) and data_uri:
        return {"dataUri": data_uri}
    return None


def _collect(events: Sequence[Any]) -> _Collected:
    out = _Collected()
    valid = [e for e in events if isinstance(e, Mapping) and _num(e.get("ts")) is not None and e.get("ph") != "M"]
    valid.sort(key=lambda e: float(e["ts"]))

    for ev in valid:
        ts = _ts(ev)
        end = ts + (_num(ev.get("dur")) or 0)
        out.count += 1
        out.min_ts = ts if out.min_ts is None else min(out.min_ts, ts)
        out.max_ts = end if out.max_ts is None else max(out.max_ts, end)

        name = ev.get("name")
        data = event_data(ev)

        if name == "navigationStart":
            url = str(data.get("documentLoaderURL") or "")
            if not data.get("isLoadingMainFrame") or not url or url == "about:blank":
                continue
            nav_id = str(data.get("navigationId") or f"navigation-{len(out.navigations) + 1}")
            args = ev.get("args")
            frame = args.get("frame") if isinstance(args, Mapping) else None
            out.navigations.append(Navigation(nav_id, ts, url, frame if isinstance(frame, str) else None))
        elif name in ("ResourceSendRequest", "ResourceReceiveResponse", "ResourceFinish"):
            request_id = data.get("requestId")
            if not isinstance(request_id, str) or not request_id:
                continue
            req = out.requests.setdefault(request_id, _RequestBuilder(request_id))
            if name == "ResourceSendRequest":
                req.url = str(data.get("url") or req.url)
                req.start_ts = ts if req.start_ts is None else req.start_ts
                rtype = data.get("resourceType")
                req.resource_type = rtype if isinstance(rtype, str) else req.resource_type
            elif name == "ResourceReceiveResponse":
                status = _num(data.get("statusCode"))
                req.status_code = int(status) if status is not None else req.status_code
                timing = data.get("timing") if isinstance(data.get("timing"), Mapping) else {}
                request_time = _num(timing.get("requestTime"))
                headers_end = _num(timing.get("receiveHeadersEnd"))
                if request_time is not None and headers_end is not None:
                    # requestTime is seconds and receiveHeadersEnd is ms, on the trace clock.
                    req.response_ts = request_time * 1_000_000 + headers_end * 1000
                else:
                    req.response_ts = ts
            else:
                finish = _num(data.get("finishTime"))
                req.end_ts = finish * 1_000_000 if finish else ts
        elif name in ("largestContentfulPaint::Candidate", "largestContentfulPaint::Invalidate"):
            if data.get("isOutermostMainFrame", data.get("isMainFrame", True)):
                out.lcp_events.append(freeze(ev))
        elif name == "LargestImagePaint::Candidate":
            out.image_paints.append(freeze(ev))
        elif name == "LayoutShift":
            if data.get("had_recent_input") or data.get("is_main_frame") is False:
                continue
            out.shifts.append(freeze(ev))
        elif name == "Screenshot":
            args = _screenshot_args(ev)
            if args is not None:
                out.screenshots.append(ScreenshotEvent(ts, MappingProxyType(args)))
    return out


def _cluster_shifts(shifts: list[Mapping[str, Any]], screenshots: list[ScreenshotEvent]) -> LayoutShiftsData:
    shot_ts = [s.ts for s in screenshots]

    def screenshots_for(ts: float) -> ShiftScreenshots:
        idx = bisect.bisect_right(shot_ts, ts)
        before = screenshots[idx - 1] if idx > 0 else None
        after = screenshots[idx] if idx < len(screenshots) else None
        return ShiftScreenshots(before=before, after=after)

    clusters: list[LayoutShiftCluster] = []
    current: list[SyntheticLayoutShift] = []

    def flush() -> None:
        if not current:
            return
        score = sum(_num(event_data({"args": s.args}).get("weighted_score_delta")) or 0.0 for s in current)
        bounds = TimeRange.between(current[0].ts, current[-1].ts)
        clusters.append(LayoutShiftCluster(events=tuple(current), bounds=bounds, score=score))
        current.clear()

    for ev in shifts:
        ts = _ts(ev)
        if current and (ts - current[-1].ts > CLUSTER_MAX_GAP_US or ts - current[0].ts > CLUSTER_MAX_DURATION_US):
            flush()
        args = ev.get("args") if isinstance(ev.get("args"), Mapping) else MappingProxyType({})
        current.append(SyntheticLayoutShift(ts, args, LayoutShiftParsedData(screenshots_for(ts))))
    flush()

    return LayoutShiftsData(clusters=tuple(clusters), cls=max((c.score for c in clusters), default=0.0))


def _document_request(nav: Navigation, requests: list[NetworkRequest]) -> NetworkRequest | None:
    for req in requests:
        if req.request_id == nav.navigation_id:
            return req
    for req in requests:
        if req.start_ts >= nav.ts and req.url == nav.url and req.resource_type in (None, "Document"):
            return req
    return None


def _lcp_insight(
    nav: Navigation,
    window: TimeRange,
    collected: _Collected,
    requests: list[NetworkRequest],
    doc: NetworkRequest | None,
) -> LCPBreakdownInsight | None:
    last: Mapping[str, Any] | None = None
    for ev in collected.lcp_events:
        ts = _ts(ev)
        if not window.min <= ts < window.max:
            continue
        nav_id = event_data(ev).get("navigationId")
        if nav_id and nav_id != nav.navigation_id:
            continue
        last = ev
    if last is None or last.get("name") != "largestContentfulPaint::Candidate":
        return None

    lcp_ts = _ts(last)
    lcp_data = event_data(last)
    lcp_ms = (lcp_ts - nav.ts) / 1000

    image_url = lcp_data.get("url") if isinstance(lcp_data.get("url"), str) else None
    if image_url is None and lcp_data.get("type") == "image":
        for paint in collected.image_paints:
            pdata = event_data(paint)
            if pdata.get("DOMNodeId") == lcp_data.get("nodeId") and window.min <= _ts(paint) <= lcp_ts:
                url = pdata.get("imageUrl")
                image_url = url if isinstance(url, str) and url else image_url

    lcp_request = None
    if image_url:
        lcp_request = next((r for r in requests if r.url == image_url and r.start_ts >= nav.ts), None)

    subparts = None
    if doc is not None:
        ttfb_end = doc.response_ts if doc.response_ts is not None else doc.start_ts
        ttfb_end = min(max(ttfb_end, nav.ts), lcp_ts)
        ttfb = TimeRange.between(nav.ts, ttfb_end)
        if lcp_request is not None:
            load_start = min(max(lcp_request.start_ts, ttfb_end), lcp_ts)
            load_end = min(max(lcp_request.end_ts or lcp_ts, load_start), lcp_ts)
            subparts = LCPSubparts(
                ttfb=ttfb,
                load_delay=TimeRange.between(ttfb_end, load_start),
                load_duration=TimeRange.between(load_start, load_end),
                render_delay=TimeRange.between(load_end, lcp_ts),
            )
        else:
            subparts = LCPSubparts(ttfb=ttfb, render_delay=TimeRange.between(ttfb_end, lcp_ts))

    return LCPBreakdownInsight(
        lcp_ms=lcp_ms,
        lcp_ts=lcp_ts,
        lcp_event=last,
        lcp_request_url=lcp_request.url if lcp_request is not None else None,
        subparts=subparts,
    )


def _cls_insight(window: TimeRange, shifts: LayoutShiftsData) -> CLSCulpritsInsight | None:
    clusters = [c for c in shifts.clusters if window.min <= c.bounds.min < window.max]
    if not clusters:
        return None
    worst = max(clusters, key=lambda c: c.score)
    return CLSCulpritsInsight(
        cls=worst.score,
        cluster_count=len(clusters),
        shift_count=sum(len(c.events) for c in clusters),
        worst_cluster=worst,
    )


def _insight_sets(
    collected: _Collected,
    bounds: TimeRange,
    requests: list[NetworkRequest],
    shifts: LayoutShiftsData,
) -> Mapping[str, InsightSet]:
    sets: dict[str, InsightSet] = {}
    navs = collected.navigations
    if not navs:
        model: dict[str, InsightModel] = {}
        cls = _cls_insight(TimeRange.between(bounds.min, bounds.max + 1), shifts)
        if cls is not None:
            model["CLSCulprits"] = cls
        sets[NO_NAVIGATION] = InsightSet(NO_NAVIGATION, "", bounds, MappingProxyType(model))
        return MappingProxyType(sets)

    for i, nav in enumerate(navs):
        end = navs[i + 1].ts if i + 1 < len(navs) else bounds.max + 1
        window = TimeRange.between(nav.ts, end)
        doc = _document_request(nav, requests)
        model = {}
        lcp = _lcp_insight(nav, window, collected, requests, doc)
        if lcp is not None:
            model["LCPBreakdown"] = lcp
        if doc is not None:
            ttfb_end = doc.response_ts if doc.response_ts is not None else doc.start_ts
            model["DocumentLatency"] = DocumentLatencyInsight(
                url=doc.url,
                status_code=doc.status_code,
                ttfb_ms=max(0.0, ttfb_end - nav.ts) / 1000,
                server_response_ms=max(0.0, ttfb_end - doc.start_ts) / 1000,
            )
        cls = _cls_insight(window, shifts)
        if cls is not None:
            model["CLSCulprits"] = cls
        # Later navigations with a reused id replace earlier ones, keeping insertion order.
        sets.pop(nav.navigation_id, None)
        sets[nav.navigation_id] = InsightSet(nav.navigation_id, nav.url, window, MappingProxyType(model), nav)
    return MappingProxyType(sets)


class TimelineEngine:
    """Default trace engine. Not thread-safe: callers serialize reset/parse."""

    def __init__(self, *, compute_insights: bool = True) -> None:
        self.compute_insights = compute_insights
        self._parsed: ParsedTrace | None = None

    def reset(self) -> None:
        self._parsed = None

    def parse(self, events: Sequence[Any]) -> None:
        collected = _collect(events)
        if not collected.count or collected.min_ts is None or collected.max_ts is None:
            self._parsed = None
            return

        bounds = TimeRange.between(collected.min_ts, collected.max_ts)
        requests = [r for r in (b.build() for b in collected.requests.values()) if r is not None]
        requests.sort(key=lambda r: r.start_ts)
        shifts = _cluster_shifts(collected.shifts, collected.screenshots)
        data = TraceData(
            navigations=tuple(collected.navigations),
            network_requests=tuple(requests),
            screenshots=tuple(collected.screenshots),
            layout_shifts=shifts,
        )
        insights = _insight_sets(collected, bounds, requests, shifts) if self.compute_insights else None
        self._parsed = ParsedTrace(TraceMeta(bounds, collected.count), data, insights)

    def parsed_trace(self) -> ParsedTrace | None:
        return self._parsed


__all__ = ["NO_NAVIGATION", "TimelineEngine", "TraceEngine"]
