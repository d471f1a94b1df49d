"""Result types shared by the trace pipeline.

Parse outcomes are tagged values (`ok`), never exceptions:
- TraceResult: parsed model + optional insight sets (read-only after construction)
- TraceParseError: a single human-readable message
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from .model import InsightSet, ParsedTrace

T = TypeVar("T")


@dataclass(frozen=True)
class TraceResult:
    parsed_trace: ParsedTrace
    insights: Mapping[str, InsightSet] | None
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class TraceParseError:
    error: str
    ok: bool = field(default=False, init=False)


def trace_result_is_success(result: TraceResult | TraceParseError) -> bool:
    return result.ok


@dataclass(frozen=True)
class LCPPhase:
    name: str
    duration_ms: float

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "durationMs": self.duration_ms}


@dataclass(frozen=True)
class LCPBreakdownData:
    lcp_ms: float
    phases: tuple[LCPPhase, ...] = ()
    backend_node_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "lcpMs": self.lcp_ms,
            **({"backendNodeId": self.backend_node_id} if self.backend_node_id is not None else {}),
            "phases": [p.to_dict() for p in self.phases],
        }


@dataclass(frozen=True)
class LayoutShiftImages:
    before: str | None = None
    after: str | None = None

    def to_dict(self) -> dict[str, str]:
        return {
            **({"before": self.before} if self.before is not None else {}),
            **({"after": self.after} if self.after is not None else {}),
        }


@dataclass(frozen=True)
class LayoutShiftData:
    ts: float
    score: float
    images: LayoutShiftImages

    def to_dict(self) -> dict[str, Any]:
        return {"ts": self.ts, "score": self.score, "images": self.images.to_dict()}


@dataclass(frozen=True)
class BestEffort(Generic[T]):
    """Outcome of a side operation that may fail without failing its caller."""

    value: T | None = None
    error: str | None = None

    def unwrap_or_log(self, logger: logging.Logger, what: str) -> T | None:
        if self.error is not None:
            logger.warning("%s failed: %s", what, self.error)
            return None
        return self.value


__all__ = [
    "BestEffort",
    "LCPBreakdownData",
    "LCPPhase",
    "LayoutShiftData",
    "LayoutShiftImages",
    "TraceParseError",
    "TraceResult",
    "trace_result_is_success",
]
