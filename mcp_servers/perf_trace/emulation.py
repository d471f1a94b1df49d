"""Network/CPU/geolocation emulation state for the selected page.

Values are applied to the page and remembered so trace summaries can report the
conditions a recording was made under.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from .errors import SmartToolError
from .trace.results import BestEffort

if TYPE_CHECKING:
    from .browser_session import BrowserSession

logger = logging.getLogger("mcp.perf_trace.emulation")

NO_EMULATION = "No emulation"
OFFLINE = "Offline"

# Throughput in bytes/s, latency in ms (DevTools predefined throttling profiles).
NETWORK_PRESETS: dict[str, dict[str, float]] = {
    "Slow 3G": {"download": 500 * 1000 / 8 * 0.8, "upload": 500 * 1000 / 8 * 0.8, "latency": 400 * 5},
    "Fast 3G": {"download": 1.6 * 1000 * 1000 / 8 * 0.9, "upload": 750 * 1000 / 8 * 0.9, "latency": 150 * 3.75},
    "Slow 4G": {"download": 1.6 * 1000 * 1000 / 8 * 0.9, "upload": 750 * 1000 / 8 * 0.9, "latency": 150 * 3.75},
    "Fast 4G": {"download": 9 * 1000 * 1000 / 8 * 0.9, "upload": 1.5 * 1000 * 1000 / 8 * 0.9, "latency": 60 * 2.75},
}

NETWORK_CONDITIONS: tuple[str, ...] = (NO_EMULATION, OFFLINE, *NETWORK_PRESETS)

CPU_RATE_MIN = 1
CPU_RATE_MAX = 20


@dataclass(frozen=True)
class EmulationState:
    network_conditions: str | None = None
    cpu_throttling_rate: float = 1
    geolocation: dict[str, float] | None = None

    def describe(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.network_conditions:
            out["Network throttling"] = self.network_conditions
        if self.cpu_throttling_rate and self.cpu_throttling_rate != 1:
            out["CPU throttling"] = f"{self.cpu_throttling_rate:g}x"
        if self.geolocation:
            out["Geolocation"] = f"{self.geolocation['latitude']}, {self.geolocation['longitude']}"
        return out


def _bad(reason: str, suggestion: str, **details: Any) -> SmartToolError:
    return SmartToolError(tool="emulate", action="validate", reason=reason, suggestion=suggestion, details=details)


def validate_network_conditions(value: Any) -> str | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str) or value not in NETWORK_CONDITIONS:
        raise _bad(
            f"Unknown network conditions: {value!r}",
            "Use one of the listed presets",
            valid=list(NETWORK_CONDITIONS),
        )
    return value


def validate_cpu_rate(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not CPU_RATE_MIN <= value <= CPU_RATE_MAX:
        raise _bad(
            f"cpuThrottlingRate must be a number between {CPU_RATE_MIN} and {CPU_RATE_MAX}",
            "Use 1 to disable CPU throttling",
            got=value,
        )
    return float(value)


def validate_geolocation(value: Any) -> dict[str, float] | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise _bad("geolocation must be an object or null", "Pass {latitude, longitude} or null to clear")
    lat, lon = value.get("latitude"), value.get("longitude")
    for name, v, limit in (("latitude", lat, 90), ("longitude", lon, 180)):
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not -limit <= v <= limit:
            raise _bad(f"{name} must be between -{limit} and {limit}", "Check the coordinates", got=v)
    return {"latitude": float(lat), "longitude": float(lon)}


def _apply_step(what: str, call: Callable[..., Any], *args: Any) -> bool:
    try:
        call(*args)
    except Exception as exc:
        BestEffort(error=str(exc) or repr(exc)).unwrap_or_log(logger, what)
        return False
    return True


def apply_emulation(session: BrowserSession, state: EmulationState, arguments: dict[str, Any]) -> EmulationState:
    """Validate every argument, then apply each one to the page.

    Invalid arguments raise before anything is applied. A step the page rejects is
    logged and skipped; the returned state records only the steps that took effect.
    """
    network = validate_network_conditions(arguments.get("networkConditions"))
    cpu = validate_cpu_rate(arguments.get("cpuThrottlingRate"))
    has_geo = "geolocation" in arguments
    geo = validate_geolocation(arguments.get("geolocation")) if has_geo else None

    if network is not None:
        if network == NO_EMULATION:
            conditions, applied = None, None
        elif network == OFFLINE:
            conditions, applied = {"offline": True, "download": 0, "upload": 0, "latency": 0}, OFFLINE
        else:
            conditions, applied = NETWORK_PRESETS[network], network
        if _apply_step("Network emulation", session.emulate_network_conditions, conditions):
            state = replace(state, network_conditions=applied)

    if cpu is not None and _apply_step("CPU throttling", session.emulate_cpu_throttling, cpu):
        state = replace(state, cpu_throttling_rate=cpu)

    if has_geo and _apply_step("Geolocation emulation", session.set_geolocation, geo):
        state = replace(state, geolocation=geo)

    logger.info("emulation_applied %s", state.describe() or "none")
    return state


__all__ = [
    "CPU_RATE_MAX",
    "CPU_RATE_MIN",
    "NETWORK_CONDITIONS",
    "NETWORK_PRESETS",
    "EmulationState",
    "apply_emulation",
    "validate_cpu_rate",
    "validate_geolocation",
    "validate_network_conditions",
]
