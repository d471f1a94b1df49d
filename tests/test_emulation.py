from __future__ import annotations

from typing import Any

import pytest

from mcp_servers.perf_trace.emulation import NETWORK_CONDITIONS, NETWORK_PRESETS, EmulationState, apply_emulation
from mcp_servers.perf_trace.errors import SmartToolError


class FakePage:
    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []

    def emulate_network_conditions(self, conditions: dict[str, Any] | None) -> None:
        self.calls.append(("network", conditions))

    def emulate_cpu_throttling(self, rate: float) -> None:
        self.calls.append(("cpu", rate))

    def set_geolocation(self, geolocation: dict[str, float] | None) -> None:
        self.calls.append(("geo", geolocation))


def test_presets_are_listed() -> None:
    assert NETWORK_CONDITIONS == ("No emulation", "Offline", "Slow 3G", "Fast 3G", "Slow 4G", "Fast 4G")


def test_apply_network_preset_and_cpu() -> None:
    page = FakePage()
    state = apply_emulation(page, EmulationState(), {"networkConditions": "Slow 3G", "cpuThrottlingRate": 4})
    assert page.calls == [("network", NETWORK_PRESETS["Slow 3G"]), ("cpu", 4.0)]
    assert state.network_conditions == "Slow 3G"
    assert state.describe() == {"Network throttling": "Slow 3G", "CPU throttling": "4x"}


def test_no_emulation_clears_network_state() -> None:
    page = FakePage()
    state = apply_emulation(page, EmulationState(network_conditions="Offline"), {"networkConditions": "No emulation"})
    assert page.calls == [("network", None)]
    assert state.network_conditions is None


def test_offline_preset() -> None:
    page = FakePage()
    state = apply_emulation(page, EmulationState(), {"networkConditions": "Offline"})
    assert page.calls[0][1]["offline"] is True
    assert state.network_conditions == "Offline"


def test_geolocation_set_and_clear() -> None:
    page = FakePage()
    state = apply_emulation(page, EmulationState(), {"geolocation": {"latitude": 48.8, "longitude": 2.35}})
    assert state.geolocation == {"latitude": 48.8, "longitude": 2.35}
    state = apply_emulation(page, state, {"geolocation": None})
    assert page.calls[-1] == ("geo", None)
    assert state.geolocation is None


def test_missing_arguments_change_nothing() -> None:
    page = FakePage()
    before = EmulationState(network_conditions="Fast 4G", cpu_throttling_rate=2)
    assert apply_emulation(page, before, {}) == before
    assert page.calls == []


@pytest.mark.parametrize(
    "args",
    [
        {"networkConditions": "Dial-up"},
        {"cpuThrottlingRate": 0},
        {"cpuThrottlingRate": 21},
        {"cpuThrottlingRate": True},
        {"geolocation": {"latitude": 91, "longitude": 0}},
        {"geolocation": {"latitude": 0, "longitude": -181}},
        {"geolocation": "paris"},
    ],
)
def test_invalid_emulation_is_rejected_before_applying(args: dict[str, Any]) -> None:
    page = FakePage()
    with pytest.raises(SmartToolError) as exc:
        apply_emulation(page, EmulationState(), args)
    assert exc.value.tool == "emulate"
    assert page.calls == []


def test_unknown_preset_lists_valid_ones() -> None:
    with pytest.raises(SmartToolError) as exc:
        apply_emulation(FakePage(), EmulationState(), {"networkConditions": "5G"})
    assert exc.value.details["valid"] == list(NETWORK_CONDITIONS)


class FlakyPage(FakePage):
    def emulate_cpu_throttling(self, rate: float) -> None:
        raise RuntimeError("cdp gone")


def test_rejected_step_is_logged_and_applied_steps_are_kept(caplog: pytest.LogCaptureFixture) -> None:
    page = FlakyPage()
    with caplog.at_level("WARNING", logger="mcp.perf_trace.emulation"):
        state = apply_emulation(
            page,
            EmulationState(),
            {"networkConditions": "Slow 3G", "cpuThrottlingRate": 4, "geolocation": {"latitude": 1, "longitude": 2}},
        )
    assert state.network_conditions == "Slow 3G"
    assert state.cpu_throttling_rate == 1
    assert state.geolocation == {"latitude": 1.0, "longitude": 2.0}
    assert "CPU throttling failed: cdp gone" in caplog.text
