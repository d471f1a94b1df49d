from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _get_local_chromium_path() -> str:
    """Get path to locally installed Chromium in vendor directory."""
    config_dir = Path(__file__).resolve().parent
    project_root = config_dir.parent.parent
    local_chrome = project_root / "vendor" / "chromium" / "chrome"
    return str(local_chrome)


DEFAULT_BINARY_CANDIDATES: list[str] = [
    _get_local_chromium_path(),
    # Avoid snap versions early: they ignore --user-data-dir.
    "/usr/bin/chromium",
    "/usr/bin/chromium-browser",
    "/usr/local/bin/chromium",
    "/opt/chromium/chromium",
    "/Applications/Chromium.app/Contents/MacOS/Chromium",
    "C:\\Program Files\\Chromium\\Application\\chrome.exe",
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    "/usr/bin/google-chrome",
    "/usr/bin/google-chrome-stable",
    "/opt/google/chrome/chrome",
    "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe",
    "C:\\Program Files (x86)\\Google\\Chrome\\Application\\chrome.exe",
    "/snap/bin/chromium",
]


def expand_path(raw: str) -> str:
    return str(Path(raw).expanduser())


def _env_float(name: str, default: float, *, min_v: float, max_v: float) -> float:
    try:
        value = float(os.environ.get(name) or default)
    except ValueError:
        value = default
    return max(min_v, min(value, max_v))


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    try:
        value = int(os.environ.get(name) or default)
    except ValueError:
        value = default
    return max(min_v, min(value, max_v))


@dataclass
class PerfTraceConfig:
    binary_path: str
    profile_path: str
    cdp_port: int = 9222
    mode: str = "launch"
    extra_flags: list[str] = field(default_factory=list)
    cdp_timeout: float = 10.0
    auto_stop_seconds: float = 5.0
    trace_stop_timeout: float = 30.0
    screenshot_max_px: int = 800

    @staticmethod
    def normalize_mode(raw: str | None) -> str:
        mode = (raw or "").strip().lower()
        if mode in {"attach", "connect", "external"}:
            return "attach"
        return "launch"

    @classmethod
    def detect_binary(cls) -> str:
        env_path = os.environ.get("MCP_BROWSER_BINARY")
        if env_path:
            return expand_path(env_path)
        for candidate in DEFAULT_BINARY_CANDIDATES:
            path = Path(candidate)
            # vendor/chromium/chrome may exist without +x; skip it then.
            if path.exists() and os.access(str(path), os.X_OK):
                return str(path)
        return "google-chrome"

    @classmethod
    def from_env(cls) -> PerfTraceConfig:
        mode = cls.normalize_mode(os.environ.get("MCP_BROWSER_MODE"))
        profile = expand_path(os.environ.get("MCP_BROWSER_PROFILE", "~/.cache/perf-trace-mcp/profile"))
        port = _env_int("MCP_BROWSER_PORT", 9222, min_v=1, max_v=65535)
        flags_raw = os.environ.get("MCP_BROWSER_FLAGS", "")
        extra_flags = [flag.strip() for flag in flags_raw.split(",") if flag.strip()]
        return cls(
            binary_path=cls.detect_binary(),
            profile_path=profile,
            cdp_port=port,
            mode=mode,
            extra_flags=extra_flags,
            cdp_timeout=_env_float("MCP_CDP_TIMEOUT", 10.0, min_v=1.0, max_v=120.0),
            auto_stop_seconds=_env_float("MCP_TRACE_AUTOSTOP_SECONDS", 5.0, min_v=0.5, max_v=120.0),
            trace_stop_timeout=_env_float("MCP_TRACE_STOP_TIMEOUT", 30.0, min_v=1.0, max_v=300.0),
            screenshot_max_px=_env_int("MCP_SCREENSHOT_MAX_PX", 800, min_v=64, max_v=4096),
        )
