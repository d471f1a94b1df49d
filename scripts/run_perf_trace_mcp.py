#!/usr/bin/env python3
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

print(
    f"[mcp] binary={os.environ.get('MCP_BROWSER_BINARY', 'auto')} | "
    f"profile={os.environ.get('MCP_BROWSER_PROFILE', '~/.cache/perf-trace-mcp/profile')} | "
    f"port={os.environ.get('MCP_BROWSER_PORT', '9222')} | "
    f"mode={os.environ.get('MCP_BROWSER_MODE', 'launch')}",
    file=sys.stderr,
)

from mcp_servers.perf_trace.main import main  # noqa: E402

if __name__ == "__main__":
    main()
