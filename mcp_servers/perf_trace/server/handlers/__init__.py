"""
Tool handlers organized by domain.

All handlers follow the signature: (context, arguments) -> ToolResult
"""

from .emulation import EMULATION_HANDLERS
from .performance import PERFORMANCE_HANDLERS

ALL_HANDLERS: dict[str, tuple] = {
    **PERFORMANCE_HANDLERS,
    **EMULATION_HANDLERS,
}

__all__ = ["ALL_HANDLERS", "EMULATION_HANDLERS", "PERFORMANCE_HANDLERS"]
