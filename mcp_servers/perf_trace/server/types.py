"""
Tool call results as returned over MCP.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .ai_format import render_ctx_markdown


@dataclass(slots=True)
class ToolContent:
    """One text block of a tool response."""

    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass(slots=True)
class ToolResult:
    content: list[ToolContent] = field(default_factory=list)
    is_error: bool = False
    # Structured payload for in-process callers; never sent over the wire.
    data: Any | None = None

    @classmethod
    def text(cls, text: str) -> ToolResult:
        """Verbatim text; fenced JSON blocks in trace output must survive unchanged."""
        return cls(content=[ToolContent(text or "")])

    @classmethod
    def lines(cls, lines: list[str]) -> ToolResult:
        return cls.text("\n".join(lines))

    @classmethod
    def error(
        cls,
        message: str,
        *,
        tool: str | None = None,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> ToolResult:
        payload: dict[str, Any] = {"ok": False, "error": message}
        if tool:
            payload["tool"] = tool
        if suggestion:
            payload["suggestion"] = suggestion
        if details:
            payload["details"] = details
        return cls(content=[ToolContent(render_ctx_markdown(payload))], is_error=True, data=payload)

    @classmethod
    def json(cls, data: Any) -> ToolResult:
        """Structured result rendered in the bounded context format."""
        return cls(content=[ToolContent(render_ctx_markdown(data))], data=data)

    def to_content_list(self) -> list[dict[str, Any]]:
        return [c.to_dict() for c in self.content]


__all__ = ["ToolContent", "ToolResult"]
