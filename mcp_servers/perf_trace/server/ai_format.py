from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RenderBudget:
    max_chars: int = 4000
    max_depth: int = 4
    max_list_items: int = 8
    max_str_chars: int = 600


_PRIORITY_KEYS: tuple[str, ...] = (
    "ok",
    "isError",
    "error",
    "tool",
    "suggestion",
    # Trace/insight context
    "url",
    "status",
    "lcp",
    "cls",
    "ttfb",
    "type",
    "nodeId",
    "resource",
    "subparts",
)


def render_ctx_markdown(data: Any, *, budget: RenderBudget | None = None) -> str:
    """
    Render structured data as compact context-format Markdown (not JSON).

    - Summary keys first, then the rest in sorted order.
    - Long strings, deep nesting and large lists are truncated.
    """
    budget = budget or RenderBudget()

    lines: list[str] = []
    state = _RenderState(max_chars=budget.max_chars)
    _render_any(data, lines, state=state, depth=0, budget=budget)

    out = "[CONTENT]\n" + "\n".join(lines).rstrip() + "\n"
    if len(out) > budget.max_chars:
        out = out[: budget.max_chars].rstrip() + "\n… <TRUNCATED>\n"
    return out


@dataclass
class _RenderState:
    max_chars: int
    used_chars: int = 0
    truncated: bool = False


def _push_line(lines: list[str], line: str, *, state: _RenderState) -> None:
    if state.truncated:
        return
    needed = len(line) + 1
    if state.used_chars + needed > state.max_chars:
        state.truncated = True
        return
    lines.append(line)
    state.used_chars += needed


def _format_scalar(value: Any, *, budget: RenderBudget) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        s = value.replace("\r\n", "\n").replace("\r", "\n")
        if "\n" in s:
            s = s.split("\n", 1)[0] + " …"
        if len(s) > budget.max_str_chars:
            s = s[: budget.max_str_chars].rstrip() + "…"
        return s
    return str(value)


def _sorted_keys(d: dict[Any, Any]) -> list[Any]:
    def key_rank(k: Any) -> tuple[int, int, str]:
        if isinstance(k, str):
            idx = _PRIORITY_KEYS.index(k) if k in _PRIORITY_KEYS else 10_000
            return (idx, 0, k)
        return (10_000, 1, str(k))

    return sorted(d.keys(), key=key_rank)


def _render_any(value: Any, lines: list[str], *, state: _RenderState, depth: int, budget: RenderBudget) -> None:
    if state.truncated:
        return
    if depth > budget.max_depth:
        _push_line(lines, "… <TRUNCATED depth>", state=state)
        return
    if isinstance(value, dict):
        _render_dict(value, lines, state=state, depth=depth, budget=budget)
    elif isinstance(value, list):
        _render_list(value, lines, state=state, depth=depth, budget=budget)
    else:
        _push_line(lines, _format_scalar(value, budget=budget), state=state)


def _render_dict(d: dict[Any, Any], lines: list[str], *, state: _RenderState, depth: int, budget: RenderBudget) -> None:
    indent = "  " * depth
    for key in _sorted_keys(d):
        if state.truncated:
            return
        val = d[key]
        if isinstance(val, list):
            _push_line(lines, f"{indent}{key}: [len={len(val)}]", state=state)
            _render_any(val, lines, state=state, depth=depth + 1, budget=budget)
        elif isinstance(val, dict):
            _push_line(lines, f"{indent}{key}:", state=state)
            _render_any(val, lines, state=state, depth=depth + 1, budget=budget)
        else:
            _push_line(lines, f"{indent}{key}: {_format_scalar(val, budget=budget)}", state=state)


def _render_list(items: list[Any], lines: list[str], *, state: _RenderState, depth: int, budget: RenderBudget) -> None:
    indent = "  " * depth
    limit = min(len(items), budget.max_list_items)
    for item in items[:limit]:
        if state.truncated:
            return
        if isinstance(item, dict):
            bits = [
                f"{k}={_format_scalar(item[k], budget=budget)}"
                for k in _sorted_keys(item)[:3]
                if not isinstance(item[k], (dict, list))
            ]
            _push_line(lines, f"{indent}- {' '.join(bits) if bits else f'dict(keys={len(item)})'}", state=state)
        elif isinstance(item, list):
            _push_line(lines, f"{indent}- [list len={len(item)}]", state=state)
        else:
            _push_line(lines, f"{indent}- {_format_scalar(item, budget=budget)}", state=state)

    if len(items) > limit and not state.truncated:
        _push_line(lines, f"{indent}- … <TRUNCATED list len={len(items)}>", state=state)
