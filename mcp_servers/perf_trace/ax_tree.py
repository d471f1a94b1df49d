"""Accessibility tree snapshot built from CDP Accessibility.getFullAXTree."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _ax_value(value: Any) -> Any:
    """CDP AXValue is usually a dict with {type,value}. Return the underlying value."""
    if isinstance(value, dict) and "value" in value:
        return value.get("value")
    return value


@dataclass
class AXNode:
    node_id: str
    role: str = ""
    name: str = ""
    backend_node_id: int | None = None
    frame_id: str | None = None
    ignored: bool = False
    children: list[AXNode] = field(default_factory=list)


def _backend_id(raw: dict[str, Any]) -> int | None:
    value = raw.get("backendDOMNodeId")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


def build_ax_tree(nodes: list[dict[str, Any]], *, frame_id: str | None = None) -> AXNode | None:
    """Link a flat getFullAXTree node list into a tree.

    The root is the first node without a parentId. Children keep CDP childIds order.
    Nodes referenced from more than one parent are attached once (first parent wins).
    """
    by_id: dict[str, AXNode] = {}
    child_ids: dict[str, list[str]] = {}
    root_id: str | None = None

    for raw in nodes:
        if not isinstance(raw, dict):
            continue
        node_id = raw.get("nodeId")
        if not isinstance(node_id, str) or not node_id or node_id in by_id:
            continue
        by_id[node_id] = AXNode(
            node_id=node_id,
            role=str(_ax_value(raw.get("role")) or ""),
            name=str(_ax_value(raw.get("name")) or ""),
            backend_node_id=_backend_id(raw),
            frame_id=raw.get("frameId") if isinstance(raw.get("frameId"), str) else frame_id,
            ignored=raw.get("ignored") is True,
        )
        ids = raw.get("childIds")
        child_ids[node_id] = [c for c in ids if isinstance(c, str)] if isinstance(ids, list) else []
        if root_id is None and not raw.get("parentId"):
            root_id = node_id

    if not by_id:
        return None
    if root_id is None:
        root_id = next(iter(by_id))

    attached: set[str] = {root_id}
    stack = [root_id]
    while stack:
        parent_id = stack.pop()
        parent = by_id[parent_id]
        for cid in child_ids.get(parent_id, []):
            if cid in attached or cid not in by_id:
                continue
            attached.add(cid)
            parent.children.append(by_id[cid])
            stack.append(cid)
    return by_id[root_id]


def attach_subtree(root: AXNode, owner_backend_id: int | None, subtree: AXNode) -> None:
    """Graft an iframe document's tree under the AX node owning the iframe element.

    Falls back to appending under the root when the owner is not in the tree.
    """
    if owner_backend_id is not None:
        stack = [root]
        while stack:
            node = stack.pop()
            if node.backend_node_id == owner_backend_id:
                node.children.append(subtree)
                return
            stack.extend(reversed(node.children))
    root.children.append(subtree)


__all__ = ["AXNode", "attach_subtree", "build_ax_tree"]
