"""Layout tree nodes and focused-node lookup."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from .types import (
    Rect,
    WindowProperties,
    as_list,
    as_mapping,
    get_field,
    get_optional,
)


@dataclass(frozen=True)
class Node:
    """One element of the root/output/workspace/container tree.

    Attributes:
        id: Internal unique ID
        name: Output name, workspace name or window title
        type: "root", "output", "workspace", "con" or "floating_con"
        focused: Whether this node currently holds input focus
        nodes: Tiling children, in layout order
        floating_nodes: Floating children, in stacking order
        focus: Child IDs ordered by most recent focus
        app_id: Wayland app id (None for xwayland views)
    """

    id: int = 0
    name: str = ""
    type: str = ""
    border: str = ""
    current_border_width: int = 0
    layout: str = ""
    orientation: str = ""
    percent: float | None = None
    rect: Rect = Rect()
    window_rect: Rect = Rect()
    deco_rect: Rect = Rect()
    geometry: Rect = Rect()
    urgent: bool | None = None
    sticky: bool = False
    marks: tuple[Any, ...] = ()
    focused: bool = False
    focus: tuple[int, ...] = ()
    nodes: tuple[Node | None, ...] = field(default=(), repr=False)
    floating_nodes: tuple[Node | None, ...] = field(default=(), repr=False)
    representation: str | None = None
    fullscreen_mode: int | None = None
    app_id: str | None = None
    pid: int | None = None
    visible: bool | None = None
    shell: str | None = None
    inhibit_idle: bool | None = None
    idle_inhibitors: Any = None
    window: int | None = None
    window_properties: WindowProperties | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Node:
        mapping = as_mapping(data, "node")
        window_properties = mapping.get("window_properties")
        return cls(
            id=get_field(mapping, "id", int, 0),
            name=get_field(mapping, "name", str, ""),
            type=get_field(mapping, "type", str, ""),
            border=get_field(mapping, "border", str, ""),
            current_border_width=get_field(mapping, "current_border_width", int, 0),
            layout=get_field(mapping, "layout", str, ""),
            orientation=get_field(mapping, "orientation", str, ""),
            percent=get_optional(mapping, "percent", float),
            rect=Rect.from_dict(mapping.get("rect")),
            window_rect=Rect.from_dict(mapping.get("window_rect")),
            deco_rect=Rect.from_dict(mapping.get("deco_rect")),
            geometry=Rect.from_dict(mapping.get("geometry")),
            urgent=get_optional(mapping, "urgent", bool),
            sticky=get_field(mapping, "sticky", bool, False),
            marks=tuple(as_list(mapping.get("marks"), "marks")),
            focused=get_field(mapping, "focused", bool, False),
            focus=tuple(as_list(mapping.get("focus"), "focus")),
            nodes=_children(mapping, "nodes"),
            floating_nodes=_children(mapping, "floating_nodes"),
            representation=get_optional(mapping, "representation", str),
            fullscreen_mode=get_optional(mapping, "fullscreen_mode", int),
            app_id=get_optional(mapping, "app_id", str),
            pid=get_optional(mapping, "pid", int),
            visible=get_optional(mapping, "visible", bool),
            shell=get_optional(mapping, "shell", str),
            inhibit_idle=get_optional(mapping, "inhibit_idle", bool),
            idle_inhibitors=mapping.get("idle_inhibitors"),
            window=get_optional(mapping, "window", int),
            window_properties=(
                WindowProperties.from_dict(window_properties)
                if window_properties is not None
                else None
            ),
        )

    def walk(self) -> Iterator[Node]:
        """Yield this node and its descendants in level order."""
        return walk(self)

    def find(self, predicate: Callable[[Node], bool]) -> Node | None:
        """Return the first node in level order matching ``predicate``."""
        return find(self, predicate)

    def focused_node(self) -> Node | None:
        """Return the focused node of this subtree, if any."""
        return focused_node(self)


def _children(mapping: Any, key: str) -> tuple[Node | None, ...]:
    return tuple(
        Node.from_dict(child) if child is not None else None
        for child in as_list(mapping.get(key), key)
    )


def walk(root: Node | None) -> Iterator[Node]:
    """Breadth-first walk visiting tiling children before floating children.

    ``None`` entries (absent root or null children) are skipped.
    """
    queue: deque[Node | None] = deque([root])
    while queue:
        node = queue.popleft()
        if node is None:
            continue
        yield node
        queue.extend(node.nodes)
        queue.extend(node.floating_nodes)


def find(root: Node | None, predicate: Callable[[Node], bool]) -> Node | None:
    return next((node for node in walk(root) if predicate(node)), None)


def focused_node(root: Node | None) -> Node | None:
    """Return the first node with ``focused`` set, in level order.

    If a tree carries several stale focus flags, the shallowest one wins, and
    at equal depth tiling siblings win over floating ones.
    """
    return find(root, lambda node: node.focused)
