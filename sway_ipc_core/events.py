"""Event records delivered on a subscribed connection.

``decode_event`` is the closed dispatch from an event type tag to its record.
Tags this client does not know are not an error: sway appends new event
kinds over time and an older client simply ignores them.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Union

from .transport.framing import EventType
from .tree import Node
from .types import (
    BarConfig,
    Binding,
    Input,
    as_mapping,
    get_field,
)


@dataclass(frozen=True)
class WorkspaceEvent:
    """Workspace init/empty/focus/move/rename/urgent/reload change."""

    change: str = ""
    current: Node | None = None
    old: Node | None = None

    @classmethod
    def from_dict(cls, data: Any) -> WorkspaceEvent:
        mapping = as_mapping(data, "workspace event")
        current = mapping.get("current")
        old = mapping.get("old")
        return cls(
            change=get_field(mapping, "change", str, ""),
            current=Node.from_dict(current) if current is not None else None,
            old=Node.from_dict(old) if old is not None else None,
        )


@dataclass(frozen=True)
class ModeEvent:
    change: str = ""
    pango_markup: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> ModeEvent:
        mapping = as_mapping(data, "mode event")
        return cls(
            change=get_field(mapping, "change", str, ""),
            pango_markup=get_field(mapping, "pango_markup", bool, False),
        )


@dataclass(frozen=True)
class WindowEvent:
    """A view was created, closed, focused, moved, retitled, ..."""

    change: str = ""
    container: Node = Node()

    @classmethod
    def from_dict(cls, data: Any) -> WindowEvent:
        mapping = as_mapping(data, "window event")
        container = mapping.get("container")
        return cls(
            change=get_field(mapping, "change", str, ""),
            container=Node.from_dict(container) if container is not None else Node(),
        )


BarConfigUpdateEvent = BarConfig


@dataclass(frozen=True)
class BindingEvent:
    change: str = ""
    binding: Binding = Binding()

    @classmethod
    def from_dict(cls, data: Any) -> BindingEvent:
        mapping = as_mapping(data, "binding event")
        return cls(
            change=get_field(mapping, "change", str, ""),
            binding=Binding.from_dict(mapping.get("binding")),
        )


@dataclass(frozen=True)
class ShutdownEvent:
    change: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> ShutdownEvent:
        mapping = as_mapping(data, "shutdown event")
        return cls(change=get_field(mapping, "change", str, ""))


@dataclass(frozen=True)
class TickEvent:
    """Sent right after subscribing (``first``) and on every SEND_TICK."""

    first: bool = False
    payload: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> TickEvent:
        mapping = as_mapping(data, "tick event")
        return cls(
            first=get_field(mapping, "first", bool, False),
            payload=get_field(mapping, "payload", str, ""),
        )


@dataclass(frozen=True)
class BarStateUpdateEvent:
    id: str = ""
    visible_by_modifier: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> BarStateUpdateEvent:
        mapping = as_mapping(data, "bar state update event")
        return cls(
            id=get_field(mapping, "id", str, ""),
            visible_by_modifier=get_field(mapping, "visible_by_modifier", bool, False),
        )


# Deprecated name for the same event.
BarStatusUpdateEvent = BarStateUpdateEvent


@dataclass(frozen=True)
class InputEvent:
    change: str = ""
    input: Input = Input()

    @classmethod
    def from_dict(cls, data: Any) -> InputEvent:
        mapping = as_mapping(data, "input event")
        device = mapping.get("input")
        return cls(
            change=get_field(mapping, "change", str, ""),
            input=Input.from_dict(device) if device is not None else Input(),
        )


Event = Union[
    WorkspaceEvent,
    ModeEvent,
    WindowEvent,
    BarConfig,
    BindingEvent,
    ShutdownEvent,
    TickEvent,
    BarStateUpdateEvent,
    InputEvent,
]

EVENT_DECODERS: dict[EventType, Callable[[Any], Event]] = {
    EventType.WORKSPACE: WorkspaceEvent.from_dict,
    EventType.MODE: ModeEvent.from_dict,
    EventType.WINDOW: WindowEvent.from_dict,
    EventType.BARCONFIG_UPDATE: BarConfig.from_dict,
    EventType.BINDING: BindingEvent.from_dict,
    EventType.SHUTDOWN: ShutdownEvent.from_dict,
    EventType.TICK: TickEvent.from_dict,
    EventType.BAR_STATE_UPDATE: BarStateUpdateEvent.from_dict,
    EventType.INPUT: InputEvent.from_dict,
}


def decode_event(type_tag: int, data: Any) -> Event | None:
    """Decode parsed JSON ``data`` for the event ``type_tag``.

    Returns None for unknown tags.

    Raises:
        TypeError: If ``data`` does not have the shape of the event.
    """
    try:
        event_type = EventType(type_tag)
    except ValueError:
        return None
    return EVENT_DECODERS[event_type](data)
