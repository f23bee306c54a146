"""Reply records returned by the sway IPC query operations.

Every record is a frozen dataclass built from the decoded JSON reply by its
``from_dict`` constructor. Absent keys fall back to empty values, matching
what sway omits; keys of the wrong JSON type raise ``TypeError`` which the
client reports as ``SwayDecodeError``.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

T = TypeVar("T")


def as_mapping(data: Any, what: str) -> Mapping[str, Any]:
    """Return ``data`` if it is a JSON object, else raise TypeError."""
    if not isinstance(data, Mapping):
        raise TypeError(f"{what}: expected object, got {type(data).__name__}")
    return data


def as_list(data: Any, what: str) -> list[Any]:
    """Return ``data`` if it is a JSON array (null counts as empty)."""
    if data is None:
        return []
    if not isinstance(data, list):
        raise TypeError(f"{what}: expected array, got {type(data).__name__}")
    return data


def get_field(data: Mapping[str, Any], key: str, kind: type[T], default: T) -> T:
    """Read an optional scalar field, checking its JSON type."""
    value = data.get(key)
    if value is None:
        return default
    if kind is float and isinstance(value, int) and not isinstance(value, bool):
        return float(value)  # type: ignore[return-value]
    if kind is int and isinstance(value, bool):
        raise TypeError(f"{key}: expected int, got bool")
    if not isinstance(value, kind):
        raise TypeError(
            f"{key}: expected {kind.__name__}, got {type(value).__name__}"
        )
    return value


def get_optional(data: Mapping[str, Any], key: str, kind: type[T]) -> T | None:
    """Like ``get_field`` but keeps null/absent as None."""
    if data.get(key) is None:
        return None
    return get_field(data, key, kind, None)  # type: ignore[arg-type]


def get_strings(data: Mapping[str, Any], key: str) -> tuple[str, ...]:
    values = as_list(data.get(key), key)
    for value in values:
        if not isinstance(value, str):
            raise TypeError(f"{key}: expected array of strings")
    return tuple(values)


def _from_flat_dict(cls: type[T], data: Any, kind: type) -> T:
    """Build a record whose fields all share one JSON scalar type."""
    mapping = as_mapping(data, cls.__name__)
    defaults = {int: 0, str: "", float: 0.0}
    return cls(
        **{
            f.name: get_field(mapping, f.name, kind, defaults[kind])
            for f in dataclasses.fields(cls)  # type: ignore[arg-type]
        }
    )


@dataclass(frozen=True)
class Rect:
    """Geometry rectangle in layout pixels."""

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> Rect:
        if data is None:
            return cls()
        return _from_flat_dict(cls, data, int)


@dataclass(frozen=True)
class WindowProperties:
    """X11 window properties (xwayland views only)."""

    title: str = ""
    window_class: str = ""
    instance: str = ""
    window_role: str = ""
    window_type: str = ""
    transient_for: int | None = None

    @classmethod
    def from_dict(cls, data: Any) -> WindowProperties:
        mapping = as_mapping(data, "window_properties")
        return cls(
            title=get_field(mapping, "title", str, ""),
            window_class=get_field(mapping, "class", str, ""),
            instance=get_field(mapping, "instance", str, ""),
            window_role=get_field(mapping, "window_role", str, ""),
            window_type=get_field(mapping, "window_type", str, ""),
            transient_for=get_optional(mapping, "transient_for", int),
        )


@dataclass(frozen=True)
class RunCommandReply:
    """Outcome of one statement in a RUN_COMMAND batch."""

    success: bool = False
    error: str = ""
    parse_error: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> RunCommandReply:
        mapping = as_mapping(data, "command reply")
        return cls(
            success=get_field(mapping, "success", bool, False),
            error=get_field(mapping, "error", str, ""),
            parse_error=get_field(mapping, "parse_error", bool, False),
        )


@dataclass(frozen=True)
class Workspace:
    num: int = 0
    name: str = ""
    visible: bool = False
    focused: bool = False
    urgent: bool = False
    rect: Rect = Rect()
    output: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> Workspace:
        mapping = as_mapping(data, "workspace")
        return cls(
            num=get_field(mapping, "num", int, 0),
            name=get_field(mapping, "name", str, ""),
            visible=get_field(mapping, "visible", bool, False),
            focused=get_field(mapping, "focused", bool, False),
            urgent=get_field(mapping, "urgent", bool, False),
            rect=Rect.from_dict(mapping.get("rect")),
            output=get_field(mapping, "output", str, ""),
        )


@dataclass(frozen=True)
class OutputMode:
    """Output mode; ``refresh`` is in Hz (sway reports mHz)."""

    width: int = 0
    height: int = 0
    refresh: float = 0.0

    @classmethod
    def from_dict(cls, data: Any) -> OutputMode:
        if data is None:
            return cls()
        mapping = as_mapping(data, "output mode")
        return cls(
            width=get_field(mapping, "width", int, 0),
            height=get_field(mapping, "height", int, 0),
            refresh=get_field(mapping, "refresh", float, 0.0) / 1000,
        )


@dataclass(frozen=True)
class Output:
    name: str = ""
    make: str = ""
    model: str = ""
    serial: str = ""
    active: bool = False
    dpms: bool = False
    primary: bool = False
    scale: float = 0.0
    subpixel_hinting: str = ""
    transform: str = ""
    current_workspace: str = ""
    modes: tuple[OutputMode, ...] = ()
    current_mode: OutputMode = OutputMode()
    rect: Rect = Rect()

    @classmethod
    def from_dict(cls, data: Any) -> Output:
        mapping = as_mapping(data, "output")
        return cls(
            name=get_field(mapping, "name", str, ""),
            make=get_field(mapping, "make", str, ""),
            model=get_field(mapping, "model", str, ""),
            serial=get_field(mapping, "serial", str, ""),
            active=get_field(mapping, "active", bool, False),
            dpms=get_field(mapping, "dpms", bool, False),
            primary=get_field(mapping, "primary", bool, False),
            scale=get_field(mapping, "scale", float, 0.0),
            subpixel_hinting=get_field(mapping, "subpixel_hinting", str, ""),
            transform=get_field(mapping, "transform", str, ""),
            current_workspace=get_field(mapping, "current_workspace", str, ""),
            modes=tuple(
                OutputMode.from_dict(m) for m in as_list(mapping.get("modes"), "modes")
            ),
            current_mode=OutputMode.from_dict(mapping.get("current_mode")),
            rect=Rect.from_dict(mapping.get("rect")),
        )


@dataclass(frozen=True)
class BarConfigGaps:
    top: int = 0
    right: int = 0
    bottom: int = 0
    left: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> BarConfigGaps:
        if data is None:
            return cls()
        return _from_flat_dict(cls, data, int)


@dataclass(frozen=True)
class BarConfigColors:
    """Bar colors as ``#RRGGBBAA`` strings."""

    background: str = ""
    statusline: str = ""
    separator: str = ""
    focused_background: str = ""
    focused_statusline: str = ""
    focused_separator: str = ""
    focused_workspace_text: str = ""
    focused_workspace_bg: str = ""
    focused_workspace_border: str = ""
    active_workspace_text: str = ""
    active_workspace_bg: str = ""
    active_workspace_border: str = ""
    inactive_workspace_text: str = ""
    inactive_workspace_bg: str = ""
    inactive_workspace_border: str = ""
    urgent_workspace_text: str = ""
    urgent_workspace_bg: str = ""
    urgent_workspace_border: str = ""
    binding_mode_text: str = ""
    binding_mode_bg: str = ""
    binding_mode_border: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> BarConfigColors:
        if data is None:
            return cls()
        return _from_flat_dict(cls, data, str)


@dataclass(frozen=True)
class BarConfig:
    id: str = ""
    mode: str = ""
    position: str = ""
    status_command: str = ""
    font: str = ""
    workspace_buttons: bool = False
    workspace_min_width: int = 0
    binding_mode_indicator: bool = False
    verbose: bool = False
    colors: BarConfigColors = BarConfigColors()
    gaps: BarConfigGaps = BarConfigGaps()
    bar_height: int = 0
    status_padding: int = 0
    status_edge_padding: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> BarConfig:
        mapping = as_mapping(data, "bar config")
        return cls(
            id=get_field(mapping, "id", str, ""),
            mode=get_field(mapping, "mode", str, ""),
            position=get_field(mapping, "position", str, ""),
            status_command=get_field(mapping, "status_command", str, ""),
            font=get_field(mapping, "font", str, ""),
            workspace_buttons=get_field(mapping, "workspace_buttons", bool, False),
            workspace_min_width=get_field(mapping, "workspace_min_width", int, 0),
            binding_mode_indicator=get_field(
                mapping, "binding_mode_indicator", bool, False
            ),
            verbose=get_field(mapping, "verbose", bool, False),
            colors=BarConfigColors.from_dict(mapping.get("colors")),
            gaps=BarConfigGaps.from_dict(mapping.get("gaps")),
            bar_height=get_field(mapping, "bar_height", int, 0),
            status_padding=get_field(mapping, "status_padding", int, 0),
            status_edge_padding=get_field(mapping, "status_edge_padding", int, 0),
        )


@dataclass(frozen=True)
class Version:
    major: int = 0
    minor: int = 0
    patch: int = 0
    human_readable: str = ""
    loaded_config_file_name: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> Version:
        mapping = as_mapping(data, "version")
        return cls(
            major=get_field(mapping, "major", int, 0),
            minor=get_field(mapping, "minor", int, 0),
            patch=get_field(mapping, "patch", int, 0),
            human_readable=get_field(mapping, "human_readable", str, ""),
            loaded_config_file_name=get_field(
                mapping, "loaded_config_file_name", str, ""
            ),
        )


@dataclass(frozen=True)
class Config:
    """Text of the last loaded sway config."""

    config: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> Config:
        return cls(config=get_field(as_mapping(data, "config"), "config", str, ""))


@dataclass(frozen=True)
class TickReply:
    success: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> TickReply:
        mapping = as_mapping(data, "tick reply")
        return cls(success=get_field(mapping, "success", bool, False))


@dataclass(frozen=True)
class LibInput:
    """libinput settings of an input device."""

    send_events: str = ""
    tap: str = ""
    tap_button_map: str = ""
    tap_drag: str = ""
    tap_drag_lock: str = ""
    accel_speed: float = 0.0
    accel_profile: str = ""
    natural_scroll: str = ""
    left_handed: str = ""
    click_method: str = ""
    middle_emulation: str = ""
    scroll_method: str = ""
    scroll_button: int = 0
    dwt: str = ""
    calibration_matrix: tuple[float, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> LibInput:
        mapping = as_mapping(data, "libinput")
        values: dict[str, Any] = {}
        for f in dataclasses.fields(cls):
            if f.name == "calibration_matrix":
                matrix = as_list(mapping.get(f.name), f.name)
                values[f.name] = tuple(float(v) for v in matrix)
            elif f.name == "accel_speed":
                values[f.name] = get_field(mapping, f.name, float, 0.0)
            elif f.name == "scroll_button":
                values[f.name] = get_field(mapping, f.name, int, 0)
            else:
                values[f.name] = get_field(mapping, f.name, str, "")
        return cls(**values)


@dataclass(frozen=True)
class Input:
    identifier: str = ""
    name: str = ""
    vendor: int = 0
    product: int = 0
    type: str = ""
    xkb_active_layout_name: str | None = None
    xkb_layout_names: tuple[str, ...] = ()
    xkb_active_layout_index: int | None = None
    libinput: LibInput | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Input:
        mapping = as_mapping(data, "input")
        libinput = mapping.get("libinput")
        return cls(
            identifier=get_field(mapping, "identifier", str, ""),
            name=get_field(mapping, "name", str, ""),
            vendor=get_field(mapping, "vendor", int, 0),
            product=get_field(mapping, "product", int, 0),
            type=get_field(mapping, "type", str, ""),
            xkb_active_layout_name=get_optional(mapping, "xkb_active_layout_name", str),
            xkb_layout_names=get_strings(mapping, "xkb_layout_names"),
            xkb_active_layout_index=get_optional(
                mapping, "xkb_active_layout_index", int
            ),
            libinput=LibInput.from_dict(libinput) if libinput is not None else None,
        )


@dataclass(frozen=True)
class Seat:
    name: str = ""
    capabilities: int = 0
    focus: int = 0
    devices: tuple[Input, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> Seat:
        mapping = as_mapping(data, "seat")
        return cls(
            name=get_field(mapping, "name", str, ""),
            capabilities=get_field(mapping, "capabilities", int, 0),
            focus=get_field(mapping, "focus", int, 0),
            devices=tuple(
                Input.from_dict(d) for d in as_list(mapping.get("devices"), "devices")
            ),
        )


@dataclass(frozen=True)
class Binding:
    """The binding that triggered a binding event."""

    command: str = ""
    event_state_mask: tuple[str, ...] = ()
    input_code: int = 0
    symbol: str | None = None
    input_type: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> Binding:
        if data is None:
            return cls()
        mapping = as_mapping(data, "binding")
        return cls(
            command=get_field(mapping, "command", str, ""),
            event_state_mask=get_strings(mapping, "event_state_mask"),
            input_code=get_field(mapping, "input_code", int, 0),
            symbol=get_optional(mapping, "symbol", str),
            input_type=get_field(mapping, "input_type", str, ""),
        )
