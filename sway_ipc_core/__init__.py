"""Asyncio client for the sway window manager IPC protocol."""

__version__ = "0.1.0"

from .client import SwayClient
from .config import ClientConfig, load_config, resolve_config, resolve_socket_path
from .errors import (
    SwayCanceled,
    SwayClientError,
    SwayCommandError,
    SwayConfigError,
    SwayConnectionError,
    SwayContextError,
    SwayDeadlineExceeded,
    SwayDecodeError,
    SwayFramingError,
    SwayNotConnectedError,
    SwaySubscriptionRejected,
)
from .events import (
    BarConfigUpdateEvent,
    BarStateUpdateEvent,
    BarStatusUpdateEvent,
    BindingEvent,
    InputEvent,
    ModeEvent,
    ShutdownEvent,
    TickEvent,
    WindowEvent,
    WorkspaceEvent,
    decode_event,
)
from .subscribe import EventHandler, subscribe
from .transport import Context, EventType, MessageType
from .tree import Node, focused_node
from .types import (
    BarConfig,
    Binding,
    Config,
    Input,
    LibInput,
    Output,
    OutputMode,
    Rect,
    RunCommandReply,
    Seat,
    TickReply,
    Version,
    WindowProperties,
    Workspace,
)

__all__ = [
    "BarConfig",
    "BarConfigUpdateEvent",
    "BarStateUpdateEvent",
    "BarStatusUpdateEvent",
    "Binding",
    "BindingEvent",
    "ClientConfig",
    "Config",
    "Context",
    "EventHandler",
    "EventType",
    "Input",
    "InputEvent",
    "LibInput",
    "MessageType",
    "ModeEvent",
    "Node",
    "Output",
    "OutputMode",
    "Rect",
    "RunCommandReply",
    "Seat",
    "ShutdownEvent",
    "SwayCanceled",
    "SwayClient",
    "SwayClientError",
    "SwayCommandError",
    "SwayConfigError",
    "SwayConnectionError",
    "SwayContextError",
    "SwayDeadlineExceeded",
    "SwayDecodeError",
    "SwayFramingError",
    "SwayNotConnectedError",
    "SwaySubscriptionRejected",
    "TickEvent",
    "TickReply",
    "Version",
    "WindowEvent",
    "WindowProperties",
    "Workspace",
    "WorkspaceEvent",
    "__version__",
    "decode_event",
    "focused_node",
    "load_config",
    "resolve_config",
    "resolve_socket_path",
    "subscribe",
]
