"""Event subscription loop.

Subscribing turns a connection into an event stream: after the handshake
every frame sway sends on it is an event, never a reply. ``subscribe``
therefore always opens its own dedicated connection.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, NoReturn

from .client import SwayClient, decode_payload
from .config import ClientConfig
from .errors import SwayDecodeError
from .events import (
    BarConfigUpdateEvent,
    BarStateUpdateEvent,
    BindingEvent,
    Event,
    InputEvent,
    ModeEvent,
    ShutdownEvent,
    TickEvent,
    WindowEvent,
    WorkspaceEvent,
    decode_event,
)
from .transport.context import Context
from .transport.framing import EventType, Message

_LOGGER = logging.getLogger(__name__)

Callback = Callable[[Context, Any], Awaitable[None] | None]


@dataclass
class EventHandler:
    """Per-event-kind callbacks; leave a kind as None to ignore it.

    Callbacks receive ``(ctx, event)`` and may be plain functions or
    coroutine functions.

    Usage:
        async def on_window(ctx: Context, event: WindowEvent) -> None:
            if event.change == "focus":
                ...

        await subscribe(ctx, EventHandler(window=on_window), EventType.WINDOW)
    """

    workspace: Callable[[Context, WorkspaceEvent], Awaitable[None] | None] | None = None
    mode: Callable[[Context, ModeEvent], Awaitable[None] | None] | None = None
    window: Callable[[Context, WindowEvent], Awaitable[None] | None] | None = None
    barconfig_update: (
        Callable[[Context, BarConfigUpdateEvent], Awaitable[None] | None] | None
    ) = None
    binding: Callable[[Context, BindingEvent], Awaitable[None] | None] | None = None
    shutdown: Callable[[Context, ShutdownEvent], Awaitable[None] | None] | None = None
    tick: Callable[[Context, TickEvent], Awaitable[None] | None] | None = None
    bar_state_update: (
        Callable[[Context, BarStateUpdateEvent], Awaitable[None] | None] | None
    ) = None
    # Deprecated: use bar_state_update.
    bar_status_update: (
        Callable[[Context, BarStateUpdateEvent], Awaitable[None] | None] | None
    ) = None
    input: Callable[[Context, InputEvent], Awaitable[None] | None] | None = None

    def callback_for(self, event_type: EventType) -> Callback | None:
        """Return the registered callback for ``event_type``, if any."""
        if event_type is EventType.BAR_STATE_UPDATE:
            return self.bar_state_update or self.bar_status_update
        callback: Callback | None = getattr(self, event_type.event_name)
        return callback

    def event_types(self) -> list[EventType]:
        """Event types that have a callback registered."""
        return [t for t in EventType if self.callback_for(t) is not None]


def _event_types(event_types: tuple[EventType | str, ...]) -> list[EventType]:
    return [
        EventType.from_name(t) if isinstance(t, str) else EventType(t)
        for t in event_types
    ]


async def dispatch_event(ctx: Context, handler: EventHandler, message: Message) -> bool:
    """Consume one event frame and hand it to its callback.

    Returns:
        True if a callback ran.

    Raises:
        SwayConnectionError: If the payload cannot be read; the stream is no
            longer usable.
    """
    body = await message.read_body(ctx)

    try:
        event_type = EventType(message.type)
    except ValueError:
        _LOGGER.debug("Ignoring unknown event type %#x", message.type)
        return False

    callback = handler.callback_for(event_type)
    if callback is None:
        return False

    try:
        event: Event | None = decode_payload(
            body,
            lambda data: decode_event(message.type, data),
            f"{event_type.event_name} event",
        )
    except SwayDecodeError as err:
        _LOGGER.warning("Skipping malformed event: %s", err)
        return False

    try:
        result = callback(ctx, event)
        if inspect.iscoroutine(result):
            await result
    except Exception as err:
        _LOGGER.exception(
            "Error in %s event handler: %s", event_type.event_name, err
        )
    return True


async def subscribe(
    ctx: Context,
    handler: EventHandler,
    *event_types: EventType | str,
    socket_path: str | None = None,
    config: ClientConfig | None = None,
) -> NoReturn:
    """Subscribe to ``event_types`` and dispatch events until failure.

    With no ``event_types``, subscribes to every kind that has a callback.

    Opens a dedicated connection, performs the subscribe handshake and then
    reads events forever. This never returns normally: it ends by raising the
    error that stopped the stream (``SwayCanceled``/``SwayDeadlineExceeded``
    when ``ctx`` fires, ``SwayConnectionError`` when sway goes away).

    Events that fail to decode and callbacks that raise are logged and
    skipped; the stream carries on.

    Raises:
        SwaySubscriptionRejected: If the handshake reply is unsuccessful; no
            events are read in that case.
    """
    types = _event_types(event_types) or handler.event_types()
    client = await SwayClient.connect(ctx, socket_path, config=config)
    received = 0
    try:
        await client.send_subscribe(ctx, types)
        connection = client.connection
        while True:
            message = await connection.read_frame(ctx)
            received += 1
            await dispatch_event(ctx, handler, message)
    finally:
        _LOGGER.debug("Subscription ended after %d events", received)
        await client.close()
