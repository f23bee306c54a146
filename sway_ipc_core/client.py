"""Request/reply client for the sway IPC socket."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable
from dataclasses import replace
from typing import Any, TypeVar

from .config import ClientConfig, resolve_socket_path
from .errors import (
    SwayClientError,
    SwayCommandError,
    SwayDecodeError,
    SwayNotConnectedError,
    SwaySubscriptionRejected,
)
from .transport.connection import Connection, open_connection
from .transport.context import Context
from .transport.framing import EventType, Message, MessageType
from .tree import Node, focused_node
from .types import (
    BarConfig,
    Config,
    Input,
    Output,
    RunCommandReply,
    Seat,
    TickReply,
    Version,
    Workspace,
    as_list,
    as_mapping,
    get_field,
)

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def _list_of(parse: Callable[[Any], T]) -> Callable[[Any], list[T]]:
    def parse_list(data: Any) -> list[T]:
        return [parse(item) for item in as_list(data, "reply")]

    return parse_list


def _strings(data: Any) -> list[str]:
    values = as_list(data, "reply")
    if not all(isinstance(value, str) for value in values):
        raise TypeError("reply: expected array of strings")
    return values


class SwayClient:
    """Client for one sway IPC connection.

    At most one request may be outstanding per connection: the protocol has
    no request IDs, so replies are matched to requests by order alone. Run
    independent requests concurrently on separate clients.

    Usage:
        async with await SwayClient.connect(ctx) as client:
            tree = await client.get_tree(ctx)
            await client.run_command(ctx, "workspace 2")
    """

    def __init__(
        self,
        connection: Connection | None = None,
        *,
        config: ClientConfig | None = None,
    ) -> None:
        self._conn = connection
        self._config = config or ClientConfig()
        self._in_flight = False

    @classmethod
    async def connect(
        cls,
        ctx: Context,
        socket_path: str | None = None,
        *,
        config: ClientConfig | None = None,
    ) -> SwayClient:
        """Open a connection to the sway IPC socket.

        Args:
            ctx: Cancellation context for the connect step
            socket_path: Explicit socket path (overrides config and $SWAYSOCK)
            config: Client settings

        Raises:
            SwayConfigError: If no socket path can be resolved
            SwayConnectionError: If the socket cannot be opened
        """
        path = resolve_socket_path(socket_path, config)
        resolved = replace(config or ClientConfig(), socket_path=path)
        connect_ctx = ctx
        if resolved.connect_timeout is not None:
            connect_ctx = ctx.child(timeout=resolved.connect_timeout)
        _LOGGER.info("Connecting to sway IPC at %s", path)
        connection = await open_connection(connect_ctx, path)
        return cls(connection, config=resolved)

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def connection(self) -> Connection:
        if self._conn is None:
            raise SwayNotConnectedError("not connected")
        return self._conn

    @property
    def is_connected(self) -> bool:
        return self._conn is not None and not self._conn.closed

    async def close(self) -> None:
        """Close the connection."""
        if self._conn is not None:
            await self._conn.close()

    async def __aenter__(self) -> SwayClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _call_context(self, ctx: Context) -> Context:
        if self._config.timeout is None:
            return ctx
        return ctx.child(timeout=self._config.timeout)

    # -------------------------------------------------------------------------
    # Round trip
    # -------------------------------------------------------------------------

    async def call(
        self,
        ctx: Context,
        message_type: int,
        payload: bytes = b"",
    ) -> Message:
        """Send one request frame and read exactly one reply frame.

        The reply payload is returned unread; consume it (or let the next
        read drain it) before issuing another request.

        Raises:
            SwayNotConnectedError: If there is no live connection
            SwayConnectionError: On socket or framing failure
            SwayContextError: If ``ctx`` fired first; the connection is
                discarded since the abandoned I/O may still be running
        """
        if self._conn is None or self._conn.closed:
            raise SwayNotConnectedError("not connected")
        if self._in_flight:
            raise SwayClientError(
                "A request is already outstanding on this connection"
            )
        self._in_flight = True
        try:
            await self._conn.write_frame(ctx, message_type, payload)
            return await self._conn.read_frame(ctx)
        finally:
            self._in_flight = False

    async def _request(
        self,
        ctx: Context,
        message_type: MessageType,
        parse: Callable[[Any], T],
        payload: bytes = b"",
    ) -> T:
        call_ctx = self._call_context(ctx)
        _LOGGER.debug("Request %s (%d bytes)", message_type.name, len(payload))
        message = await self.call(call_ctx, message_type, payload)
        body = await message.read_body(call_ctx)
        return decode_payload(body, parse, message_type.name)

    # -------------------------------------------------------------------------
    # Typed operations
    # -------------------------------------------------------------------------

    async def run_command(
        self,
        ctx: Context,
        command: str,
        *,
        check: bool = True,
    ) -> list[RunCommandReply]:
        """Run ``command`` (one or more ``;``/``,`` separated statements).

        Returns:
            One reply per statement, in statement order.

        Raises:
            SwayCommandError: If ``check`` is set and any statement failed.
                The error lists every failure and carries all ``replies``.
        """
        replies = await self._request(
            ctx,
            MessageType.RUN_COMMAND,
            _list_of(RunCommandReply.from_dict),
            command.encode(),
        )
        if any(not reply.success for reply in replies):
            err = SwayCommandError(command, replies)
            _LOGGER.debug("%s", err)
            if check:
                raise err
        return replies

    async def get_workspaces(self, ctx: Context) -> list[Workspace]:
        return await self._request(
            ctx, MessageType.GET_WORKSPACES, _list_of(Workspace.from_dict)
        )

    async def get_outputs(self, ctx: Context) -> list[Output]:
        return await self._request(
            ctx, MessageType.GET_OUTPUTS, _list_of(Output.from_dict)
        )

    async def get_tree(self, ctx: Context) -> Node:
        """Fetch the full layout tree, rooted at the "root" node."""
        return await self._request(ctx, MessageType.GET_TREE, Node.from_dict)

    async def get_focused_node(self, ctx: Context) -> Node | None:
        """Fetch the tree and return its focused node."""
        return focused_node(await self.get_tree(ctx))

    async def get_marks(self, ctx: Context) -> list[str]:
        return await self._request(ctx, MessageType.GET_MARKS, _strings)

    async def get_bar_ids(self, ctx: Context) -> list[str]:
        """List configured bar IDs (GET_BAR_CONFIG with no payload)."""
        return await self._request(ctx, MessageType.GET_BAR_CONFIG, _strings)

    async def get_bar_config(self, ctx: Context, bar_id: str) -> BarConfig:
        return await self._request(
            ctx, MessageType.GET_BAR_CONFIG, BarConfig.from_dict, bar_id.encode()
        )

    async def get_version(self, ctx: Context) -> Version:
        return await self._request(ctx, MessageType.GET_VERSION, Version.from_dict)

    async def get_binding_modes(self, ctx: Context) -> list[str]:
        return await self._request(ctx, MessageType.GET_BINDING_MODES, _strings)

    async def get_config(self, ctx: Context) -> Config:
        return await self._request(ctx, MessageType.GET_CONFIG, Config.from_dict)

    async def send_tick(self, ctx: Context, payload: str = "") -> TickReply:
        """Broadcast a tick event carrying ``payload`` to tick subscribers."""
        return await self._request(
            ctx, MessageType.SEND_TICK, TickReply.from_dict, payload.encode()
        )

    async def get_inputs(self, ctx: Context) -> list[Input]:
        return await self._request(
            ctx, MessageType.GET_INPUTS, _list_of(Input.from_dict)
        )

    async def get_seats(self, ctx: Context) -> list[Seat]:
        return await self._request(ctx, MessageType.GET_SEATS, _list_of(Seat.from_dict))

    async def send_subscribe(
        self,
        ctx: Context,
        event_types: Iterable[EventType],
    ) -> None:
        """Subscribe this connection to ``event_types``.

        After a successful subscribe the connection only delivers event
        frames; do not issue further requests on it.

        Raises:
            SwaySubscriptionRejected: If sway replied with success=false.
        """
        names = [event_type.event_name for event_type in event_types]
        reply = await self._request(
            ctx,
            MessageType.SUBSCRIBE,
            lambda data: get_field(as_mapping(data, "reply"), "success", bool, False),
            json.dumps(names).encode(),
        )
        if not reply:
            raise SwaySubscriptionRejected(f"subscribe unsuccessful: {names}")
        _LOGGER.info("Subscribed to %s", ", ".join(names) or "no events")


def decode_payload(body: bytes, parse: Callable[[Any], T], what: str) -> T:
    """Parse a JSON payload and build its typed record.

    Raises:
        SwayDecodeError: If the payload is not valid JSON of the right shape.
    """
    try:
        data = json.loads(body)
    except ValueError as err:
        raise SwayDecodeError(f"Invalid JSON in {what} payload") from err
    try:
        return parse(data)
    except (TypeError, ValueError, KeyError) as err:
        raise SwayDecodeError(f"Unexpected {what} payload: {err}") from err
