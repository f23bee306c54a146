"""Frame codec for the sway IPC wire format.

Every frame is a 14 byte header followed by ``length`` bytes of UTF-8 JSON:

    +--------+----------------+----------------+
    | magic  | length (u32le) | type (u32le)   |
    | 6 byte | 4 byte         | 4 byte         |
    +--------+----------------+----------------+

Replies echo the request type; events carry the high bit (see ``EventType``).
"""

from __future__ import annotations

import asyncio
import logging
import struct
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import IntEnum

from ..errors import SwayConnectionError, SwayFramingError
from .context import Context, run_cancellable

_LOGGER = logging.getLogger(__name__)

MAGIC = b"i3-ipc"
HEADER = struct.Struct("<6sII")
HEADER_SIZE = HEADER.size  # 14

EVENT_BIT = 0x80000000
_MAX_LENGTH = 0xFFFFFFFF

Step = Callable[[Context, Awaitable[bytes]], Awaitable[bytes]]


class MessageType(IntEnum):
    """Request/reply message tags."""

    RUN_COMMAND = 0
    GET_WORKSPACES = 1
    SUBSCRIBE = 2
    GET_OUTPUTS = 3
    GET_TREE = 4
    GET_MARKS = 5
    GET_BAR_CONFIG = 6
    GET_VERSION = 7
    GET_BINDING_MODES = 8
    GET_CONFIG = 9
    SEND_TICK = 10
    # Added after the sequential range was fixed.
    GET_INPUTS = 100
    GET_SEATS = 101


class EventType(IntEnum):
    """Event message tags (high bit set)."""

    WORKSPACE = EVENT_BIT | 0x00
    MODE = EVENT_BIT | 0x02
    WINDOW = EVENT_BIT | 0x03
    BARCONFIG_UPDATE = EVENT_BIT | 0x04
    BINDING = EVENT_BIT | 0x05
    SHUTDOWN = EVENT_BIT | 0x06
    TICK = EVENT_BIT | 0x07
    BAR_STATE_UPDATE = EVENT_BIT | 0x14
    INPUT = EVENT_BIT | 0x15

    @property
    def event_name(self) -> str:
        """Name used in the subscribe payload."""
        return self.name.lower()

    @classmethod
    def from_name(cls, name: str) -> EventType:
        """Look up an event type by its subscribe name."""
        if name == "bar_status_update":
            # Deprecated alias kept by sway for old bars.
            return cls.BAR_STATE_UPDATE
        try:
            return cls[name.upper()]
        except KeyError as err:
            raise ValueError(f"Unknown event type: {name!r}") from err


def is_event(type_tag: int) -> bool:
    """Return True when the tag has the event bit set."""
    return bool(type_tag & EVENT_BIT)


def encode_header(payload_length: int, type_tag: int) -> bytes:
    """Pack a frame header for a payload of ``payload_length`` bytes."""
    if not 0 <= payload_length <= _MAX_LENGTH:
        raise SwayFramingError(f"Payload length out of range: {payload_length}")
    if not 0 <= type_tag <= _MAX_LENGTH:
        raise SwayFramingError(f"Message type out of range: {type_tag}")
    return HEADER.pack(MAGIC, payload_length, type_tag)


def decode_header(data: bytes) -> tuple[int, int]:
    """Unpack a frame header.

    Returns:
        ``(payload_length, type_tag)``

    Raises:
        SwayFramingError: If ``data`` is shorter than the header or the magic
            bytes do not match.
    """
    if len(data) < HEADER_SIZE:
        raise SwayFramingError(
            f"Short header: got {len(data)} of {HEADER_SIZE} bytes"
        )
    magic, length, type_tag = HEADER.unpack_from(data)
    if magic != MAGIC:
        raise SwayFramingError(f"Bad magic in frame header: {magic!r}")
    return length, type_tag


class PayloadReader:
    """Bounded reader over a single frame's payload.

    Reads never cross the frame boundary. Whatever the consumer leaves unread
    has to be drained before the stream is used for the next header.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        length: int,
        *,
        step: Step = run_cancellable,
    ) -> None:
        self._reader = reader
        self._step = step
        self._length = length
        self._remaining = length

    @property
    def length(self) -> int:
        return self._length

    @property
    def remaining(self) -> int:
        """Bytes still unread in this payload."""
        return self._remaining

    @property
    def exhausted(self) -> bool:
        return self._remaining == 0

    async def _read_exactly(self, n: int) -> bytes:
        try:
            data = await self._reader.readexactly(n)
        except asyncio.IncompleteReadError as err:
            self._remaining = 0
            raise SwayFramingError(
                f"Short payload read: got {len(err.partial)} of {n} bytes"
            ) from err
        except OSError as err:
            raise SwayConnectionError("Payload read failed") from err
        self._remaining -= len(data)
        return data

    async def read(self, ctx: Context, n: int = -1) -> bytes:
        """Read up to ``n`` bytes (all remaining when ``n`` < 0)."""
        if self._remaining == 0:
            return b""
        if n < 0 or n > self._remaining:
            n = self._remaining
        return await self._step(ctx, self._read_exactly(n))

    async def read_all(self, ctx: Context) -> bytes:
        """Read the rest of the payload."""
        return await self.read(ctx, -1)

    async def drain(self, ctx: Context) -> int:
        """Discard the unread remainder; returns the number of bytes dropped."""
        dropped = self._remaining
        if dropped:
            await self.read(ctx, dropped)
            _LOGGER.debug("Drained %d unread payload bytes", dropped)
        return dropped


@dataclass
class Message:
    """A received frame: its type tag and bounded payload."""

    type: int
    payload: PayloadReader = field(repr=False)

    @property
    def length(self) -> int:
        return self.payload.length

    @property
    def is_event(self) -> bool:
        return is_event(self.type)

    async def read_body(self, ctx: Context) -> bytes:
        """Consume and return the whole payload."""
        return await self.payload.read_all(ctx)
