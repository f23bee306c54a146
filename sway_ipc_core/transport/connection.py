"""Unix socket connection carrying sway IPC frames."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

from ..errors import (
    SwayConnectionError,
    SwayFramingError,
    SwayNotConnectedError,
)
from .context import Context, run_cancellable
from .framing import HEADER_SIZE, Message, PayloadReader, decode_header, encode_header

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def _close_unstarted(operation: Awaitable[Any]) -> None:
    if inspect.iscoroutine(operation):
        operation.close()


def _close_streams(streams: tuple[asyncio.StreamReader, asyncio.StreamWriter]) -> None:
    streams[1].close()


async def open_connection(ctx: Context, path: str) -> Connection:
    """Open a Unix socket connection to the sway IPC endpoint.

    Args:
        ctx: Cancellation context for the connect step
        path: Filesystem path of the IPC socket

    Raises:
        SwayConnectionError: If the socket cannot be opened
        SwayCanceled: If ``ctx`` was cancelled first
        SwayDeadlineExceeded: If the ``ctx`` deadline passed first
    """
    try:
        reader, writer = await run_cancellable(
            ctx,
            asyncio.open_unix_connection(path),
            discard=_close_streams,
        )
    except OSError as err:
        raise SwayConnectionError(f"Failed to connect to {path}") from err
    _LOGGER.debug("Connected to %s", path)
    return Connection(reader, writer, path=path)


class Connection:
    """One open byte stream to the window manager.

    A connection has a single owner; reads and writes must not interleave
    across concurrent operations. Every step runs through the cancellable
    wrapper; once a step is abandoned (context fired) or fails with an I/O or
    framing error the stream position is unknown, so the connection closes
    itself and every later operation raises ``SwayNotConnectedError``. The
    same applies when the context has already fired while a reply to a
    written frame is still owed, and when the calling task is cancelled.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        *,
        path: str | None = None,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self.path = path
        self._closed = False
        self._broken: BaseException | None = None
        self._pending: PayloadReader | None = None
        # Set between a written frame and the header of its reply.
        self._awaiting_reply = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def broken(self) -> bool:
        """True when the connection was discarded after a failed step."""
        return self._broken is not None

    def _ensure_open(self) -> None:
        if self._broken is not None:
            raise SwayNotConnectedError(
                f"Connection discarded after error: {self._broken}"
            )
        if self._closed:
            raise SwayNotConnectedError("Connection is closed")

    def _discard(self, err: BaseException) -> None:
        if self._broken is None:
            self._broken = err
        if not self._closed:
            _LOGGER.debug("Discarding connection to %s: %s", self.path, err)
            self._closed = True
            self._writer.close()

    async def _step(self, ctx: Context, operation: Awaitable[T]) -> T:
        try:
            self._ensure_open()
        except SwayNotConnectedError:
            _close_unstarted(operation)
            raise
        err = ctx.err
        if err is not None:
            _close_unstarted(operation)
            # Unless a reply is still owed, the stream is frame aligned.
            if self._awaiting_reply:
                self._discard(err)
            raise err
        try:
            return await run_cancellable(ctx, operation)
        except BaseException as err:
            self._discard(err)
            raise

    async def _write(self, header: bytes, payload: bytes) -> None:
        try:
            self._writer.write(header)
            await self._writer.drain()
            if payload:
                self._writer.write(payload)
                await self._writer.drain()
        except OSError as err:
            raise SwayConnectionError("Frame write failed") from err

    async def _read_header(self) -> tuple[int, int]:
        try:
            data = await self._reader.readexactly(HEADER_SIZE)
        except asyncio.IncompleteReadError as err:
            if not err.partial:
                raise SwayConnectionError("Connection closed by peer") from err
            raise SwayFramingError(
                f"Short header read: got {len(err.partial)} of {HEADER_SIZE} bytes"
            ) from err
        except OSError as err:
            raise SwayConnectionError("Header read failed") from err
        return decode_header(data)

    async def write_frame(
        self,
        ctx: Context,
        type_tag: int,
        payload: bytes = b"",
    ) -> None:
        """Write one frame: the header, then the payload."""
        header = encode_header(len(payload), type_tag)
        await self._step(ctx, self._write(header, payload))
        self._awaiting_reply = True
        _LOGGER.debug("Sent frame type=%#x length=%d", type_tag, len(payload))

    async def read_frame(self, ctx: Context) -> Message:
        """Read one frame header and return the message with a bounded payload.

        Any unread remainder of the previous message is drained first so the
        stream stays frame aligned.
        """
        if self._pending is not None and not self._pending.exhausted:
            await self._pending.drain(ctx)
        length, type_tag = await self._step(ctx, self._read_header())
        self._awaiting_reply = False
        _LOGGER.debug("Received frame type=%#x length=%d", type_tag, length)
        self._pending = PayloadReader(self._reader, length, step=self._step)
        return Message(type=type_tag, payload=self._pending)

    async def close(self) -> None:
        """Close the socket. Safe to call repeatedly and after errors."""
        if self._closed:
            return
        self._closed = True
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError as err:
            _LOGGER.debug("Error while closing %s: %s", self.path, err)

    async def __aenter__(self) -> Connection:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
