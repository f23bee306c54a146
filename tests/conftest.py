"""Pytest configuration and fixtures for sway_ipc_core tests."""

from __future__ import annotations

import asyncio
import json
import shutil
import struct
import tempfile
from collections import defaultdict
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

MAGIC = b"i3-ipc"
SUBSCRIBE = 2


def frame(type_tag: int, payload: Any = b"") -> bytes:
    """Build a raw frame; non-bytes payloads are JSON encoded.

    Args:
        type_tag: Message or event type
        payload: Raw bytes, or a JSON-serializable value

    Returns:
        Header plus payload bytes
    """
    if not isinstance(payload, bytes):
        payload = json.dumps(payload).encode()
    return MAGIC + struct.pack("<II", len(payload), type_tag) + payload


class FakeSway:
    """In-process sway IPC peer listening on a Unix socket.

    Replies are queued per request type and sent in order; a request with no
    queued reply is answered with ``{}``. After a SUBSCRIBE reply the queued
    ``events`` frames are written and, if ``close_after_events`` is set, the
    connection is closed. With ``close_after_reply`` the connection is closed
    right after the first reply.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self.requests: list[tuple[int, bytes]] = []
        self.events: list[bytes] = []
        self.close_after_events = True
        self.close_after_reply = False
        self.silent = False
        self.connections = 0
        self._replies: dict[int, list[bytes]] = defaultdict(list)
        self._server: asyncio.AbstractServer | None = None
        self._writers: set[asyncio.StreamWriter] = set()

    def reply(self, type_tag: int, payload: Any) -> None:
        """Queue a reply for the next request of ``type_tag``."""
        if not isinstance(payload, bytes):
            payload = json.dumps(payload).encode()
        self._replies[type_tag].append(payload)

    def reply_raw(self, type_tag: int, raw: bytes) -> None:
        """Queue raw bytes (header included) as the reply for ``type_tag``."""
        self._replies[type_tag].append(b"RAW" + raw)

    def event(self, type_tag: int, payload: Any) -> None:
        self.events.append(frame(type_tag, payload))

    async def start(self) -> None:
        self._server = await asyncio.start_unix_server(self._handle, path=self.path)

    async def stop(self) -> None:
        for writer in list(self._writers):
            writer.close()
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()

    async def _handle(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        self.connections += 1
        self._writers.add(writer)
        try:
            while True:
                try:
                    header = await reader.readexactly(14)
                except asyncio.IncompleteReadError:
                    break
                length, type_tag = struct.unpack("<II", header[6:])
                payload = await reader.readexactly(length)
                self.requests.append((type_tag, payload))
                if self.silent:
                    continue

                queued = self._replies[type_tag]
                body = queued.pop(0) if queued else b"{}"
                if body.startswith(b"RAW"):
                    writer.write(body[3:])
                else:
                    writer.write(frame(type_tag, body))
                await writer.drain()
                if self.close_after_reply:
                    break

                if type_tag == SUBSCRIBE and json.loads(body).get("success"):
                    for event in self.events:
                        writer.write(event)
                    await writer.drain()
                    if self.close_after_events:
                        break
        except (ConnectionError, asyncio.IncompleteReadError):
            pass
        finally:
            self._writers.discard(writer)
            writer.close()


@pytest.fixture
def socket_dir() -> Any:
    """Short temporary directory for Unix sockets (paths are length limited)."""
    path = Path(tempfile.mkdtemp(prefix="sway"))
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest_asyncio.fixture
async def fake_sway(socket_dir: Path) -> AsyncIterator[FakeSway]:
    """Running fake sway peer."""
    server = FakeSway(str(socket_dir / "ipc.sock"))
    await server.start()
    yield server
    await server.stop()
