"""Transport layer for the sway IPC client.

This package contains all socket I/O and wire protocol handling.

Components:
- framing: frame header codec, message type tags, bounded payload reader
- context: cancellation contexts and the cancellable call wrapper
- connection: Unix socket connection reading and writing frames
"""

from .connection import Connection, open_connection
from .context import Context, run_cancellable
from .framing import (
    HEADER_SIZE,
    MAGIC,
    EventType,
    Message,
    MessageType,
    PayloadReader,
    decode_header,
    encode_header,
    is_event,
)

__all__ = [
    "HEADER_SIZE",
    "MAGIC",
    "Connection",
    "Context",
    "EventType",
    "Message",
    "MessageType",
    "PayloadReader",
    "decode_header",
    "encode_header",
    "is_event",
    "open_connection",
    "run_cancellable",
]
