"""Client error types for sway IPC interactions."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import RunCommandReply


class SwayClientError(Exception):
    """Base error for sway IPC client failures."""


class SwayNotConnectedError(SwayClientError):
    """Operation attempted without a live connection."""


class SwayConnectionError(SwayClientError):
    """Socket I/O with the window manager failed."""


class SwayFramingError(SwayConnectionError):
    """Frame header magic mismatch or short read of a header/payload."""


class SwayContextError(SwayClientError):
    """The caller's context fired before the I/O step completed."""


class SwayCanceled(SwayContextError):
    """The context was cancelled."""


class SwayDeadlineExceeded(SwayContextError):
    """The context deadline passed."""


class SwayDecodeError(SwayClientError):
    """Payload JSON did not match the expected reply or event shape."""


class SwaySubscriptionRejected(SwayClientError):
    """The subscribe handshake reply reported success=false."""


class SwayConfigError(SwayClientError):
    """Client configuration could not be resolved."""


class SwayCommandError(SwayClientError):
    """One or more statements of a RUN_COMMAND batch failed.

    The complete reply list is kept on ``replies`` so callers can still see
    which statements succeeded.
    """

    def __init__(
        self,
        command: str,
        replies: Sequence[RunCommandReply],
    ) -> None:
        self.command = command
        self.replies = list(replies)
        self.failures = [r.error or "" for r in self.replies if not r.success]
        super().__init__(
            "; ".join(
                f"command {command!r} unsuccessful: {failure}"
                for failure in self.failures
            )
        )
