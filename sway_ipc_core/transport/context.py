"""Cancellation contexts and the cancellable call wrapper.

A ``Context`` carries a cancellation signal and an optional deadline. Every
blocking protocol step (connect, write frame, read header, read payload) is
run through ``run_cancellable`` which races the step against the context.

IMPORTANT: cancellation does not interrupt the I/O. When the context fires
first, the caller gets ``SwayCanceled``/``SwayDeadlineExceeded`` right away
while the I/O task keeps running in the background until it completes or
fails on its own. The stream it was using may be left mid-frame, so a
connection that saw a cancelled step must be closed and never reused.
``Connection`` does this automatically.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
import weakref
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from ..errors import SwayCanceled, SwayContextError, SwayDeadlineExceeded

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

# Abandoned I/O tasks are kept alive here until they finish.
_ABANDONED: set[asyncio.Task[Any]] = set()


class Context:
    """Cancellation signal with an optional deadline.

    Usage:
        ctx = Context.with_timeout(2.0)
        tree = await client.get_tree(ctx)

        ctx = Context.with_cancel()
        loop.add_signal_handler(signal.SIGINT, ctx.cancel)
    """

    def __init__(
        self,
        *,
        deadline: float | None = None,
        parent: Context | None = None,
    ) -> None:
        """Initialize context.

        Args:
            deadline: Absolute ``time.monotonic()`` deadline, or None
            parent: Context whose cancellation and deadline are inherited
        """
        if parent is not None and parent.deadline is not None:
            deadline = (
                parent.deadline if deadline is None else min(deadline, parent.deadline)
            )
        self._deadline = deadline
        self._parent = parent
        self._err: SwayContextError | None = None
        self._waiters: set[asyncio.Future[None]] = set()
        self._children: weakref.WeakSet[Context] = weakref.WeakSet()

        if parent is not None:
            if parent.err is not None:
                self._err = parent.err
            else:
                parent._children.add(self)

    @classmethod
    def background(cls) -> Context:
        """Context that never fires."""
        return cls()

    @classmethod
    def with_timeout(cls, timeout: float, parent: Context | None = None) -> Context:
        """Context that expires ``timeout`` seconds from now."""
        return cls(deadline=time.monotonic() + timeout, parent=parent)

    @classmethod
    def with_cancel(cls, parent: Context | None = None) -> Context:
        """Context that only fires on ``cancel()`` (or when the parent fires)."""
        return cls(parent=parent)

    def child(self, *, timeout: float | None = None) -> Context:
        """Derive a context that also fires when this one does."""
        if timeout is None:
            return Context(parent=self)
        return Context.with_timeout(timeout, parent=self)

    @property
    def deadline(self) -> float | None:
        return self._deadline

    def remaining(self) -> float | None:
        """Seconds left until the deadline, None when there is none."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    @property
    def err(self) -> SwayContextError | None:
        """Why the context fired, or None while it is still live."""
        if self._err is None and self._deadline is not None:
            if time.monotonic() >= self._deadline:
                self._fire(SwayDeadlineExceeded("context deadline exceeded"))
        return self._err

    def done(self) -> bool:
        return self.err is not None

    def cancel(self) -> None:
        """Fire the context (and its children). Idempotent."""
        if self._err is None:
            self._fire(SwayCanceled("context canceled"))

    def _fire(self, err: SwayContextError) -> None:
        if self._err is not None:
            return
        self._err = err
        for waiter in list(self._waiters):
            if not waiter.done():
                waiter.set_result(None)
        for child in list(self._children):
            child._fire(err)

    async def wait(self) -> None:
        """Block until the context fires."""
        if self.err is not None:
            return
        loop = asyncio.get_running_loop()
        waiter: asyncio.Future[None] = loop.create_future()
        self._waiters.add(waiter)
        handle: asyncio.TimerHandle | None = None
        remaining = self.remaining()
        if remaining is not None:
            handle = loop.call_later(
                remaining,
                self._fire,
                SwayDeadlineExceeded("context deadline exceeded"),
            )
        try:
            await waiter
        finally:
            self._waiters.discard(waiter)
            if handle is not None:
                handle.cancel()

    def __repr__(self) -> str:
        return f"Context(deadline={self._deadline!r}, err={self._err!r})"


def _abandon(
    task: asyncio.Task[T],
    discard: Callable[[T], None] | None = None,
) -> None:
    def _reap(finished: asyncio.Task[T]) -> None:
        _ABANDONED.discard(finished)
        if finished.cancelled():
            return
        exc = finished.exception()
        if exc is not None:
            _LOGGER.debug("Abandoned I/O step finished with error: %s", exc)
        elif discard is not None:
            discard(finished.result())

    _ABANDONED.add(task)
    task.add_done_callback(_reap)


def abandoned_count() -> int:
    """Number of abandoned I/O steps still running."""
    return len(_ABANDONED)


async def run_cancellable(
    ctx: Context,
    operation: Awaitable[T],
    *,
    discard: Callable[[T], None] | None = None,
) -> T:
    """Run ``operation`` to completion unless ``ctx`` fires first.

    Whichever finishes first decides the outcome. If the context wins, its
    error is raised immediately and the operation is left running (not
    cancelled). If the context already fired on entry, the operation is never
    started.

    Args:
        ctx: Cancellation context to race against
        operation: The blocking I/O step
        discard: Called with the result if an abandoned operation later
            succeeds (e.g. to close a socket nobody is waiting for)

    Raises:
        SwayCanceled: The context was cancelled first.
        SwayDeadlineExceeded: The context deadline passed first.
    """
    err = ctx.err
    if err is not None:
        if inspect.iscoroutine(operation):
            operation.close()
        raise err

    task = asyncio.ensure_future(operation)
    waiter = asyncio.ensure_future(ctx.wait())
    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not task.done():
            _abandon(task, discard)

    if task.done():
        return task.result()
    raise ctx.err or SwayCanceled("context canceled")
