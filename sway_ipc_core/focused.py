"""sway-focused: switch xkb options depending on the focused application.

When the focused view is the configured terminal (``kitty`` by default) the
xkb options are cleared; for every other view ``altwin:ctrl_win`` is set.
Runs until SIGINT/SIGTERM.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from collections.abc import Awaitable, Callable, Sequence

from .client import SwayClient
from .config import ClientConfig, load_config
from .errors import SwayClientError, SwayContextError
from .events import WindowEvent
from .subscribe import EventHandler, subscribe
from .transport.context import Context
from .transport.framing import EventType
from .tree import Node

_LOGGER = logging.getLogger(__name__)

DEFAULT_APP_ID = "kitty"


def xkb_options_for(node: Node, app_id: str = DEFAULT_APP_ID) -> str:
    """xkb options to apply while ``node`` is focused."""
    if node.app_id == app_id:
        return "none"
    return "altwin:ctrl_win"


def focus_handler(
    client: SwayClient, app_id: str = DEFAULT_APP_ID
) -> Callable[[Context, Node | None], Awaitable[None]]:
    """Build the callback applied to every newly focused node."""

    async def on_focus(ctx: Context, node: Node | None) -> None:
        if node is None:
            return
        command = f"input '*' xkb_options {xkb_options_for(node, app_id)}"
        try:
            await client.run_command(ctx, command)
        except SwayClientError as err:
            _LOGGER.error("%s", err)

    return on_focus


async def run(
    ctx: Context,
    *,
    socket_path: str | None = None,
    config: ClientConfig | None = None,
    app_id: str = DEFAULT_APP_ID,
) -> None:
    """Apply the focus policy now and after every window focus event."""
    async with await SwayClient.connect(ctx, socket_path, config=config) as client:
        on_focus = focus_handler(client, app_id)
        await on_focus(ctx, await client.get_focused_node(ctx))

        async def on_window(ctx: Context, event: WindowEvent) -> None:
            if event.change != "focus":
                return
            await on_focus(ctx, event.container.focused_node())

        await subscribe(
            ctx,
            EventHandler(window=on_window),
            EventType.WINDOW,
            config=client.config,
        )


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sway-focused",
        description="Switch xkb options depending on the focused application.",
    )
    parser.add_argument("--socket", help="sway IPC socket path (default: $SWAYSOCK)")
    parser.add_argument("--config", help="YAML client config file")
    parser.add_argument(
        "--app-id",
        default=DEFAULT_APP_ID,
        help=f"app_id that gets no xkb options (default: {DEFAULT_APP_ID})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


async def main_async(args: argparse.Namespace) -> int:
    """Async main function.

    Returns:
        Exit code (0 = stopped by signal, 1 = error)
    """
    ctx = Context.with_cancel()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, ctx.cancel)

    try:
        config = load_config(args.config) if args.config else None
        await run(ctx, socket_path=args.socket, config=config, app_id=args.app_id)
    except SwayContextError:
        _LOGGER.info("Stopped")
        return 0
    except SwayClientError as err:
        _LOGGER.error("%s", err)
        return 1
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Console entry point."""
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s [%(name)s] %(message)s",
    )
    sys.exit(asyncio.run(main_async(args)))


if __name__ == "__main__":
    main()
