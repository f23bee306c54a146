"""Tests for SwayClient request/reply operations."""

from __future__ import annotations

import asyncio
import json
import time
from unittest.mock import patch

import pytest

from sway_ipc_core.client import SwayClient, decode_payload
from sway_ipc_core.config import ClientConfig
from sway_ipc_core.errors import (
    SwayCanceled,
    SwayClientError,
    SwayCommandError,
    SwayConfigError,
    SwayDeadlineExceeded,
    SwayDecodeError,
    SwayNotConnectedError,
    SwaySubscriptionRejected,
)
from sway_ipc_core.transport.context import Context
from sway_ipc_core.transport.framing import EventType, MessageType
from sway_ipc_core.types import RunCommandReply

TREE = {
    "id": 1,
    "type": "root",
    "nodes": [
        {
            "id": 3,
            "type": "output",
            "name": "eDP-1",
            "nodes": [
                {
                    "id": 4,
                    "type": "workspace",
                    "name": "1",
                    "nodes": [
                        {"id": 7, "type": "con", "app_id": "kitty", "focused": True}
                    ],
                }
            ],
        }
    ],
}


@pytest.fixture
def ctx():
    """Background context."""
    return Context.background()


class TestConnect:
    """Tests for SwayClient.connect()."""

    @pytest.mark.asyncio
    async def test_connect_explicit_path(self, ctx, fake_sway):
        """Test connect opens the given socket."""
        async with await SwayClient.connect(ctx, fake_sway.path) as client:
            assert client.is_connected
            assert client.config.socket_path == fake_sway.path
        assert not client.is_connected

    @pytest.mark.asyncio
    async def test_connect_from_environment(self, ctx, fake_sway, monkeypatch):
        """Test connect falls back to $SWAYSOCK."""
        monkeypatch.setenv("SWAYSOCK", fake_sway.path)
        async with await SwayClient.connect(ctx) as client:
            assert client.config.socket_path == fake_sway.path

    @pytest.mark.asyncio
    async def test_connect_without_socket(self, ctx, monkeypatch):
        """Test a missing socket path is a config error."""
        monkeypatch.delenv("SWAYSOCK", raising=False)
        monkeypatch.delenv("I3SOCK", raising=False)
        with pytest.raises(SwayConfigError, match=r"\$SWAYSOCK is empty"):
            await SwayClient.connect(ctx)

    @pytest.mark.asyncio
    async def test_not_connected(self, ctx):
        """Test calls on an unconnected client fail."""
        client = SwayClient()
        with pytest.raises(SwayNotConnectedError):
            await client.get_tree(ctx)
        with pytest.raises(SwayNotConnectedError):
            client.connection

    @pytest.mark.asyncio
    async def test_closed_client(self, ctx, fake_sway):
        """Test calls after close() fail."""
        client = await SwayClient.connect(ctx, fake_sway.path)
        await client.close()
        with pytest.raises(SwayNotConnectedError):
            await client.get_marks(ctx)


class TestQueries:
    """Tests for the typed query operations."""

    @pytest.mark.asyncio
    async def test_get_tree(self, ctx, fake_sway):
        """Test the tree reply is decoded into nodes."""
        fake_sway.reply(MessageType.GET_TREE, TREE)
        async with await SwayClient.connect(ctx, fake_sway.path) as client:
            tree = await client.get_tree(ctx)

        assert tree.type == "root"
        assert tree.nodes[0].name == "eDP-1"
        assert [n.id for n in tree.walk()] == [1, 3, 4, 7]

    @pytest.mark.asyncio
    async def test_get_focused_node(self, ctx, fake_sway):
        """Test the focused node is found in the fetched tree."""
        fake_sway.reply(MessageType.GET_TREE, TREE)
        async with await SwayClient.connect(ctx, fake_sway.path) as client:
            node = await client.get_focused_node(ctx)

        assert node is not None
        assert node.id == 7
        assert node.app_id == "kitty"

    @pytest.mark.asyncio
    async def test_get_workspaces(self, ctx, fake_sway):
        """Test workspaces are decoded in reply order."""
        fake_sway.reply(
            MessageType.GET_WORKSPACES,
            [
                {"num": 1, "name": "1", "focused": True, "output": "eDP-1"},
                {"num": 2, "name": "2", "visible": True, "rect": {"width": 800}},
            ],
        )
        async with await SwayClient.connect(ctx, fake_sway.path) as client:
            workspaces = await client.get_workspaces(ctx)

        assert [w.num for w in workspaces] == [1, 2]
        assert workspaces[0].focused
        assert workspaces[1].rect.width == 800

    @pytest.mark.asyncio
    async def test_get_outputs_refresh_in_hz(self, ctx, fake_sway):
        """Test output modes report refresh in Hz."""
        fake_sway.reply(
            MessageType.GET_OUTPUTS,
            [
                {
                    "name": "eDP-1",
                    "active": True,
                    "scale": 1,
                    "current_mode": {"width": 1920, "height": 1080, "refresh": 60000},
                    "modes": [{"width": 1920, "height": 1080, "refresh": 59977}],
                }
            ],
        )
        async with await SwayClient.connect(ctx, fake_sway.path) as client:
            (output,) = await client.get_outputs(ctx)

        assert output.current_mode.refresh == 60.0
        assert output.modes[0].refresh == pytest.approx(59.977)
        assert output.scale == 1.0

    @pytest.mark.asyncio
    async def test_string_lists(self, ctx, fake_sway):
        """Test marks, binding modes and bar IDs."""
        fake_sway.reply(MessageType.GET_MARKS, ["a"])
        fake_sway.reply(MessageType.GET_BINDING_MODES, ["default", "resize"])
        fake_sway.reply(MessageType.GET_BAR_CONFIG, ["bar-0"])
        async with await SwayClient.connect(ctx, fake_sway.path) as client:
            assert await client.get_marks(ctx) == ["a"]
            assert await client.get_binding_modes(ctx) == ["default", "resize"]
            assert await client.get_bar_ids(ctx) == ["bar-0"]

        assert fake_sway.requests[-1] == (MessageType.GET_BAR_CONFIG, b"")

    @pytest.mark.asyncio
    async def test_get_bar_config(self, ctx, fake_sway):
        """Test the bar ID is sent as the payload."""
        fake_sway.reply(
            MessageType.GET_BAR_CONFIG,
            {
                "id": "bar-0",
                "position": "top",
                "colors": {"background": "#000000ff"},
                "gaps": {"top": 4},
            },
        )
        async with await SwayClient.connect(ctx, fake_sway.path) as client:
            bar = await client.get_bar_config(ctx, "bar-0")

        assert fake_sway.requests == [(MessageType.GET_BAR_CONFIG, b"bar-0")]
        assert bar.position == "top"
        assert bar.colors.background == "#000000ff"
        assert bar.gaps.top == 4

    @pytest.mark.asyncio
    async def test_version_config_tick(self, ctx, fake_sway):
        """Test version, config and tick replies."""
        fake_sway.reply(
            MessageType.GET_VERSION,
            {"major": 1, "minor": 9, "patch": 0, "human_readable": "1.9"},
        )
        fake_sway.reply(MessageType.GET_CONFIG, {"config": "set $mod Mod4\n"})
        fake_sway.reply(MessageType.SEND_TICK, {"success": True})
        async with await SwayClient.connect(ctx, fake_sway.path) as client:
            version = await client.get_version(ctx)
            config = await client.get_config(ctx)
            tick = await client.send_tick(ctx, "hello")

        assert (version.major, version.minor) == (1, 9)
        assert config.config.startswith("set $mod")
        assert tick.success
        assert fake_sway.requests[-1] == (MessageType.SEND_TICK, b"hello")

    @pytest.mark.asyncio
    async def test_inputs_and_seats(self, ctx, fake_sway):
        """Test input devices and seats."""
        keyboard = {
            "identifier": "1:1:AT_Translated_Set_2_keyboard",
            "type": "keyboard",
            "xkb_layout_names": ["English (US)"],
            "xkb_active_layout_index": 0,
        }
        fake_sway.reply(MessageType.GET_INPUTS, [keyboard])
        fake_sway.reply(
            MessageType.GET_SEATS, [{"name": "seat0", "devices": [keyboard]}]
        )
        async with await SwayClient.connect(ctx, fake_sway.path) as client:
            (device,) = await client.get_inputs(ctx)
            (seat,) = await client.get_seats(ctx)

        assert device.xkb_layout_names == ("English (US)",)
        assert device.xkb_active_layout_index == 0
        assert device.libinput is None
        assert seat.devices == (device,)


class TestRunCommand:
    """Tests for run_command()."""

    @pytest.mark.asyncio
    async def test_success(self, ctx, fake_sway):
        """Test a successful batch returns one reply per statement."""
        fake_sway.reply(MessageType.RUN_COMMAND, [{"success": True}, {"success": True}])
        async with await SwayClient.connect(ctx, fake_sway.path) as client:
            replies = await client.run_command(ctx, "workspace 1; focus left")

        assert replies == [RunCommandReply(success=True)] * 2
        assert fake_sway.requests == [
            (MessageType.RUN_COMMAND, b"workspace 1; focus left")
        ]

    @pytest.mark.asyncio
    async def test_failures_aggregated(self, ctx, fake_sway):
        """Test every failed statement is reported and all replies kept."""
        fake_sway.reply(
            MessageType.RUN_COMMAND,
            [
                {"success": False, "error": "e1", "parse_error": True},
                {"success": True},
                {"success": False, "error": "e3"},
            ],
        )
        async with await SwayClient.connect(ctx, fake_sway.path) as client:
            with pytest.raises(SwayCommandError) as exc_info:
                await client.run_command(ctx, "a; b; c")

        err = exc_info.value
        assert "e1" in str(err)
        assert "e3" in str(err)
        assert "command 'a; b; c' unsuccessful" in str(err)
        assert err.failures == ["e1", "e3"]
        assert len(err.replies) == 3
        assert err.replies[1].success
        assert err.replies[0].parse_error

    @pytest.mark.asyncio
    async def test_unchecked(self, ctx, fake_sway):
        """Test check=False returns failed replies without raising."""
        fake_sway.reply(MessageType.RUN_COMMAND, [{"success": False, "error": "nope"}])
        async with await SwayClient.connect(ctx, fake_sway.path) as client:
            replies = await client.run_command(ctx, "bogus", check=False)

        assert replies == [RunCommandReply(success=False, error="nope")]


class TestDecodeErrors:
    """Tests for malformed reply payloads."""

    @pytest.mark.asyncio
    async def test_invalid_json(self, ctx, fake_sway):
        """Test a non-JSON payload is a decode error."""
        fake_sway.reply(MessageType.GET_TREE, b"{not json")
        async with await SwayClient.connect(ctx, fake_sway.path) as client:
            with pytest.raises(SwayDecodeError, match="Invalid JSON in GET_TREE"):
                await client.get_tree(ctx)

    @pytest.mark.asyncio
    async def test_wrong_shape(self, ctx, fake_sway):
        """Test a reply of the wrong JSON shape is a decode error."""
        fake_sway.reply(MessageType.GET_WORKSPACES, {"num": 1})
        fake_sway.reply(MessageType.GET_MARKS, [1, 2])
        async with await SwayClient.connect(ctx, fake_sway.path) as client:
            with pytest.raises(SwayDecodeError, match="Unexpected GET_WORKSPACES"):
                await client.get_workspaces(ctx)
            with pytest.raises(SwayDecodeError):
                await client.get_marks(ctx)

    @pytest.mark.asyncio
    async def test_connection_survives_decode_error(self, ctx, fake_sway):
        """Test the stream stays aligned after a decode error."""
        fake_sway.reply(MessageType.GET_VERSION, {"major": "one"})
        fake_sway.reply(MessageType.GET_MARKS, ["ok"])
        async with await SwayClient.connect(ctx, fake_sway.path) as client:
            with pytest.raises(SwayDecodeError):
                await client.get_version(ctx)
            assert await client.get_marks(ctx) == ["ok"]

    def test_decode_payload(self):
        """Test decode_payload wraps parser errors."""
        assert decode_payload(b"[1]", list, "x") == [1]
        with pytest.raises(SwayDecodeError, match="Unexpected thing payload"):
            decode_payload(b"{}", lambda data: data["missing"], "thing")


class TestDeadlines:
    """Tests for cancellation and timeouts on requests."""

    @pytest.mark.asyncio
    async def test_expired_deadline_does_not_block(self, fake_sway):
        """Test an already expired context fails immediately."""
        async with await SwayClient.connect(
            Context.background(), fake_sway.path
        ) as client:
            start = time.monotonic()
            with pytest.raises(SwayDeadlineExceeded):
                await client.get_tree(Context.with_timeout(0))
            assert time.monotonic() - start < 0.5
            assert not client.connection.broken

    @pytest.mark.asyncio
    async def test_config_timeout_on_silent_server(self, ctx, fake_sway):
        """Test the per-request timeout from the config applies."""
        fake_sway.silent = True
        client = await SwayClient.connect(
            ctx, fake_sway.path, config=ClientConfig(timeout=0.05)
        )
        with pytest.raises(SwayDeadlineExceeded):
            await client.get_tree(ctx)

        assert client.connection.broken
        assert not client.is_connected
        await client.close()

    @pytest.mark.asyncio
    async def test_concurrent_call_rejected(self, fake_sway):
        """Test a second request while one is outstanding is refused."""
        fake_sway.silent = True
        first_ctx = Context.with_cancel()
        client = await SwayClient.connect(Context.background(), fake_sway.path)

        first = asyncio.create_task(client.get_tree(first_ctx))
        await asyncio.sleep(0.02)
        with pytest.raises(SwayClientError, match="already outstanding"):
            await client.get_marks(Context.background())

        first_ctx.cancel()
        with pytest.raises(SwayCanceled):
            await first
        await client.close()

    @pytest.mark.asyncio
    async def test_cancel_after_write_discards_connection(self, fake_sway):
        """Test a reply still owed after cancellation is never read as the next answer."""
        fake_sway.reply(MessageType.GET_MARKS, ["stale-mark"])
        fake_sway.reply(MessageType.GET_BINDING_MODES, ["default"])
        ctx = Context.with_cancel()
        client = await SwayClient.connect(Context.background(), fake_sway.path)
        conn = client.connection
        write_frame = conn.write_frame

        async def write_then_cancel(*args, **kwargs):
            await write_frame(*args, **kwargs)
            ctx.cancel()

        with patch.object(conn, "write_frame", side_effect=write_then_cancel):
            with pytest.raises(SwayCanceled):
                await client.get_marks(ctx)

        assert conn.broken
        with pytest.raises(SwayNotConnectedError):
            await client.get_binding_modes(Context.background())
        await client.close()

    @pytest.mark.asyncio
    async def test_task_cancellation_discards_connection(self, fake_sway):
        """Test cancelling the calling task poisons the connection."""
        fake_sway.silent = True
        client = await SwayClient.connect(Context.background(), fake_sway.path)

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(client.get_tree(Context.background()), 0.05)

        assert client.connection.broken
        with pytest.raises(SwayNotConnectedError):
            await client.get_marks(Context.background())
        await client.close()


class TestSendSubscribe:
    """Tests for the subscribe handshake on a client."""

    @pytest.mark.asyncio
    async def test_names_sent_as_json(self, ctx, fake_sway):
        """Test event names are sent as a JSON array."""
        fake_sway.reply(MessageType.SUBSCRIBE, {"success": True})
        async with await SwayClient.connect(ctx, fake_sway.path) as client:
            await client.send_subscribe(ctx, [EventType.WINDOW, EventType.TICK])

        type_tag, payload = fake_sway.requests[0]
        assert type_tag == MessageType.SUBSCRIBE
        assert json.loads(payload) == ["window", "tick"]

    @pytest.mark.asyncio
    async def test_rejected(self, ctx, fake_sway):
        """Test success=false raises SwaySubscriptionRejected."""
        fake_sway.reply(MessageType.SUBSCRIBE, {"success": False})
        async with await SwayClient.connect(ctx, fake_sway.path) as client:
            with pytest.raises(SwaySubscriptionRejected, match="subscribe unsuccessful"):
                await client.send_subscribe(ctx, [EventType.WINDOW])
