"""Tests for app wiring, restarts and the activity log."""

import logging
from unittest.mock import AsyncMock

import pytest

from phantom_deeplink_sdk import (
    ConnectionState,
    DeepLinkApp,
    EventKind,
    MemoryLinking,
    PreconditionError,
    create_app,
)
from phantom_deeplink_sdk.db import MemorySessionStore
from phantom_deeplink_sdk.logs import ActivityLog, attach_activity_log, detach_activity_log
from phantom_deeplink_sdk.runtime.runner import _launch_url_from_argv


def drain(queue) -> list:
    events = []
    while not queue.empty():
        events.append(queue.get_nowait())
    return events


class TestRestart:
    @pytest.mark.asyncio
    async def test_redirect_relaunch_completes_connection(self, settings, wallet):
        """The wallet's redirect arrives as the launch URL of a fresh process."""
        store = MemorySessionStore()
        first = DeepLinkApp(settings, MemoryLinking(supported_schemes={"https"}), store)
        await first.start()
        await first.connect()
        launch_url = wallet.connect_url(first.context.dapp_public_key_b58, {"public_key": "Abc123"})
        await first.stop()

        second = DeepLinkApp(settings, MemoryLinking(initial_url=launch_url), store)
        await second.start()

        assert second.state is ConnectionState.CONNECTED
        assert second.wallet_public_key == "Abc123"
        assert second.context.shared_secret == wallet.shared_secret(
            second.context.dapp_public_key_b58
        )
        await second.stop()

    @pytest.mark.asyncio
    async def test_connected_session_survives_restart(self, settings, wallet):
        """Test a connected session is usable after a restart."""
        store = MemorySessionStore()
        linking = MemoryLinking(supported_schemes={"https"})
        first = DeepLinkApp(settings, linking, store)
        await first.start()
        await first.connect()
        await first.router.on_incoming_url(
            wallet.connect_url(first.context.dapp_public_key_b58, {"public_key": "Abc123"})
        )
        await first.stop()

        second = DeepLinkApp(settings, linking, store)
        await second.start()
        await second.sign_message("after restart")

        assert second.state is ConnectionState.CONNECTED
        assert wallet.read_request(linking.opened[-1])["message"]
        await second.stop()

    @pytest.mark.asyncio
    async def test_launch_url_is_handled_once(self, settings, wallet):
        """Test the launch URL is routed on start."""
        linking = MemoryLinking(initial_url="phantomtestapp://onPhantomConnected?errorCode=4001")
        app = DeepLinkApp(settings, linking, MemorySessionStore())
        errors = []
        app.events.on_error()(errors.append)

        await app.start()

        assert len(errors) == 1
        assert errors[0].error.code == "4001"
        await app.stop()

    @pytest.mark.asyncio
    async def test_listener_receives_redirects_until_stopped(self, settings):
        """Test redirects stop reaching the router after stop()."""
        linking = MemoryLinking()
        app = DeepLinkApp(settings, linking, MemorySessionStore())
        seen = []
        app.events.on_unrecognized()(seen.append)

        await app.start()
        await linking.deliver("myapp://foo?bar=baz")
        await app.stop()
        await linking.deliver("myapp://foo?bar=qux")

        assert [event.data for event in seen] == [{"bar": "baz"}]

    @pytest.mark.asyncio
    async def test_loopback_redirect(self, settings, wallet):
        """Outbound URLs on the app's own scheme come straight back to the router."""
        linking = MemoryLinking(supported_schemes={"https"}, loopback_schemes={"phantomtestapp"})
        app = DeepLinkApp(settings, linking, MemorySessionStore())
        await app.start()
        await app.connect()

        await linking.open_url(
            wallet.connect_url(app.context.dapp_public_key_b58, {"public_key": "Loop1"})
        )

        assert app.wallet_public_key == "Loop1"
        await app.stop()

    @pytest.mark.asyncio
    async def test_create_app_with_database(self, settings, wallet, tmp_path):
        """Test sessions persist in the configured database."""
        settings.session_db_url = f"sqlite:///{tmp_path}/app.db"
        linking = MemoryLinking(supported_schemes={"https"})
        app = await create_app(settings, linking)
        await app.connect()
        await app.router.on_incoming_url(
            wallet.connect_url(app.context.dapp_public_key_b58, {"public_key": "Db1"})
        )
        await app.stop()

        restarted = await create_app(settings, linking)

        assert restarted.state is ConnectionState.CONNECTED
        assert restarted.wallet_public_key == "Db1"
        await restarted.stop()

    @pytest.mark.asyncio
    async def test_stop_disposes_database_engine(self, settings, tmp_path):
        """Test stop() closes the engine that create_app() opened."""
        settings.session_db_url = f"sqlite:///{tmp_path}/app.db"
        app = await create_app(settings, MemoryLinking())
        manager = app.db_manager
        manager.close = AsyncMock(wraps=manager.close)

        await app.stop()
        await app.stop()

        manager.close.assert_awaited_once()
        assert app.db_manager is None

    @pytest.mark.asyncio
    async def test_stop_without_database(self, app):
        """Test stop() on an app without a database engine."""
        await app.start()
        await app.stop()

        assert app.db_manager is None


class TestDisconnect:
    @pytest.mark.asyncio
    async def test_disconnect_emits_disconnected(self, app, wallet):
        """Test disconnect publishes a disconnected event."""
        events = []
        app.events.on_disconnected()(events.append)
        await app.connect()
        await app.router.on_incoming_url(
            wallet.connect_url(app.context.dapp_public_key_b58, {"public_key": "Abc123"})
        )

        await app.disconnect()

        assert [event.kind for event in events] == [EventKind.DISCONNECTED]
        assert [event.kind for event in drain(app.router.queue)][-1] is EventKind.DISCONNECTED

    @pytest.mark.asyncio
    async def test_disconnect_without_session_emits_nothing(self, app):
        """Test a refused disconnect publishes nothing."""
        events = []
        app.events.on_disconnected()(events.append)

        with pytest.raises(PreconditionError):
            await app.disconnect()

        assert events == []


class TestActivityLog:
    def test_lines_are_timestamped(self):
        """Test activity lines carry an HH:MM:SS timestamp."""
        handler = attach_activity_log()
        try:
            logging.getLogger("phantom_deeplink_sdk.test").info("hello")
        finally:
            detach_activity_log(handler)

        assert len(handler.lines) == 1
        stamp, message = handler.lines[0].split(": ", 1)
        assert len(stamp) == 8 and stamp.count(":") == 2
        assert message == "hello"

    def test_capacity_and_clear(self):
        """Test the activity log is bounded and clearable."""
        handler = ActivityLog(capacity=2)
        logger = logging.getLogger("phantom_deeplink_sdk.test_capacity")
        attach_activity_log(handler)
        try:
            for index in range(3):
                logger.info(f"line {index}")
        finally:
            detach_activity_log(handler)

        assert [line.split(": ", 1)[1] for line in handler.lines] == ["line 1", "line 2"]
        handler.clear()
        assert handler.lines == []

    @pytest.mark.asyncio
    async def test_app_collects_protocol_logs(self, app):
        """Test the app exposes protocol log lines."""
        await app.start()
        await app.connect()
        await app.stop()

        assert any("Connecting to Phantom" in line for line in app.logs)


class TestLaunchArgs:
    def test_first_url_argument_is_launch_url(self):
        """Test the first URL argument is the launch URL."""
        argv = ["phantom-deeplink", "--verbose", "phantomtestapp://x?errorCode=1"]

        assert _launch_url_from_argv(argv) == "phantomtestapp://x?errorCode=1"

    def test_no_url_argument(self):
        """Test no launch URL without a URL argument."""
        assert _launch_url_from_argv(["phantom-deeplink"]) is None
