"""Tests for outbound request dispatch and URL construction."""

from unittest.mock import AsyncMock
from urllib.parse import parse_qsl, urlsplit

import pytest

from phantom_deeplink_sdk import (
    ConnectionState,
    DeepLinkApp,
    DispatchError,
    EventKind,
    MemoryLinking,
    PreconditionError,
)
from phantom_deeplink_sdk.client import UrlBuilder
from phantom_deeplink_sdk.db import MemorySessionStore
from phantom_deeplink_sdk.security import b58decode
from phantom_deeplink_sdk.types import RequestPath

REDIRECT = "phantomtestapp://onPhantomConnected"


def query_params(url: str) -> dict:
    return dict(parse_qsl(urlsplit(url).query))


async def _connect(app, wallet, public_key="Abc123"):
    await app.connect()
    await app.router.on_incoming_url(
        wallet.connect_url(app.context.dapp_public_key_b58, {"public_key": public_key})
    )


class TestUrlBuilder:
    def test_build_keeps_parameter_order(self, settings):
        """Test parameters keep insertion order."""
        url = UrlBuilder(settings).build(RequestPath.CONNECT, {"b": "2", "a": "1"})

        assert url == "https://phantom.app/ul/v1/connect?b=2&a=1"

    def test_build_escapes_values(self, settings):
        """Test parameter values are URL encoded."""
        url = UrlBuilder(settings).build("signMessage", {"redirect_link": "app://x?y=1 2"})

        assert url.endswith("signMessage?redirect_link=app%3A%2F%2Fx%3Fy%3D1+2")

    def test_redirect_defaults_to_app_scheme(self, settings):
        """Test the default redirect uses the app scheme."""
        assert UrlBuilder(settings).redirect_url() == REDIRECT

    def test_redirect_uses_http_base(self, settings):
        """Test a configured HTTP base is used for redirects."""
        settings.redirect_base = "http://127.0.0.1:10000/"

        assert UrlBuilder(settings).redirect_url() == "http://127.0.0.1:10000/onPhantomConnected"

    def test_development_base_falls_back_to_scheme(self, settings):
        """Test exp:// bases fall back to the app scheme."""
        settings.redirect_base = "exp://192.168.1.10:8081/--"

        assert UrlBuilder(settings).redirect_url("custom") == "phantomtestapp://custom"


class TestConnect:
    @pytest.mark.asyncio
    async def test_connect_url(self, app, linking):
        """Test the connect request URL and its parameters."""
        await app.connect()

        assert len(linking.opened) == 1
        url = linking.opened[0]
        assert url.startswith("https://phantom.app/ul/v1/connect?")
        params = query_params(url)
        assert list(params) == ["dapp_encryption_public_key", "cluster", "app_url", "redirect_link"]
        assert params["dapp_encryption_public_key"] == app.context.dapp_public_key_b58
        assert len(b58decode(params["dapp_encryption_public_key"])) == 32
        assert params["cluster"] == "devnet"
        assert params["app_url"] == "https://phantom.app"
        assert params["redirect_link"] == REDIRECT
        assert app.state is ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_each_connect_uses_fresh_key_pair(self, app, linking):
        """Test every connect generates a new key pair."""
        await app.connect()
        await app.connect()

        keys = [query_params(url)["dapp_encryption_public_key"] for url in linking.opened]
        assert keys[0] != keys[1]

    @pytest.mark.asyncio
    async def test_key_pair_is_persisted_before_dispatch(self, settings):
        """Test the key pair is stored before the wallet is opened."""
        store = MemorySessionStore()
        linking = MemoryLinking(supported_schemes={"https"})
        app = DeepLinkApp(settings, linking, store)
        seen = []

        async def open_url(url):
            seen.append(await store.load())

        linking.open_url = open_url
        await app.connect()

        assert seen[0] is not None
        assert seen[0].dapp_secret_key is not None

    @pytest.mark.asyncio
    async def test_wallet_not_installed(self, settings):
        """Test connect raises DispatchError when the wallet cannot be opened."""
        app = DeepLinkApp(settings, MemoryLinking(supported_schemes=set()), MemorySessionStore())

        with pytest.raises(DispatchError):
            await app.connect()

        assert app.state is ConnectionState.DISCONNECTED


class TestEncryptedRequests:
    @pytest.mark.asyncio
    async def test_sign_message(self, app, linking, wallet):
        """Test signMessage carries an encrypted base58 message."""
        await _connect(app, wallet)

        await app.sign_message("Hello Phantom!")

        url = linking.opened[-1]
        assert url.startswith("https://phantom.app/ul/v1/signMessage?")
        params = query_params(url)
        assert list(params) == ["dapp_encryption_public_key", "nonce", "redirect_link", "payload"]
        assert len(b58decode(params["nonce"])) == 24
        payload = wallet.read_request(url)
        assert b58decode(payload["message"]) == b"Hello Phantom!"

    @pytest.mark.asyncio
    async def test_sign_and_send_transaction(self, app, linking, wallet):
        """Test signAndSendTransaction carries the transaction and description."""
        await _connect(app, wallet)

        await app.sign_and_send_transaction("3Bxs4h24hBtQy9rw", "Send 0.001 SOL")

        url = linking.opened[-1]
        assert "/signAndSendTransaction?" in url
        assert wallet.read_request(url) == {
            "transaction": "3Bxs4h24hBtQy9rw",
            "message": "Send 0.001 SOL",
        }

    @pytest.mark.asyncio
    async def test_nonces_differ_per_request(self, app, linking, wallet):
        """Test each request draws a fresh nonce."""
        await _connect(app, wallet)

        await app.sign_message("one")
        await app.sign_message("one")

        first, second = (query_params(url)["nonce"] for url in linking.opened[-2:])
        assert first != second

    @pytest.mark.asyncio
    async def test_sign_after_key_exchange_only(self, app, linking, wallet):
        """Test signing is allowed once a secret is established."""
        await app.connect()
        await app.router.on_incoming_url(wallet.connect_url(app.context.dapp_public_key_b58))

        await app.sign_message("early")

        assert "/signMessage?" in linking.opened[-1]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", ["sign_message", "sign_and_send_transaction"])
    async def test_requires_shared_secret(self, app, linking, operation):
        """Test encrypted requests fail fast without a shared secret."""
        await app.connect()
        dispatched = len(linking.opened)

        with pytest.raises(PreconditionError):
            if operation == "sign_message":
                await app.sign_message("hi")
            else:
                await app.sign_and_send_transaction("tx", "desc")

        assert len(linking.opened) == dispatched


class TestDisconnect:
    @pytest.mark.asyncio
    async def test_disconnect_clears_session_and_dispatches(self, app, linking, wallet):
        """Test disconnect clears the session and opens the wallet."""
        await _connect(app, wallet)
        dapp_key = app.context.dapp_public_key_b58

        await app.disconnect()

        params = query_params(linking.opened[-1])
        assert linking.opened[-1].startswith("https://phantom.app/ul/v1/disconnect?")
        assert params == {"dapp_encryption_public_key": dapp_key, "redirect_link": REDIRECT}
        assert app.state is ConnectionState.DISCONNECTED
        assert app.context.key_pair is None
        assert await app.store.load() is None

    @pytest.mark.asyncio
    async def test_disconnect_without_session(self, app, linking):
        """Test disconnect without a session dispatches nothing."""
        with pytest.raises(PreconditionError):
            await app.disconnect()

        assert linking.opened == []

    @pytest.mark.asyncio
    async def test_disconnect_is_optimistic(self, app, linking, wallet):
        """Test local state is cleared even when dispatch fails."""
        await _connect(app, wallet)
        linking.open_url = AsyncMock(side_effect=DispatchError("wallet gone"))

        with pytest.raises(DispatchError):
            await app.disconnect()

        assert app.state is ConnectionState.DISCONNECTED
        assert not app.context.has_shared_secret
        queued = [app.router.queue.get_nowait().kind for _ in range(app.router.queue.qsize())]
        assert queued[-1] is EventKind.DISCONNECTED
