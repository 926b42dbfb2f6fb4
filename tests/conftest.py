"""Shared fixtures: a stand-in wallet that answers deep-link requests."""

from urllib.parse import parse_qsl, urlencode, urlsplit

import pytest

from phantom_deeplink_sdk import DeepLinkApp, MemoryLinking, Settings
from phantom_deeplink_sdk.db import MemorySessionStore
from phantom_deeplink_sdk.security import KeyPairProvider, PayloadCodec, b58encode

REDIRECT = "phantomtestapp://onPhantomConnected"


class FakeWallet:
    """Builds wallet responses the way the wallet app would."""

    def __init__(self):
        self.keys = KeyPairProvider().generate()
        self.public_key_b58 = b58encode(self.keys.public_key)
        self.codec = PayloadCodec()

    def shared_secret(self, dapp_public_key_b58: str) -> bytes:
        return self.codec.derive_shared_secret(dapp_public_key_b58, self.keys.secret_key)

    def connect_url(self, dapp_public_key_b58: str, payload=None, redirect: str = REDIRECT) -> str:
        params = {"phantom_encryption_public_key": self.public_key_b58}
        if payload is None:
            params["nonce"] = b58encode(b"\x01" * 24)
        else:
            nonce, ciphertext = self.codec.encrypt(payload, self.shared_secret(dapp_public_key_b58))
            params["nonce"] = b58encode(nonce)
            params["data"] = b58encode(ciphertext)
        return f"{redirect}?{urlencode(params)}"

    def response_url(self, dapp_public_key_b58: str, payload, redirect: str = REDIRECT) -> str:
        nonce, ciphertext = self.codec.encrypt(payload, self.shared_secret(dapp_public_key_b58))
        params = {"nonce": b58encode(nonce), "data": b58encode(ciphertext)}
        return f"{redirect}?{urlencode(params)}"

    def read_request(self, url: str) -> dict:
        """Decrypt the payload of an outbound request URL."""
        params = dict(parse_qsl(urlsplit(url).query))
        secret = self.shared_secret(params["dapp_encryption_public_key"])
        return self.codec.decrypt(params["payload"], params["nonce"], secret)


@pytest.fixture
def wallet():
    return FakeWallet()


@pytest.fixture
def settings():
    return Settings(
        base_url="https://phantom.app/ul/v1",
        cluster="devnet",
        app_url="https://phantom.app",
        redirect_scheme="phantomtestapp",
        redirect_path="onPhantomConnected",
        redirect_base=None,
        session_db_url=None,
        rpc_url=None,
        launch_url=None,
    )


@pytest.fixture
def linking():
    return MemoryLinking(supported_schemes={"https"})


@pytest.fixture
def app(settings, linking):
    return DeepLinkApp(settings, linking, MemorySessionStore())
