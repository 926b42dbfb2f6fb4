from __future__ import annotations

import logging
from typing import Any

from ..config import Settings
from ..db import SessionStore
from ..errors import DispatchError, PreconditionError
from ..security import PayloadCodec
from ..session import SessionContext
from ..transport import Linking
from ..types import RequestPath
from .urls import UrlBuilder

logger = logging.getLogger(__name__)


class RequestDispatcher:
    """Builds wallet requests and hands them to the OS.

    Every operation returns once the URL has been handed off; the wallet's
    answer arrives later as a redirect handled by ``DeepLinkRouter``.
    """

    def __init__(
        self,
        settings: Settings,
        context: SessionContext,
        linking: Linking,
        codec: PayloadCodec | None = None,
        urls: UrlBuilder | None = None,
        store: SessionStore | None = None,
    ) -> None:
        self.settings = settings
        self.context = context
        self.linking = linking
        self.codec = codec or PayloadCodec()
        self.urls = urls or UrlBuilder(settings)
        self.store = store

    async def connect(self) -> None:
        """Start a connection attempt with a fresh key pair."""
        self.context.begin_attempt()
        if self.store is not None:
            # The redirect may relaunch the process before the response is handled
            await self.store.persist(self.context)

        params = {
            "dapp_encryption_public_key": self.context.dapp_public_key_b58,
            "cluster": self.settings.cluster,
            "app_url": self.settings.app_url,
            "redirect_link": self.urls.redirect_url(),
        }
        logger.info("🔗 Connecting to Phantom...")
        await self._open(self.urls.build(RequestPath.CONNECT, params))

    async def disconnect(self) -> None:
        """Ask the wallet to end the session; local state is cleared without waiting."""
        if self.context.session is None:
            raise PreconditionError("No connected wallet session to disconnect")

        params = {
            "dapp_encryption_public_key": self.context.dapp_public_key_b58,
            "redirect_link": self.urls.redirect_url(),
        }
        url = self.urls.build(RequestPath.DISCONNECT, params)

        self.context.disconnect()
        if self.store is not None:
            await self.store.persist(self.context)
        logger.info("🔌 Disconnecting...")
        await self._open(url)

    async def sign_message(self, text: str) -> None:
        payload = {"message": self.codec.encode_message(text)}
        logger.info("✍️ Signing message...")
        await self._send_encrypted(RequestPath.SIGN_MESSAGE, payload)

    async def sign_and_send_transaction(self, serialized_tx_b58: str, description: str) -> None:
        """Send an already serialized, base58 encoded transaction for signing and submission."""
        payload = {"transaction": serialized_tx_b58, "message": description}
        logger.info("💸 Opening Phantom for transaction signing...")
        await self._send_encrypted(RequestPath.SIGN_AND_SEND_TRANSACTION, payload)

    async def _send_encrypted(self, path: RequestPath, payload: dict[str, Any]) -> None:
        if not self.context.has_shared_secret:
            raise PreconditionError("Connect the Phantom wallet first")

        encrypted = self.codec.seal(payload, self.context.shared_secret)
        params = {"dapp_encryption_public_key": self.context.dapp_public_key_b58}
        wire = encrypted.to_params()
        params["nonce"] = wire["nonce"]
        params["redirect_link"] = self.urls.redirect_url()
        params["payload"] = wire["payload"]
        await self._open(self.urls.build(path, params))

    async def _open(self, url: str) -> None:
        logger.debug(f"📱 Opening URL: {url[:100]}...")
        try:
            await self.linking.open_url(url)
        except DispatchError as e:
            logger.error(f"❌ Could not open Phantom: {e}")
            raise
