"""Routing of inbound wallet redirects into session transitions and events."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from ..db import SessionStore
from ..errors import DecryptionError, KeyExchangeError, MalformedUrlError, RemoteError
from ..events import EventRegistry
from ..security import PayloadCodec
from ..session import SessionContext
from ..types import EventKind, SessionEvent
from .classifier import InboundResponse, ResponseShape, classify, normalize_url

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 256

RESULT_FIELDS: dict[str, EventKind] = {
    "public_key": EventKind.PUBLIC_KEY,
    "signature": EventKind.SIGNATURE,
    "transaction": EventKind.TRANSACTION,
}


def _short(value: Any, length: int = 20) -> str:
    text = str(value)
    return f"{text[:length]}..." if len(text) > length else text


class DeepLinkRouter:
    """Classifies inbound redirect URLs and dispatches them by shape.

    Every classified event is passed to the ``EventRegistry`` handlers and put
    on ``queue`` for consumers that prefer to await events. The queue holds at
    most ``queue_size`` events; when nobody drains it the oldest are dropped.
    """

    def __init__(
        self,
        context: SessionContext,
        codec: PayloadCodec | None = None,
        events: EventRegistry | None = None,
        store: SessionStore | None = None,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ) -> None:
        self.context = context
        self.codec = codec or PayloadCodec()
        self.events = events or EventRegistry()
        self.store = store
        self.queue: asyncio.Queue[SessionEvent] = asyncio.Queue(maxsize=queue_size)
        self._handlers: dict[ResponseShape, Callable[[InboundResponse], Awaitable[None]]] = {
            ResponseShape.ERROR: self._handle_error,
            ResponseShape.CONNECT: self._handle_connect,
            ResponseShape.ENCRYPTED: self._handle_encrypted,
            ResponseShape.UNRECOGNIZED: self._handle_unrecognized,
            ResponseShape.EMPTY: self._handle_empty,
        }

    def classify(self, url: str) -> InboundResponse:
        """Classify ``url`` against the current session; malformed URLs are unrecognized."""
        try:
            return classify(url, self.context.has_shared_secret)
        except MalformedUrlError as e:
            logger.warning(f"❌ Deep link parsing failed: {e}")
            return InboundResponse(shape=ResponseShape.UNRECOGNIZED, url=url)

    async def on_incoming_url(self, url_or_event: Any) -> None:
        """Handle a redirect delivered at launch or while running. Never raises."""
        url = normalize_url(url_or_event)
        if url is None:
            logger.warning(f"❌ Invalid URL received: {type(url_or_event).__name__}")
            return

        logger.info(f"📥 Received deep link: {_short(url, 80)}")
        response = self.classify(url)
        try:
            await self._handlers[response.shape](response)
        except Exception as e:
            logger.error(f"❌ Deep link handling failed: {e}", exc_info=True)

    async def publish(self, event: SessionEvent) -> None:
        """Run the registered handlers for ``event`` and queue it."""
        await self.events.emit(event)
        if self.queue.full():
            dropped = self.queue.get_nowait()
            logger.debug(f"Event queue full, dropping oldest '{dropped.kind.value}' event")
        self.queue.put_nowait(event)

    async def _persist(self) -> None:
        if self.store is not None:
            await self.store.persist(self.context)

    async def _handle_error(self, response: InboundResponse) -> None:
        error = RemoteError(
            response.get("errorCode") or "",
            response.get("errorMessage") or "Unknown error",
        )
        logger.warning(f"❌ Phantom Error [{error.code}]: {error.message}")
        await self.publish(
            SessionEvent(
                kind=EventKind.ERROR,
                data={"errorCode": error.code, "errorMessage": error.message},
                error=error,
                url=response.url,
            )
        )

    async def _handle_connect(self, response: InboundResponse) -> None:
        phantom_public_key = response.get("phantom_encryption_public_key") or ""
        nonce = response.get("nonce") or ""
        data = response.get("data")
        logger.info(f"🔐 Processing connection response, Phantom key {_short(phantom_public_key)}")

        key_pair = self.context.key_pair
        if key_pair is None:
            # The attempt's key pair was lost with its process; the request is abandoned
            logger.warning("⚠️ Connect response without a local key pair, ignoring")
            return

        try:
            shared_secret = self.codec.derive_shared_secret(phantom_public_key, key_pair.secret_key)
        except KeyExchangeError as e:
            if self.context.is_connected:
                logger.warning(f"⚠️ Ignoring stale connect response: {e}")
                return
            logger.warning(f"❌ Key processing error: {e}")
            self.context.key_exchange_failed()
            await self._persist()
            await self.publish(SessionEvent(kind=EventKind.ERROR, error=e, url=response.url))
            return

        if not data:
            if self.context.is_connected:
                logger.info("⚠️ Connect response without data while connected, ignoring")
                return
            self.context.key_exchanged(phantom_public_key, nonce, shared_secret)
            await self._persist()
            logger.info("✅ Shared secret established, no connection data in response")
            await self.publish(SessionEvent(kind=EventKind.KEY_EXCHANGED, url=response.url))
            return

        result = self.codec.open(data, nonce, shared_secret)
        wallet_public_key = result.payload.get("public_key") if isinstance(result.payload, dict) else None
        if not result.ok or not wallet_public_key:
            error = result.error or DecryptionError("Connection data has no wallet public key")
            if self.context.is_connected:
                logger.warning(f"⚠️ Ignoring stale connect response: {error}")
                return
            self.context.key_exchanged(phantom_public_key, nonce, shared_secret)
            await self._persist()
            logger.warning(f"❌ Decryption failed: {error}")
            await self.publish(SessionEvent(kind=EventKind.ERROR, error=error, url=response.url))
            return

        if self.context.matches(phantom_public_key, wallet_public_key) and (
            self.context.shared_secret == shared_secret
        ):
            logger.info("🔁 Duplicate connect response re-confirms the current session")
            return

        self.context.connected(phantom_public_key, nonce, shared_secret, wallet_public_key)
        await self._persist()
        logger.info(f"🎉 Successfully connected to wallet: {_short(wallet_public_key)}")
        await self.publish(
            SessionEvent(kind=EventKind.CONNECTED, data=dict(result.payload), url=response.url)
        )

    async def _handle_encrypted(self, response: InboundResponse) -> None:
        logger.info("🔓 Decrypting response data...")
        result = self.codec.open(
            response.get("data") or "", response.get("nonce") or "", self.context.shared_secret
        )
        if not result.ok:
            logger.warning(f"❌ Decryption failed, response dropped: {result.error}")
            return
        if not isinstance(result.payload, dict):
            logger.warning("⚠️ Decrypted response is not an object, dropped")
            return

        payload = result.payload
        public_key = payload.get("public_key")
        session = self.context.session
        if public_key and session is not None:
            self.context.connected(
                session.phantom_encryption_public_key,
                session.nonce,
                self.context.shared_secret,
                public_key,
            )
            await self._persist()

        present = [name for name in RESULT_FIELDS if payload.get(name)]
        if not present:
            logger.info(f"⚠️ Decrypted response has no known fields: {sorted(payload)}")
        for name in present:
            logger.info(f"✅ Received {name}: {_short(payload[name])}")
            await self.publish(
                SessionEvent(kind=RESULT_FIELDS[name], data=dict(payload), url=response.url)
            )

    async def _handle_unrecognized(self, response: InboundResponse) -> None:
        summary = ", ".join(f"{k}={_short(v)}" for k, v in response.params.items())
        logger.info(f"⚠️ Received deep link with unexpected format ({summary or 'no params'})")
        await self.publish(
            SessionEvent(kind=EventKind.UNRECOGNIZED, data=dict(response.params), url=response.url)
        )

    async def _handle_empty(self, response: InboundResponse) -> None:
        logger.info(f"📍 Simple deep link detected: {response.url}")
        await self.publish(SessionEvent(kind=EventKind.INFORMATIONAL, url=response.url))
