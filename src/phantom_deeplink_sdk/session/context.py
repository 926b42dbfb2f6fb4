"""Connection state for one dApp <-> wallet deep-link session."""

from __future__ import annotations

import logging

from ..errors import DeepLinkError, PreconditionError
from ..security import KeyPairProvider, PayloadCodec, b58decode, b58encode
from ..types import ConnectionState, KeyPair, Session, SessionSnapshot

logger = logging.getLogger(__name__)


class SessionContext:
    """Owns the key pair, shared secret and session of the active connection.

    States move DISCONNECTED -> KEY_EXCHANGED -> CONNECTED; ``disconnect()``
    and ``reset()`` return to DISCONNECTED from anywhere.
    """

    def __init__(
        self, key_provider: KeyPairProvider | None = None, codec: PayloadCodec | None = None
    ) -> None:
        self._keys = key_provider or KeyPairProvider()
        self._codec = codec or PayloadCodec()
        self.state = ConnectionState.DISCONNECTED
        self.key_pair: KeyPair | None = None
        self.shared_secret: bytes | None = None
        self.session: Session | None = None

    @classmethod
    def create(
        cls, key_provider: KeyPairProvider | None = None, codec: PayloadCodec | None = None
    ) -> SessionContext:
        context = cls(key_provider, codec)
        context.begin_attempt()
        return context

    @property
    def wallet_public_key(self) -> str | None:
        return self.session.wallet_public_key if self.session else None

    @property
    def has_shared_secret(self) -> bool:
        return self.shared_secret is not None

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def dapp_public_key_b58(self) -> str:
        return b58encode(self.require_key_pair().public_key)

    def require_key_pair(self) -> KeyPair:
        if self.key_pair is None:
            raise PreconditionError("No dApp key pair; call connect() first")
        return self.key_pair

    def begin_attempt(self) -> KeyPair:
        """Generate the key pair for a new connection attempt. State is unchanged."""
        self.key_pair = self._keys.generate()
        logger.info(f"🔑 dApp public key: {b58encode(self.key_pair.public_key)[:20]}...")
        return self.key_pair

    def key_exchanged(self, phantom_public_key: str, nonce: str, shared_secret: bytes) -> None:
        self.shared_secret = shared_secret
        self.session = Session(phantom_encryption_public_key=phantom_public_key, nonce=nonce)
        self.state = ConnectionState.KEY_EXCHANGED

    def connected(
        self, phantom_public_key: str, nonce: str, shared_secret: bytes, wallet_public_key: str
    ) -> None:
        self.shared_secret = shared_secret
        self.session = Session(
            phantom_encryption_public_key=phantom_public_key,
            nonce=nonce,
            wallet_public_key=wallet_public_key,
        )
        self.state = ConnectionState.CONNECTED

    def matches(self, phantom_public_key: str, wallet_public_key: str | None) -> bool:
        """Whether a connect response re-confirms the committed connection."""
        return (
            self.is_connected
            and self.session is not None
            and self.session.phantom_encryption_public_key == phantom_public_key
            and self.session.wallet_public_key == wallet_public_key
        )

    def key_exchange_failed(self) -> None:
        """Drop a half-open session; the key pair stays for a retried response."""
        if self.state is ConnectionState.KEY_EXCHANGED:
            self.shared_secret = None
            self.session = None
            self.state = ConnectionState.DISCONNECTED

    def disconnect(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.state = ConnectionState.DISCONNECTED
        self.key_pair = None
        self.shared_secret = None
        self.session = None

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self.state,
            dapp_secret_key=b58encode(self.key_pair.secret_key) if self.key_pair else None,
            phantom_encryption_public_key=(
                self.session.phantom_encryption_public_key if self.session else None
            ),
            nonce=self.session.nonce if self.session else None,
            wallet_public_key=self.wallet_public_key,
        )

    def restore(self, snapshot: SessionSnapshot) -> None:
        """Rebuild the context from a snapshot, re-deriving the shared secret."""
        self.reset()
        if not snapshot.dapp_secret_key:
            return
        try:
            self.key_pair = self._keys.from_secret_key(b58decode(snapshot.dapp_secret_key))
        except ValueError as e:
            logger.warning(f"⚠️ Discarding persisted session with unusable key pair: {e}")
            return

        if snapshot.state is ConnectionState.DISCONNECTED or not (
            snapshot.phantom_encryption_public_key and snapshot.nonce
        ):
            return

        try:
            secret = self._codec.derive_shared_secret(
                snapshot.phantom_encryption_public_key, self.key_pair.secret_key
            )
        except DeepLinkError as e:
            logger.warning(f"⚠️ Could not re-derive shared secret, session dropped: {e}")
            return

        if snapshot.state is ConnectionState.CONNECTED and snapshot.wallet_public_key:
            self.connected(
                snapshot.phantom_encryption_public_key,
                snapshot.nonce,
                secret,
                snapshot.wallet_public_key,
            )
        else:
            self.key_exchanged(snapshot.phantom_encryption_public_key, snapshot.nonce, secret)
        logger.info(f"♻️ Restored session in state {self.state.value}")
