"""Type definitions for the deep-link SDK."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class RequestPath(str, Enum):
    CONNECT = "connect"
    DISCONNECT = "disconnect"
    SIGN_MESSAGE = "signMessage"
    SIGN_AND_SEND_TRANSACTION = "signAndSendTransaction"


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    KEY_EXCHANGED = "key_exchanged"
    CONNECTED = "connected"


@dataclass(frozen=True)
class KeyPair:
    public_key: bytes
    secret_key: bytes

    def __repr__(self) -> str:
        return f"KeyPair(public_key={self.public_key.hex()[:16]}..., secret_key=<hidden>)"


@dataclass
class Session:
    phantom_encryption_public_key: str  # base58
    nonce: str  # base58, as supplied by the wallet with the connect response
    wallet_public_key: str | None = None


@dataclass
class SessionSnapshot:
    """Durable form of a session context; the shared secret is re-derived on restore."""

    state: ConnectionState
    dapp_secret_key: str | None = None  # base58
    phantom_encryption_public_key: str | None = None
    nonce: str | None = None
    wallet_public_key: str | None = None


class EventKind(str, Enum):
    CONNECTED = "connected"
    KEY_EXCHANGED = "key_exchanged"
    PUBLIC_KEY = "public_key"
    SIGNATURE = "signature"
    TRANSACTION = "transaction"
    ERROR = "error"
    DISCONNECTED = "disconnected"
    UNRECOGNIZED = "unrecognized"
    INFORMATIONAL = "informational"


@dataclass
class SessionEvent:
    kind: EventKind
    data: dict[str, Any] = field(default_factory=dict)
    error: Exception | None = None
    url: str | None = None
