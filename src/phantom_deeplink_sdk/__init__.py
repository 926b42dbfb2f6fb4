from .client import RequestDispatcher, UrlBuilder
from .config import Settings
from .errors import (
    DecryptionError,
    DeepLinkError,
    DispatchError,
    KeyExchangeError,
    MalformedUrlError,
    PreconditionError,
    RemoteError,
)
from .events import EventRegistry, wallet
from .router import DeepLinkRouter, ResponseShape
from .runtime import DeepLinkApp, create_app, run
from .security import KeyPairProvider, PayloadCodec
from .session import SessionContext
from .transport import BrowserLinking, MemoryLinking
from .types import ConnectionState, EventKind, KeyPair, RequestPath, Session, SessionEvent

__all__ = [
    "DeepLinkApp",
    "create_app",
    "run",
    "Settings",
    "EventRegistry",
    "wallet",
    "SessionContext",
    "DeepLinkRouter",
    "RequestDispatcher",
    "UrlBuilder",
    "PayloadCodec",
    "KeyPairProvider",
    "MemoryLinking",
    "BrowserLinking",
    "ResponseShape",
    "ConnectionState",
    "EventKind",
    "KeyPair",
    "RequestPath",
    "Session",
    "SessionEvent",
    "DeepLinkError",
    "PreconditionError",
    "DecryptionError",
    "KeyExchangeError",
    "DispatchError",
    "MalformedUrlError",
    "RemoteError",
]
