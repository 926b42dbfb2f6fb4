"""Error taxonomy for the deep-link session protocol."""

from __future__ import annotations


class DeepLinkError(Exception):
    pass


class PreconditionError(DeepLinkError):
    """Operation requires a session or shared secret that is not established."""


class DecryptionError(DeepLinkError):
    """Authenticated decryption failed or the ciphertext was malformed."""


class KeyExchangeError(DecryptionError):
    """The wallet's encryption public key could not be used for key agreement."""


class DispatchError(DeepLinkError):
    """The OS could not open the outbound URL (e.g. wallet app not installed)."""


class MalformedUrlError(DeepLinkError):
    pass


class RemoteError(DeepLinkError):
    """Error reported by the wallet through ``errorCode``/``errorMessage``."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(f"[{code}] {message}")
        self.code = code
        self.message = message
