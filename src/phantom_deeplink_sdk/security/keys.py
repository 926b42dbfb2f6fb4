from __future__ import annotations

from nacl.bindings import crypto_box_keypair, crypto_box_SECRETKEYBYTES, crypto_scalarmult_base

from ..types import KeyPair


class KeyPairProvider:
    """Generates the dApp's X25519 box key pair for a connection attempt."""

    def generate(self) -> KeyPair:
        public_key, secret_key = crypto_box_keypair()
        return KeyPair(public_key=public_key, secret_key=secret_key)

    def from_secret_key(self, secret_key: bytes) -> KeyPair:
        """Rebuild a key pair from a persisted secret key."""
        if len(secret_key) != crypto_box_SECRETKEYBYTES:
            raise ValueError("Invalid secret key length")
        return KeyPair(public_key=crypto_scalarmult_base(secret_key), secret_key=secret_key)
