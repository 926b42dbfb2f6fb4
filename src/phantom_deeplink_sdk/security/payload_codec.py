"""Payload encryption for deep-link requests and responses.

Payloads are JSON, UTF-8 encoded, sealed with NaCl ``box`` (X25519 +
XSalsa20-Poly1305) under a precomputed shared key, and carried on the wire as
base58 strings.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import base58
from nacl.bindings import (
    crypto_box_afternm,
    crypto_box_beforenm,
    crypto_box_NONCEBYTES,
    crypto_box_open_afternm,
    crypto_box_PUBLICKEYBYTES,
)
from nacl.exceptions import CryptoError
from nacl.utils import random as random_bytes

from ..errors import DecryptionError, KeyExchangeError, PreconditionError

logger = logging.getLogger(__name__)


def b58encode(data: bytes) -> str:
    return base58.b58encode(data).decode("ascii")


def b58decode(value: str) -> bytes:
    return base58.b58decode(value)


@dataclass
class EncryptedPayload:
    """Encrypted request payload."""

    nonce: bytes
    ciphertext: bytes

    def to_params(self) -> dict[str, str]:
        """Convert to the base58 query parameters sent to the wallet."""
        return {
            "nonce": b58encode(self.nonce),
            "payload": b58encode(self.ciphertext),
        }


@dataclass
class DecryptResult:
    """Outcome of opening an inbound payload."""

    payload: Any = None
    error: DecryptionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class PayloadCodec:
    """Handles key agreement and payload encryption/decryption."""

    def derive_shared_secret(self, remote_public_key_b58: str, local_secret_key: bytes) -> bytes:
        """Derive the precomputed box key shared with the wallet."""
        try:
            remote_public_key = b58decode(remote_public_key_b58)
        except ValueError as err:
            raise KeyExchangeError("Wallet public key is not valid base58") from err
        if len(remote_public_key) != crypto_box_PUBLICKEYBYTES:
            raise KeyExchangeError(
                f"Wallet public key must be {crypto_box_PUBLICKEYBYTES} bytes, "
                f"got {len(remote_public_key)}"
            )
        try:
            return crypto_box_beforenm(remote_public_key, local_secret_key)
        except CryptoError as err:
            raise KeyExchangeError(f"Key agreement failed: {err}") from err

    def encrypt(self, payload: Any, shared_secret: bytes | None) -> tuple[bytes, bytes]:
        """Encrypt a JSON payload with a fresh 24-byte nonce."""
        if not shared_secret:
            raise PreconditionError("missing shared secret")

        nonce = random_bytes(crypto_box_NONCEBYTES)
        plaintext = json.dumps(payload).encode("utf-8")
        ciphertext = crypto_box_afternm(plaintext, nonce, shared_secret)
        return nonce, ciphertext

    def seal(self, payload: Any, shared_secret: bytes | None) -> EncryptedPayload:
        nonce, ciphertext = self.encrypt(payload, shared_secret)
        return EncryptedPayload(nonce=nonce, ciphertext=ciphertext)

    def open(self, data_b58: str, nonce_b58: str, shared_secret: bytes | None) -> DecryptResult:
        """Decrypt an inbound payload, reporting failure as a result instead of raising."""
        if not shared_secret:
            return DecryptResult(error=DecryptionError("missing shared secret"))

        try:
            ciphertext = b58decode(data_b58)
            nonce = b58decode(nonce_b58)
        except ValueError as err:
            return DecryptResult(error=DecryptionError(f"Invalid base58 encoding: {err}"))

        try:
            plaintext = crypto_box_open_afternm(ciphertext, nonce, shared_secret)
        except CryptoError as err:
            return DecryptResult(error=DecryptionError(f"Unable to decrypt data: {err}"))

        try:
            return DecryptResult(payload=json.loads(plaintext.decode("utf-8")))
        except ValueError as err:
            return DecryptResult(error=DecryptionError(f"Decrypted payload is not JSON: {err}"))

    def decrypt(self, data_b58: str, nonce_b58: str, shared_secret: bytes | None) -> Any | None:
        result = self.open(data_b58, nonce_b58, shared_secret)
        if not result.ok:
            logger.warning(f"❌ Decryption failed: {result.error}")
            return None
        return result.payload

    @staticmethod
    def encode_message(text: str) -> str:
        return b58encode(text.encode("utf-8"))
