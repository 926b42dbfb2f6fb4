"""Security module for the deep-link SDK."""

from .keys import KeyPairProvider
from .payload_codec import (
    DecryptResult,
    EncryptedPayload,
    PayloadCodec,
    b58decode,
    b58encode,
)

__all__ = [
    "KeyPairProvider",
    "PayloadCodec",
    "EncryptedPayload",
    "DecryptResult",
    "b58encode",
    "b58decode",
]
