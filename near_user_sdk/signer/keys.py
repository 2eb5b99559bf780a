"""
Public key and signature types.

Both are rendered the way the node expects them in JSON, ``<curve>:<base58>``,
and serialized as a one-byte curve tag followed by the raw bytes.
"""
from dataclasses import dataclass
from enum import IntEnum
from typing import Tuple

import base58
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from eth_keys import keys as eth_keys
from eth_keys.exceptions import BadSignature, ValidationError


class KeyType(IntEnum):
    """Curves supported by access keys. Values are the wire tags."""
    ED25519 = 0
    SECP256K1 = 1

    @property
    def prefix(self) -> str:
        return self.name.lower()

    @classmethod
    def from_prefix(cls, prefix: str) -> "KeyType":
        try:
            return cls[prefix.upper()]
        except KeyError:
            raise ValueError(f"Unknown key type: {prefix}")


PUBLIC_KEY_LENGTHS = {KeyType.ED25519: 32, KeyType.SECP256K1: 64}
SIGNATURE_LENGTHS = {KeyType.ED25519: 64, KeyType.SECP256K1: 65}


def _parse_prefixed(text: str) -> Tuple[KeyType, bytes]:
    # Keys without a prefix are ED25519
    if ":" in text:
        prefix, encoded = text.split(":", 1)
        key_type = KeyType.from_prefix(prefix)
    else:
        key_type, encoded = KeyType.ED25519, text
    try:
        return key_type, base58.b58decode(encoded)
    except ValueError as e:
        raise ValueError(f"Invalid base58 data in {text!r}: {e}")


@dataclass(frozen=True)
class Signature:
    """A signature produced by a ``Signer``."""
    key_type: KeyType
    data: bytes

    def __post_init__(self):
        expected = SIGNATURE_LENGTHS[self.key_type]
        if len(self.data) != expected:
            raise ValueError(
                f"{self.key_type.prefix} signature must be {expected} bytes, got {len(self.data)}"
            )

    @classmethod
    def from_string(cls, text: str) -> "Signature":
        key_type, data = _parse_prefixed(text)
        return cls(key_type, data)

    def __str__(self) -> str:
        return f"{self.key_type.prefix}:{base58.b58encode(self.data).decode('ascii')}"


@dataclass(frozen=True)
class PublicKey:
    """
    Public half of an access key.

    Attributes:
        key_type: Curve of the key
        data: Raw key bytes (32 for ED25519, 64 uncompressed for SECP256K1)
    """
    key_type: KeyType
    data: bytes

    def __post_init__(self):
        expected = PUBLIC_KEY_LENGTHS[self.key_type]
        if len(self.data) != expected:
            raise ValueError(
                f"{self.key_type.prefix} public key must be {expected} bytes, got {len(self.data)}"
            )

    @classmethod
    def from_string(cls, text: str) -> "PublicKey":
        """
        Parse ``ed25519:<base58>`` / ``secp256k1:<base58>``.

        Raises:
            ValueError: If the prefix, encoding or length is invalid
        """
        key_type, data = _parse_prefixed(text)
        return cls(key_type, data)

    def verify(self, data: bytes, signature: Signature) -> bool:
        """
        Check ``signature`` over ``data`` against this key.

        SECP256K1 signatures are over a 32-byte digest, as produced for
        transaction hashes.
        """
        if signature.key_type != self.key_type:
            return False
        if self.key_type == KeyType.ED25519:
            try:
                Ed25519PublicKey.from_public_bytes(self.data).verify(signature.data, data)
                return True
            except InvalidSignature:
                return False
        try:
            eth_signature = eth_keys.Signature(signature_bytes=signature.data)
            return eth_signature.verify_msg_hash(data, eth_keys.PublicKey(self.data))
        except (BadSignature, ValidationError, ValueError):
            return False

    def __str__(self) -> str:
        return f"{self.key_type.prefix}:{base58.b58encode(self.data).decode('ascii')}"
