"""
In-memory signer holding a secret key for one account.
"""
import os
import logging
from typing import Optional

import base58
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from eth_keys import keys as eth_keys

from .keys import KeyType, PublicKey, Signature

logger = logging.getLogger(__name__)

SECRET_LENGTH = 32


def _secret_from_seed(seed: str) -> bytes:
    # The seed bytes, truncated or zero-padded, are the secret itself
    return seed.encode("utf-8")[:SECRET_LENGTH].ljust(SECRET_LENGTH, b"\x00")


class InMemorySigner:
    """
    Signer backed by a raw secret kept in process memory.

    ED25519 keys use ``cryptography``; SECP256K1 keys use ``eth-keys`` and sign
    32-byte digests with a recoverable 65-byte signature.
    """

    def __init__(self, account_id: str, key_type: KeyType, secret: bytes):
        """
        Initialize the signer

        Args:
            account_id: Account this signer acts for
            key_type: Curve of the secret
            secret: 32 raw secret bytes

        Raises:
            ValueError: If the secret has the wrong length
        """
        if len(secret) != SECRET_LENGTH:
            raise ValueError(f"Secret must be {SECRET_LENGTH} bytes, got {len(secret)}")
        self.account_id = account_id
        self.key_type = KeyType(key_type)
        self._secret = secret

        if self.key_type == KeyType.ED25519:
            self._private_key = Ed25519PrivateKey.from_private_bytes(secret)
            raw = self._private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
        else:
            self._private_key = eth_keys.PrivateKey(secret)
            raw = self._private_key.public_key.to_bytes()
        self._public_key = PublicKey(self.key_type, raw)

    @classmethod
    def from_seed(
        cls,
        account_id: str,
        key_type: KeyType = KeyType.ED25519,
        seed: Optional[str] = None
    ) -> "InMemorySigner":
        """
        Derive a deterministic signer from a seed string.

        Args:
            account_id: Account this signer acts for
            key_type: Curve of the derived key
            seed: Seed text (defaults to the account id)
        """
        return cls(account_id, key_type, _secret_from_seed(seed if seed is not None else account_id))

    @classmethod
    def from_random(cls, account_id: str, key_type: KeyType = KeyType.ED25519) -> "InMemorySigner":
        """Create a signer with a fresh random secret."""
        signer = cls(account_id, key_type, os.urandom(SECRET_LENGTH))
        logger.debug(f"Generated random key {signer.public_key()} for {account_id}")
        return signer

    @classmethod
    def from_secret_key(cls, account_id: str, secret_key: str) -> "InMemorySigner":
        """
        Load a signer from ``ed25519:<base58>`` secret key text.

        ED25519 secret keys carry the 32-byte secret followed by the public
        key; only the first 32 bytes are used.
        """
        prefix, _, encoded = secret_key.rpartition(":")
        key_type = KeyType.from_prefix(prefix) if prefix else KeyType.ED25519
        raw = base58.b58decode(encoded)
        return cls(account_id, key_type, raw[:SECRET_LENGTH])

    def public_key(self) -> PublicKey:
        return self._public_key

    def sign(self, data: bytes) -> Signature:
        """
        Sign raw bytes.

        Raises:
            ValueError: If a SECP256K1 signer is given anything but a 32-byte digest
        """
        if self.key_type == KeyType.ED25519:
            return Signature(KeyType.ED25519, self._private_key.sign(data))
        if len(data) != 32:
            raise ValueError("secp256k1 signers sign 32-byte digests only")
        return Signature(KeyType.SECP256K1, self._private_key.sign_msg_hash(data).to_bytes())

    def secret_key_string(self) -> str:
        """Render the secret in the ``<curve>:<base58>`` form accepted by ``from_secret_key``."""
        raw = self._secret
        if self.key_type == KeyType.ED25519:
            raw = raw + self._public_key.data
        return f"{self.key_type.prefix}:{base58.b58encode(raw).decode('ascii')}"

    def __repr__(self) -> str:
        return f"InMemorySigner(account_id={self.account_id!r}, public_key={self._public_key})"
