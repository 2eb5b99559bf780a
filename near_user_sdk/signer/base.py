"""
Signer capability consumed by the transaction builder.
"""
from typing import Protocol, runtime_checkable

from .keys import PublicKey, Signature


@runtime_checkable
class Signer(Protocol):
    """Protocol for custom signers"""
    account_id: str

    def public_key(self) -> PublicKey:
        """Return the public key whose access key authorizes transactions"""
        ...

    def sign(self, data: bytes) -> Signature:
        """Sign ``data`` (a transaction hash) and return the signature"""
        ...
