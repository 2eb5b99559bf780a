"""
Exceptions for the NEAR user SDK.

Every failure surfaced by a user (sync or async) is a ``UserError``. The
``kind`` attribute lets callers branch on the coarse cause without parsing
messages.
"""
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """
    Coarse failure categories shared by every transport.
    """
    TRANSPORT = "TRANSPORT"
    SIGNING = "SIGNING"
    NOT_FOUND = "NOT_FOUND"
    REJECTED = "REJECTED"


class UserError(Exception):
    """Base exception for chain client errors."""

    kind: ErrorKind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        cause_name: Optional[str] = None,
        data: Any = None,
        kind: Optional[ErrorKind] = None
    ):
        self.message = message
        self.cause_name = cause_name
        self.data = data
        if kind is not None:
            self.kind = kind
        super().__init__(message)


class TransportError(UserError):
    """Raised when the node is unreachable or returns a malformed response."""
    kind = ErrorKind.TRANSPORT


class SigningError(UserError):
    """Raised when a transaction cannot be serialized or signed."""
    kind = ErrorKind.SIGNING


class NotFoundError(UserError):
    """Raised when a queried account, access key or transaction does not exist."""
    kind = ErrorKind.NOT_FOUND


class RejectedError(UserError):
    """Raised when the node refuses a transaction (bad nonce, signature, balance...)."""
    kind = ErrorKind.REJECTED
