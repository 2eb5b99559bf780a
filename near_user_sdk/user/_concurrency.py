"""
Shared-state helpers for users: the replaceable signer and the per-key
submission locks that keep nonces from colliding.
"""
import contextlib
import threading
from typing import AsyncIterator, Callable, Dict, Generic, Iterator, Tuple, TypeVar

from ..exceptions import SigningError
from ..signer.base import Signer
from ..signer.keys import PublicKey
from ..transaction import SignedTransaction

L = TypeVar('L')


class SignerHandle:
    """
    Guarded cell holding the active signer.

    ``get`` returns the signer current at call time; callers keep that object
    for the rest of their operation, so a later ``set`` never affects work
    already in flight.
    """

    def __init__(self, signer: Signer):
        self._signer = signer
        self._lock = threading.RLock()

    def get(self) -> Signer:
        with self._lock:
            return self._signer

    def set(self, signer: Signer) -> None:
        with self._lock:
            self._signer = signer


class SubmissionLocks(Generic[L]):
    """
    One lock per (account id, public key) pair, created on first use.

    A pair's lock is dropped once no caller holds or waits on it, so rotated
    keys leave nothing behind.

    Args:
        factory: Lock constructor (``threading.Lock`` or ``asyncio.Lock``)
    """

    def __init__(self, factory: Callable[[], L]):
        self._factory = factory
        self._locks: Dict[Tuple[str, PublicKey], L] = {}
        self._users: Dict[Tuple[str, PublicKey], int] = {}
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def _checkout(self, key: Tuple[str, PublicKey]) -> L:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = self._factory()
            self._users[key] = self._users.get(key, 0) + 1
            return lock

    def _release(self, key: Tuple[str, PublicKey]) -> None:
        with self._guard:
            remaining = self._users[key] - 1
            if remaining:
                self._users[key] = remaining
            else:
                del self._users[key]
                del self._locks[key]

    @contextlib.contextmanager
    def hold(self, account_id: str, public_key: PublicKey) -> Iterator[None]:
        """Hold the pair's ``threading.Lock`` for the duration of the block."""
        key = (account_id, public_key)
        lock = self._checkout(key)
        try:
            with lock:
                yield
        finally:
            self._release(key)

    @contextlib.asynccontextmanager
    async def hold_async(self, account_id: str, public_key: PublicKey) -> AsyncIterator[None]:
        """Coroutine form of ``hold`` for ``asyncio.Lock`` tables."""
        key = (account_id, public_key)
        lock = self._checkout(key)
        try:
            async with lock:
                yield
        finally:
            self._release(key)


def sign_actions(
    nonce: int,
    signer_id: str,
    receiver_id: str,
    signer: Signer,
    actions,
    block_hash: bytes
) -> SignedTransaction:
    """
    Build and sign a transaction, folding every failure into ``SigningError``.
    """
    try:
        return SignedTransaction.from_actions(nonce, signer_id, receiver_id, signer, actions, block_hash)
    except Exception as e:
        raise SigningError(f"Failed to sign transaction: {e}") from e


def signer_public_key(signer: Signer) -> PublicKey:
    try:
        return signer.public_key()
    except Exception as e:
        raise SigningError(f"Failed to read signer public key: {e}") from e
