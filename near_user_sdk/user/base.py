"""
Synchronous chain client contract.

``User`` defines the blocking primitives every transport implements and
builds transaction submission and the convenience operations on top of them,
so the same nonce and ordering logic runs against any backend.
"""
import logging
import threading
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from .._rate_limited_log import rate_limited_log
from ..exceptions import NotFoundError, UserError
from ..models import (
    AccessKeyView, AccountView, BlockView, ExecutionOutcomeView,
    FinalExecutionOutcomeView, ViewStateResult
)
from ..signer.base import Signer
from ..signer.keys import PublicKey
from ..transaction import (
    AccessKey, Action, AddKey, CreateAccount, DeleteAccount, DeleteKey,
    DeployContract, FunctionCall, Receipt, SignedTransaction, Stake, Transfer,
    ZERO_HASH
)
from ._concurrency import SignerHandle, SubmissionLocks, sign_actions, signer_public_key


class User(ABC):
    """
    Blocking chain client.

    Subclasses implement the abstract queries and submission primitives;
    every query raises a ``UserError`` subclass on failure instead of
    returning a sentinel, except ``get_block`` which returns None for heights
    the node does not know.
    """

    def __init__(self, signer: Signer, logger: Optional[logging.Logger] = None):
        """
        Initialize the user

        Args:
            signer: Signer used for every transaction built by this user
            logger: Optional logger instance to use for debug/info logging
        """
        self._signer_handle = SignerHandle(signer)
        self._submission_locks: SubmissionLocks[threading.Lock] = SubmissionLocks(threading.Lock)
        self.logger = logger or logging.getLogger(__name__)

    # ── primitives ───────────────────────────────────────────────────────

    @abstractmethod
    def view_account(self, account_id: str) -> AccountView:
        """
        Fetch the current state of an account.

        Raises:
            NotFoundError: If the account does not exist
            TransportError: If the node cannot be queried
        """

    @abstractmethod
    def view_state(self, account_id: str, prefix: bytes = b"") -> ViewStateResult:
        """Fetch contract storage entries of ``account_id`` whose key starts with ``prefix``."""

    @abstractmethod
    def add_transaction(self, signed_transaction: SignedTransaction) -> None:
        """Submit a transaction without waiting for it to execute."""

    @abstractmethod
    def commit_transaction(self, signed_transaction: SignedTransaction) -> FinalExecutionOutcomeView:
        """
        Submit a transaction and block until its final outcome is known.

        Raises:
            RejectedError: If the node refuses the transaction
            TransportError: If the node cannot be reached
        """

    @abstractmethod
    def get_best_height(self) -> int:
        """Height of the latest block."""

    @abstractmethod
    def get_best_block_hash(self) -> bytes:
        """Hash of the latest block."""

    @abstractmethod
    def get_block(self, height: int) -> Optional[BlockView]:
        """Block at ``height``, or None if the node has no such block."""

    @abstractmethod
    def get_transaction_result(self, hash: bytes) -> ExecutionOutcomeView:
        """Outcome of the transaction itself, without waiting for its receipts."""

    @abstractmethod
    def get_transaction_final_result(self, hash: bytes) -> FinalExecutionOutcomeView:
        """Outcome of the transaction and every receipt it triggered."""

    @abstractmethod
    def get_state_root(self) -> bytes:
        """State root of the latest block."""

    @abstractmethod
    def get_access_key(self, account_id: str, public_key: PublicKey) -> AccessKeyView:
        """
        Fetch one access key of an account.

        Raises:
            NotFoundError: If the account has no such key
        """

    # ── derived queries ──────────────────────────────────────────────────

    def view_balance(self, account_id: str) -> int:
        return self.view_account(account_id).amount

    def get_access_key_nonce_for_signer(
        self,
        account_id: str,
        public_key: Optional[PublicKey] = None
    ) -> int:
        """
        Current nonce of the access key used for signing.

        Args:
            account_id: Account owning the key
            public_key: Key to look up (defaults to the active signer's key)
        """
        if public_key is None:
            public_key = self.signer().public_key()
        return self.get_access_key(account_id, public_key).nonce

    # ── signer ───────────────────────────────────────────────────────────

    def signer(self) -> Signer:
        return self._signer_handle.get()

    def set_signer(self, signer: Signer) -> None:
        """Replace the signer used by every operation issued from now on."""
        self._signer_handle.set(signer)
        self.logger.info(f"Signer replaced, now using key {signer.public_key()}")

    # ── transaction submission ───────────────────────────────────────────

    def _reference_block_hash(self) -> bytes:
        try:
            return self.get_best_block_hash()
        except UserError as e:
            rate_limited_log(
                f"Best block hash unavailable, signing with zero hash: {e}",
                logger_instance=self.logger
            )
            return ZERO_HASH

    def _next_nonce(self, signer_id: str, public_key: PublicKey) -> int:
        try:
            current = self.get_access_key_nonce_for_signer(signer_id, public_key)
        except NotFoundError:
            current = 0
        return current + 1

    def sign_and_commit_actions(
        self,
        signer_id: str,
        receiver_id: str,
        actions: Sequence[Action]
    ) -> FinalExecutionOutcomeView:
        """
        Build, sign and commit a transaction made of ``actions``.

        The block hash and nonce are fetched right before signing, while
        holding the submission lock of the signer's key, so serial callers
        sharing this user get consecutive nonces.

        Args:
            signer_id: Account signing the transaction
            receiver_id: Account the actions apply to
            actions: Non-empty list of actions, executed in this order

        Returns:
            Final execution outcome

        Raises:
            ValueError: If ``actions`` is empty
            SigningError: If the transaction cannot be built or signed
            RejectedError: If the node refuses the transaction
            TransportError: If the node cannot be reached
        """
        actions = list(actions)
        if not actions:
            raise ValueError("actions must not be empty")

        signer = self.signer()
        public_key = signer_public_key(signer)
        with self._submission_locks.hold(signer_id, public_key):
            block_hash = self._reference_block_hash()
            nonce = self._next_nonce(signer_id, public_key)
            signed_transaction = sign_actions(nonce, signer_id, receiver_id, signer, actions, block_hash)
            self.logger.debug(
                f"Committing transaction {signed_transaction.hash_str} "
                f"({signer_id} -> {receiver_id}, nonce {nonce}, {len(actions)} actions)"
            )
            return self.commit_transaction(signed_transaction)

    # ── convenience operations ───────────────────────────────────────────

    def send_money(self, signer_id: str, receiver_id: str, amount: int) -> FinalExecutionOutcomeView:
        return self.sign_and_commit_actions(signer_id, receiver_id, [Transfer(deposit=amount)])

    def deploy_contract(self, signer_id: str, code: bytes) -> FinalExecutionOutcomeView:
        return self.sign_and_commit_actions(signer_id, signer_id, [DeployContract(code=code)])

    def function_call(
        self,
        signer_id: str,
        contract_id: str,
        method_name: str,
        args: bytes,
        gas: int,
        deposit: int
    ) -> FinalExecutionOutcomeView:
        return self.sign_and_commit_actions(
            signer_id,
            contract_id,
            [FunctionCall(method_name=method_name, args=args, gas=gas, deposit=deposit)],
        )

    def create_account(
        self,
        signer_id: str,
        new_account_id: str,
        public_key: PublicKey,
        amount: int
    ) -> FinalExecutionOutcomeView:
        """
        Create ``new_account_id``, fund it with ``amount`` and give
        ``public_key`` full access, in that order.
        """
        return self.sign_and_commit_actions(signer_id, new_account_id, create_account_actions(public_key, amount))

    def add_key(self, signer_id: str, public_key: PublicKey, access_key: AccessKey) -> FinalExecutionOutcomeView:
        return self.sign_and_commit_actions(
            signer_id, signer_id, [AddKey(public_key=public_key, access_key=access_key)]
        )

    def delete_key(self, signer_id: str, public_key: PublicKey) -> FinalExecutionOutcomeView:
        return self.sign_and_commit_actions(signer_id, signer_id, [DeleteKey(public_key=public_key)])

    def swap_key(
        self,
        signer_id: str,
        old_public_key: PublicKey,
        new_public_key: PublicKey,
        access_key: AccessKey
    ) -> FinalExecutionOutcomeView:
        """Delete ``old_public_key`` then add ``new_public_key`` in one transaction."""
        return self.sign_and_commit_actions(
            signer_id, signer_id, swap_key_actions(old_public_key, new_public_key, access_key)
        )

    def delete_account(self, signer_id: str, receiver_id: str) -> FinalExecutionOutcomeView:
        """Delete ``receiver_id``; its remaining balance goes to ``signer_id``."""
        return self.sign_and_commit_actions(
            signer_id, receiver_id, [DeleteAccount(beneficiary_id=signer_id)]
        )

    def stake(self, signer_id: str, public_key: PublicKey, stake: int) -> FinalExecutionOutcomeView:
        return self.sign_and_commit_actions(
            signer_id, signer_id, [Stake(stake=stake, public_key=public_key)]
        )


class ReceiptInjector(ABC):
    """
    Test-only capability: apply a receipt directly, bypassing transactions.

    Only in-process test backends implement this; RPC users never do.
    """

    @abstractmethod
    def add_receipt(self, receipt: Receipt) -> None:
        """Queue ``receipt`` for execution in the next block."""


def create_account_actions(public_key: PublicKey, amount: int) -> List[Action]:
    return [
        CreateAccount(),
        Transfer(deposit=amount),
        AddKey(public_key=public_key, access_key=AccessKey.full_access()),
    ]


def swap_key_actions(old_public_key: PublicKey, new_public_key: PublicKey, access_key: AccessKey) -> List[Action]:
    return [
        DeleteKey(public_key=old_public_key),
        AddKey(public_key=new_public_key, access_key=access_key),
    ]
