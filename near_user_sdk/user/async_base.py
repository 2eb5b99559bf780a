"""
Asynchronous chain client contract.

``AsyncUser`` mirrors ``User`` one-for-one for code running inside an asyncio
event loop: every operation is a coroutine, and derived operations await the
primitive they are built on, so nothing here ever blocks the loop.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from .._rate_limited_log import rate_limited_log
from ..exceptions import NotFoundError, UserError
from ..models import (
    AccessKeyView, AccountView, BlockView, ExecutionOutcomeView,
    FinalExecutionOutcomeView, ViewStateResult
)
from ..signer.base import Signer
from ..signer.keys import PublicKey
from ..transaction import (
    AccessKey, Action, AddKey, DeleteAccount, DeleteKey, DeployContract,
    FunctionCall, Receipt, SignedTransaction, Stake, Transfer, ZERO_HASH
)
from ._concurrency import SignerHandle, SubmissionLocks, sign_actions, signer_public_key
from .base import create_account_actions, swap_key_actions


class AsyncUser(ABC):
    """
    Non-blocking chain client.

    Instances may be shared by any number of tasks on one event loop.
    Operations are never cancelled internally; wrap them in
    ``asyncio.wait_for`` to impose a deadline.
    """

    def __init__(self, signer: Signer, logger: Optional[logging.Logger] = None):
        self._signer_handle = SignerHandle(signer)
        self._submission_locks: SubmissionLocks[asyncio.Lock] = SubmissionLocks(asyncio.Lock)
        self.logger = logger or logging.getLogger(__name__)

    @abstractmethod
    async def view_account(self, account_id: str) -> AccountView:
        ...

    @abstractmethod
    async def view_state(self, account_id: str, prefix: bytes = b"") -> ViewStateResult:
        ...

    @abstractmethod
    async def add_transaction(self, signed_transaction: SignedTransaction) -> None:
        ...

    @abstractmethod
    async def commit_transaction(self, signed_transaction: SignedTransaction) -> FinalExecutionOutcomeView:
        ...

    @abstractmethod
    async def get_best_height(self) -> int:
        ...

    @abstractmethod
    async def get_best_block_hash(self) -> bytes:
        ...

    @abstractmethod
    async def get_block(self, height: int) -> Optional[BlockView]:
        ...

    @abstractmethod
    async def get_transaction_result(self, hash: bytes) -> ExecutionOutcomeView:
        ...

    @abstractmethod
    async def get_transaction_final_result(self, hash: bytes) -> FinalExecutionOutcomeView:
        ...

    @abstractmethod
    async def get_state_root(self) -> bytes:
        ...

    @abstractmethod
    async def get_access_key(self, account_id: str, public_key: PublicKey) -> AccessKeyView:
        ...

    async def view_balance(self, account_id: str) -> int:
        account = await self.view_account(account_id)
        return account.amount

    async def get_access_key_nonce_for_signer(
        self,
        account_id: str,
        public_key: Optional[PublicKey] = None
    ) -> int:
        if public_key is None:
            public_key = self.signer().public_key()
        access_key = await self.get_access_key(account_id, public_key)
        return access_key.nonce

    def signer(self) -> Signer:
        return self._signer_handle.get()

    def set_signer(self, signer: Signer) -> None:
        self._signer_handle.set(signer)
        self.logger.info(f"Signer replaced, now using key {signer.public_key()}")

    async def _reference_block_hash(self) -> bytes:
        try:
            return await self.get_best_block_hash()
        except UserError as e:
            rate_limited_log(
                f"Best block hash unavailable, signing with zero hash: {e}",
                logger_instance=self.logger
            )
            return ZERO_HASH

    async def _next_nonce(self, signer_id: str, public_key: PublicKey) -> int:
        try:
            current = await self.get_access_key_nonce_for_signer(signer_id, public_key)
        except NotFoundError:
            current = 0
        return current + 1

    async def sign_and_commit_actions(
        self,
        signer_id: str,
        receiver_id: str,
        actions: Sequence[Action]
    ) -> FinalExecutionOutcomeView:
        """
        Coroutine counterpart of ``User.sign_and_commit_actions``.

        Tasks submitting for the same signer key queue on an ``asyncio.Lock``
        so each observes the nonce left by the previous one.
        """
        actions = list(actions)
        if not actions:
            raise ValueError("actions must not be empty")

        signer = self.signer()
        public_key = signer_public_key(signer)
        async with self._submission_locks.hold_async(signer_id, public_key):
            block_hash = await self._reference_block_hash()
            nonce = await self._next_nonce(signer_id, public_key)
            signed_transaction = sign_actions(nonce, signer_id, receiver_id, signer, actions, block_hash)
            self.logger.debug(
                f"Committing transaction {signed_transaction.hash_str} "
                f"({signer_id} -> {receiver_id}, nonce {nonce}, {len(actions)} actions)"
            )
            return await self.commit_transaction(signed_transaction)

    async def send_money(self, signer_id: str, receiver_id: str, amount: int) -> FinalExecutionOutcomeView:
        return await self.sign_and_commit_actions(signer_id, receiver_id, [Transfer(deposit=amount)])

    async def deploy_contract(self, signer_id: str, code: bytes) -> FinalExecutionOutcomeView:
        return await self.sign_and_commit_actions(signer_id, signer_id, [DeployContract(code=code)])

    async def function_call(
        self,
        signer_id: str,
        contract_id: str,
        method_name: str,
        args: bytes,
        gas: int,
        deposit: int
    ) -> FinalExecutionOutcomeView:
        return await self.sign_and_commit_actions(
            signer_id,
            contract_id,
            [FunctionCall(method_name=method_name, args=args, gas=gas, deposit=deposit)],
        )

    async def create_account(
        self,
        signer_id: str,
        new_account_id: str,
        public_key: PublicKey,
        amount: int
    ) -> FinalExecutionOutcomeView:
        return await self.sign_and_commit_actions(
            signer_id, new_account_id, create_account_actions(public_key, amount)
        )

    async def add_key(self, signer_id: str, public_key: PublicKey, access_key: AccessKey) -> FinalExecutionOutcomeView:
        return await self.sign_and_commit_actions(
            signer_id, signer_id, [AddKey(public_key=public_key, access_key=access_key)]
        )

    async def delete_key(self, signer_id: str, public_key: PublicKey) -> FinalExecutionOutcomeView:
        return await self.sign_and_commit_actions(signer_id, signer_id, [DeleteKey(public_key=public_key)])

    async def swap_key(
        self,
        signer_id: str,
        old_public_key: PublicKey,
        new_public_key: PublicKey,
        access_key: AccessKey
    ) -> FinalExecutionOutcomeView:
        return await self.sign_and_commit_actions(
            signer_id, signer_id, swap_key_actions(old_public_key, new_public_key, access_key)
        )

    async def delete_account(self, signer_id: str, receiver_id: str) -> FinalExecutionOutcomeView:
        return await self.sign_and_commit_actions(
            signer_id, receiver_id, [DeleteAccount(beneficiary_id=signer_id)]
        )

    async def stake(self, signer_id: str, public_key: PublicKey, stake: int) -> FinalExecutionOutcomeView:
        return await self.sign_and_commit_actions(
            signer_id, signer_id, [Stake(stake=stake, public_key=public_key)]
        )


class AsyncReceiptInjector(ABC):
    """Coroutine counterpart of ``ReceiptInjector``; test backends only."""

    @abstractmethod
    async def add_receipt(self, receipt: Receipt) -> None:
        ...
