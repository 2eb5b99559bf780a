"""
Users bound to an ``InMemoryNode``.

Both talk to the node object directly. The async variant runs each node call
in a worker thread so that a large block does not stall the event loop.
"""
import asyncio
import logging
from typing import Optional

from ..models import (
    AccessKeyView, AccountView, BlockView, ExecutionOutcomeView,
    FinalExecutionOutcomeView, ViewStateResult
)
from ..signer.base import Signer
from ..signer.keys import PublicKey
from ..transaction import Receipt, SignedTransaction
from ..user.async_base import AsyncReceiptInjector, AsyncUser
from ..user.base import ReceiptInjector, User
from .node import InMemoryNode


class RuntimeUser(User, ReceiptInjector):
    """
    Blocking user executing against an in-process node.

    Args:
        account_id: Account this user acts for
        signer: Signer used for transactions built by this user
        node: Node shared with any other users of the same test
        logger: Optional logger instance
    """

    def __init__(
        self,
        account_id: str,
        signer: Signer,
        node: InMemoryNode,
        logger: Optional[logging.Logger] = None
    ):
        super().__init__(signer, logger=logger)
        self.account_id = account_id
        self.node = node

    def view_account(self, account_id: str) -> AccountView:
        return self.node.view_account(account_id)

    def view_state(self, account_id: str, prefix: bytes = b"") -> ViewStateResult:
        return self.node.view_state(account_id, prefix)

    def add_transaction(self, signed_transaction: SignedTransaction) -> None:
        self.node.submit_transaction(signed_transaction)

    def commit_transaction(self, signed_transaction: SignedTransaction) -> FinalExecutionOutcomeView:
        return self.node.commit_transaction(signed_transaction)

    def add_receipt(self, receipt: Receipt) -> None:
        self.node.add_receipt(receipt)

    def get_best_height(self) -> int:
        return self.node.best_height()

    def get_best_block_hash(self) -> bytes:
        return self.node.best_block_hash()

    def get_block(self, height: int) -> Optional[BlockView]:
        return self.node.get_block(height)

    def get_transaction_result(self, hash: bytes) -> ExecutionOutcomeView:
        return self.node.transaction_outcome(hash).outcome

    def get_transaction_final_result(self, hash: bytes) -> FinalExecutionOutcomeView:
        return self.node.final_outcome(hash)

    def get_state_root(self) -> bytes:
        return self.node.state_root()

    def get_access_key(self, account_id: str, public_key: PublicKey) -> AccessKeyView:
        return self.node.get_access_key(account_id, public_key)


class AsyncRuntimeUser(AsyncUser, AsyncReceiptInjector):
    """Coroutine counterpart of ``RuntimeUser``."""

    def __init__(
        self,
        account_id: str,
        signer: Signer,
        node: InMemoryNode,
        logger: Optional[logging.Logger] = None
    ):
        super().__init__(signer, logger=logger)
        self.account_id = account_id
        self.node = node

    async def view_account(self, account_id: str) -> AccountView:
        return await asyncio.to_thread(self.node.view_account, account_id)

    async def view_state(self, account_id: str, prefix: bytes = b"") -> ViewStateResult:
        return await asyncio.to_thread(self.node.view_state, account_id, prefix)

    async def add_transaction(self, signed_transaction: SignedTransaction) -> None:
        await asyncio.to_thread(self.node.submit_transaction, signed_transaction)

    async def commit_transaction(self, signed_transaction: SignedTransaction) -> FinalExecutionOutcomeView:
        return await asyncio.to_thread(self.node.commit_transaction, signed_transaction)

    async def add_receipt(self, receipt: Receipt) -> None:
        await asyncio.to_thread(self.node.add_receipt, receipt)

    async def get_best_height(self) -> int:
        return await asyncio.to_thread(self.node.best_height)

    async def get_best_block_hash(self) -> bytes:
        return await asyncio.to_thread(self.node.best_block_hash)

    async def get_block(self, height: int) -> Optional[BlockView]:
        return await asyncio.to_thread(self.node.get_block, height)

    async def get_transaction_result(self, hash: bytes) -> ExecutionOutcomeView:
        outcome = await asyncio.to_thread(self.node.transaction_outcome, hash)
        return outcome.outcome

    async def get_transaction_final_result(self, hash: bytes) -> FinalExecutionOutcomeView:
        return await asyncio.to_thread(self.node.final_outcome, hash)

    async def get_state_root(self) -> bytes:
        return await asyncio.to_thread(self.node.state_root)

    async def get_access_key(self, account_id: str, public_key: PublicKey) -> AccessKeyView:
        return await asyncio.to_thread(self.node.get_access_key, account_id, public_key)
