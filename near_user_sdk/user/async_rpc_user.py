"""
Non-blocking user talking to a node over JSON-RPC with ``httpx``.
"""
import logging
from typing import Any, Optional

import httpx

from .._rate_limited_log import rate_limited_log
from ..exceptions import NotFoundError, TransportError
from ..models import (
    AccessKeyView, AccountView, BlockView, ExecutionOutcomeView,
    FinalExecutionOutcomeView, StatusView, ViewStateResult
)
from ..signer.base import Signer
from ..signer.keys import PublicKey
from ..transaction import SignedTransaction
from . import _rpc
from .async_base import AsyncUser


class AsyncRpcUser(AsyncUser):
    """
    Coroutine counterpart of ``RpcUser``.

    Use as ``async with AsyncRpcUser(...) as user:`` or call ``aclose()``
    when done.
    """

    def __init__(
        self,
        addr: Optional[str],
        account_id: Optional[str],
        signer: Signer,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
        logger: Optional[logging.Logger] = None
    ):
        super().__init__(signer, logger=logger)
        self.rpc_url = _rpc.resolve_rpc_url(addr)
        self.account_id = account_id or signer.account_id
        self.timeout = _rpc.resolve_timeout(timeout)
        self.client = client or httpx.AsyncClient(timeout=self.timeout)

    async def _call(self, method: str, params: Any) -> Any:
        payload = _rpc.build_request(method, params)
        self.logger.debug(f"RPC {method} -> {self.rpc_url}")
        try:
            response = await self.client.post(self.rpc_url, json=payload)
        except httpx.TimeoutException as e:
            raise TransportError(f"RPC {method} timed out: {e}") from e
        except httpx.HTTPError as e:
            rate_limited_log(f"Node {self.rpc_url} unreachable: {e}", logger_instance=self.logger)
            raise TransportError(f"RPC {method} failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(
                f"Invalid JSON response to {method} (HTTP {response.status_code}): {e}"
            ) from e
        return _rpc.parse_response(method, body)

    async def get_status(self) -> StatusView:
        return _rpc.validate(StatusView, await self._call("status", []), "status")

    async def view_account(self, account_id: str) -> AccountView:
        result = await self._call("query", _rpc.view_account_params(account_id))
        return _rpc.validate(AccountView, result, "view_account")

    async def view_state(self, account_id: str, prefix: bytes = b"") -> ViewStateResult:
        result = await self._call("query", _rpc.view_state_params(account_id, prefix))
        return _rpc.validate(ViewStateResult, result, "view_state")

    async def add_transaction(self, signed_transaction: SignedTransaction) -> None:
        tx_hash = await self._call("broadcast_tx_async", [signed_transaction.to_base64()])
        self.logger.debug(f"Transaction sent: {tx_hash}")

    async def commit_transaction(self, signed_transaction: SignedTransaction) -> FinalExecutionOutcomeView:
        result = await self._call("broadcast_tx_commit", [signed_transaction.to_base64()])
        outcome = _rpc.validate(FinalExecutionOutcomeView, result, "broadcast_tx_commit")
        self.logger.info(f"Transaction committed: {outcome.transaction_hash} ({outcome.status.kind.value})")
        return outcome

    async def get_best_height(self) -> int:
        status = await self.get_status()
        return status.sync_info.latest_block_height

    async def get_best_block_hash(self) -> bytes:
        status = await self.get_status()
        return _rpc.decode_hash(status.sync_info.latest_block_hash, "block hash")

    async def get_block(self, height: int) -> Optional[BlockView]:
        try:
            result = await self._call("block", _rpc.block_params(height))
        except NotFoundError:
            return None
        return _rpc.validate(BlockView, result, "block")

    async def get_transaction_result(self, hash: bytes, sender_id: Optional[str] = None) -> ExecutionOutcomeView:
        final = await self.get_transaction_final_result(hash, sender_id)
        return final.transaction_outcome.outcome

    async def get_transaction_final_result(
        self,
        hash: bytes,
        sender_id: Optional[str] = None
    ) -> FinalExecutionOutcomeView:
        result = await self._call("tx", _rpc.tx_status_params(hash, sender_id or self.account_id))
        return _rpc.validate(FinalExecutionOutcomeView, result, "tx")

    async def get_state_root(self) -> bytes:
        status = await self.get_status()
        if status.sync_info.latest_state_root:
            return _rpc.decode_hash(status.sync_info.latest_state_root, "state root")
        result = await self._call("block", _rpc.block_params())
        block = _rpc.validate(BlockView, result, "block")
        return _rpc.decode_hash(block.header.prev_state_root, "state root")

    async def get_access_key(self, account_id: str, public_key: PublicKey) -> AccessKeyView:
        result = await self._call("query", _rpc.view_access_key_params(account_id, public_key))
        return _rpc.validate(AccessKeyView, result, "view_access_key")

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "AsyncRpcUser":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
