"""
Blocking user talking to a node over JSON-RPC with ``requests``.
"""
import logging
from typing import Any, Optional

import requests

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
from .base import User


class RpcUser(User):
    """
    User backed by a node's JSON-RPC endpoint.

    No request is retried; failures surface as ``TransportError`` (or the
    mapped ``NotFoundError``/``RejectedError``) on the first attempt.
    """

    def __init__(
        self,
        addr: Optional[str],
        account_id: Optional[str],
        signer: Signer,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the RPC user

        Args:
            addr: Node URL or ``host:port`` (defaults to ``NEAR_RPC_URL`` or a local node)
            account_id: Default sender for transaction status lookups
                (defaults to the signer's account)
            signer: Signer used for transactions built by this user
            timeout: Per-request timeout in seconds (defaults to ``NEAR_RPC_TIMEOUT``, else none)
            session: Optional pre-configured ``requests.Session``
            logger: Optional logger instance to use for debug/info logging

        Raises:
            ValueError: If the URL is not allowed
        """
        super().__init__(signer, logger=logger)
        self.rpc_url = _rpc.resolve_rpc_url(addr)
        self.account_id = account_id or signer.account_id
        self.timeout = _rpc.resolve_timeout(timeout)
        self.session = session or requests.Session()
        self.logger.debug(f"Initialized RPC user {self.account_id} for {self.rpc_url}")

    def _call(self, method: str, params: Any) -> Any:
        payload = _rpc.build_request(method, params)
        self.logger.debug(f"RPC {method} -> {self.rpc_url}")
        try:
            response = self.session.post(self.rpc_url, json=payload, timeout=self.timeout)
        except requests.Timeout as e:
            raise TransportError(f"RPC {method} timed out: {e}") from e
        except requests.RequestException as e:
            rate_limited_log(f"Node {self.rpc_url} unreachable: {e}", logger_instance=self.logger)
            raise TransportError(f"RPC {method} failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(
                f"Invalid JSON response to {method} (HTTP {response.status_code}): {e}"
            ) from e
        return _rpc.parse_response(method, body)

    def get_status(self) -> StatusView:
        return _rpc.validate(StatusView, self._call("status", []), "status")

    def view_account(self, account_id: str) -> AccountView:
        result = self._call("query", _rpc.view_account_params(account_id))
        return _rpc.validate(AccountView, result, "view_account")

    def view_state(self, account_id: str, prefix: bytes = b"") -> ViewStateResult:
        result = self._call("query", _rpc.view_state_params(account_id, prefix))
        return _rpc.validate(ViewStateResult, result, "view_state")

    def add_transaction(self, signed_transaction: SignedTransaction) -> None:
        tx_hash = self._call("broadcast_tx_async", [signed_transaction.to_base64()])
        self.logger.debug(f"Transaction sent: {tx_hash}")

    def commit_transaction(self, signed_transaction: SignedTransaction) -> FinalExecutionOutcomeView:
        result = self._call("broadcast_tx_commit", [signed_transaction.to_base64()])
        outcome = _rpc.validate(FinalExecutionOutcomeView, result, "broadcast_tx_commit")
        self.logger.info(f"Transaction committed: {outcome.transaction_hash} ({outcome.status.kind.value})")
        return outcome

    def get_best_height(self) -> int:
        return self.get_status().sync_info.latest_block_height

    def get_best_block_hash(self) -> bytes:
        return _rpc.decode_hash(self.get_status().sync_info.latest_block_hash, "block hash")

    def get_block(self, height: int) -> Optional[BlockView]:
        try:
            result = self._call("block", _rpc.block_params(height))
        except NotFoundError:
            return None
        return _rpc.validate(BlockView, result, "block")

    def get_transaction_result(self, hash: bytes, sender_id: Optional[str] = None) -> ExecutionOutcomeView:
        return self.get_transaction_final_result(hash, sender_id).transaction_outcome.outcome

    def get_transaction_final_result(
        self,
        hash: bytes,
        sender_id: Optional[str] = None
    ) -> FinalExecutionOutcomeView:
        result = self._call("tx", _rpc.tx_status_params(hash, sender_id or self.account_id))
        return _rpc.validate(FinalExecutionOutcomeView, result, "tx")

    def get_state_root(self) -> bytes:
        status = self.get_status()
        if status.sync_info.latest_state_root:
            return _rpc.decode_hash(status.sync_info.latest_state_root, "state root")
        block = _rpc.validate(BlockView, self._call("block", _rpc.block_params()), "block")
        return _rpc.decode_hash(block.header.prev_state_root, "state root")

    def get_access_key(self, account_id: str, public_key: PublicKey) -> AccessKeyView:
        result = self._call("query", _rpc.view_access_key_params(account_id, public_key))
        return _rpc.validate(AccessKeyView, result, "view_access_key")

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()

    def __enter__(self) -> "RpcUser":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
