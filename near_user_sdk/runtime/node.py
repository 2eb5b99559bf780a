"""
In-process node used as a test backend.

``InMemoryNode`` keeps accounts, access keys, contract storage and a block
history in memory, and applies transactions with the checks a real node
performs on signatures, nonces, access key permissions and balances.

Contract code is never executed. ``FunctionCall`` actions are dispatched to
host-side handlers registered per account with ``register_contract``.

Execution follows the usual two steps: a block first converts pooled
transactions into receipts (bumping the key nonce and charging deposits),
then applies every queued receipt. Receipts emitted while applying a receipt
(refunds, the beneficiary transfer of ``DeleteAccount``) run in the next
block. There is no gas accounting.
"""
import base64
import copy
import hashlib
import json
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ..exceptions import NotFoundError, RejectedError
from ..models import (
    AccessKeyView, AccountView, BlockHeaderView, BlockView, ExecutionOutcomeView,
    ExecutionOutcomeWithIdView, ExecutionStatus, FinalExecutionOutcomeView,
    StateItem, StatusKind, TransactionView, ViewStateResult
)
from ..serialize import BinaryWriter
from ..signer.keys import PublicKey
from ..transaction import (
    AccessKey, Action, ActionReceipt, AddKey, CreateAccount, DeleteAccount,
    DeleteKey, DeployContract, FunctionCall, FunctionCallPermission, Receipt,
    SignedTransaction, Stake, SYSTEM_ACCOUNT, Transfer, ZERO_HASH, hash_to_str
)

# Upper bound on blocks produced while waiting for one commit to settle
MAX_BLOCKS_PER_COMMIT = 64

INVALID_TRANSACTION = "INVALID_TRANSACTION"


class ActionError(Exception):
    """
    Raised while applying a receipt. The whole receipt is rolled back.

    Attributes:
        index: Position of the failing action in the receipt
        kind: Error object in the node's JSON form
    """

    def __init__(self, index: int, kind: Any):
        self.index = index
        self.kind = kind
        super().__init__(f"Action #{index} failed: {kind}")

    def to_view(self) -> Dict[str, Any]:
        return {"ActionError": {"index": self.index, "kind": self.kind}}


@dataclass
class CallContext:
    """
    What a contract handler sees of the call it serves.

    ``storage`` is the contract account's own storage; changes are kept only
    if the whole receipt succeeds.
    """
    account_id: str
    predecessor_id: str
    signer_id: str
    method_name: str
    args: bytes
    deposit: int
    gas: int
    storage: Dict[bytes, bytes]
    logs: List[str] = field(default_factory=list)

    def log(self, message: str) -> None:
        self.logs.append(message)

    def json_args(self) -> Any:
        """Arguments decoded as JSON (an empty payload gives an empty dict)."""
        if not self.args:
            return {}
        return json.loads(self.args.decode("utf-8"))


ContractMethod = Callable[[CallContext], Optional[bytes]]


@dataclass
class _Account:
    amount: int
    locked: int = 0
    code: bytes = b""
    storage: Dict[bytes, bytes] = field(default_factory=dict)
    access_keys: Dict[PublicKey, AccessKey] = field(default_factory=dict)

    def code_hash(self) -> bytes:
        return hashlib.sha256(self.code).digest() if self.code else ZERO_HASH

    def storage_usage(self) -> int:
        usage = len(self.code)
        for key, value in self.storage.items():
            usage += len(key) + len(value)
        return usage


@dataclass(frozen=True)
class _Block:
    height: int
    hash: bytes
    prev_hash: bytes
    prev_state_root: bytes
    timestamp: int
    transactions: Tuple[str, ...] = ()
    receipts: Tuple[str, ...] = ()

    def to_view(self, author: str) -> BlockView:
        return BlockView(
            author=author,
            header=BlockHeaderView(
                height=self.height,
                hash=hash_to_str(self.hash),
                prev_hash=hash_to_str(self.prev_hash),
                prev_state_root=hash_to_str(self.prev_state_root),
                timestamp=self.timestamp,
            ),
            chunks=[],
        )


def _derive_id(parent: bytes, index: int) -> bytes:
    """Id of the ``index``-th receipt produced by a transaction or receipt."""
    writer = BinaryWriter()
    writer.fixed_bytes(parent, len(parent))
    writer.u64(index)
    return hashlib.sha256(writer.getvalue()).digest()


def _deposit_of(action: Action) -> int:
    if isinstance(action, (Transfer, FunctionCall)):
        return action.deposit
    return 0


def _rejected(message: str, error: Any) -> RejectedError:
    return RejectedError(message, INVALID_TRANSACTION, {"InvalidTxError": error})


class InMemoryNode:
    """
    Single-process chain with one producer and instant finality.

    All methods are thread-safe; every call runs under one re-entrant lock.
    """

    def __init__(self, chain_id: str = "sandbox", logger: Optional[logging.Logger] = None):
        """
        Initialize the node with an empty genesis block

        Args:
            chain_id: Identifier reported in block authorship and status
            logger: Optional logger instance to use for debug/info logging
        """
        self.chain_id = chain_id
        self.logger = logger or logging.getLogger(__name__)
        self._lock = threading.RLock()
        self._accounts: Dict[str, _Account] = {}
        self._contracts: Dict[str, Dict[str, ContractMethod]] = {}
        self._pool: List[SignedTransaction] = []
        self._pending_receipts: List[Receipt] = []
        self._transactions: Dict[str, SignedTransaction] = {}
        self._outcomes: Dict[str, ExecutionOutcomeWithIdView] = {}
        self._blocks: List[_Block] = []
        self._block_hashes = set()
        self._append_block(self._make_block(0, ZERO_HASH))

    # ── setup ────────────────────────────────────────────────────────────

    def add_account(
        self,
        account_id: str,
        amount: int,
        public_key: Optional[PublicKey] = None,
        access_key: Optional[AccessKey] = None
    ) -> None:
        """
        Create an account outside of any transaction, like a genesis record.

        Raises:
            ValueError: If the account already exists
        """
        with self._lock:
            if account_id in self._accounts:
                raise ValueError(f"Account {account_id} already exists")
            account = _Account(amount=amount)
            if public_key is not None:
                account.access_keys[public_key] = access_key or AccessKey.full_access()
            self._accounts[account_id] = account
            self.logger.debug(f"Added account {account_id} with balance {amount}")

    def register_contract(self, account_id: str, methods: Mapping[str, ContractMethod]) -> None:
        """
        Serve ``FunctionCall`` actions addressed to ``account_id``.

        Each method receives a ``CallContext`` and returns the bytes reported
        as the call's ``SuccessValue`` (None means empty). Any exception a
        method raises fails the receipt.
        """
        with self._lock:
            self._contracts[account_id] = dict(methods)

    # ── queries ──────────────────────────────────────────────────────────

    def _account(self, account_id: str) -> _Account:
        account = self._accounts.get(account_id)
        if account is None:
            raise NotFoundError(
                f"Account {account_id} does not exist", "UNKNOWN_ACCOUNT",
                {"requested_account_id": account_id}
            )
        return account

    def view_account(self, account_id: str) -> AccountView:
        with self._lock:
            account = self._account(account_id)
            head = self._blocks[-1]
            return AccountView(
                amount=account.amount,
                locked=account.locked,
                code_hash=hash_to_str(account.code_hash()),
                storage_usage=account.storage_usage(),
                block_height=head.height,
                block_hash=hash_to_str(head.hash),
            )

    def view_state(self, account_id: str, prefix: bytes = b"") -> ViewStateResult:
        with self._lock:
            account = self._account(account_id)
            items = [
                StateItem(
                    key=base64.b64encode(key).decode("ascii"),
                    value=base64.b64encode(value).decode("ascii"),
                )
                for key, value in sorted(account.storage.items())
                if key.startswith(prefix)
            ]
            return ViewStateResult(values=items)

    def get_access_key(self, account_id: str, public_key: PublicKey) -> AccessKeyView:
        with self._lock:
            access_key = self._account(account_id).access_keys.get(public_key)
            if access_key is None:
                raise NotFoundError(
                    f"Access key {public_key} does not exist for {account_id}",
                    "UNKNOWN_ACCESS_KEY",
                    {"public_key": str(public_key)}
                )
            head = self._blocks[-1]
            return AccessKeyView(
                nonce=access_key.nonce,
                permission=access_key.permission.to_view(),
                block_height=head.height,
                block_hash=hash_to_str(head.hash),
            )

    def best_height(self) -> int:
        with self._lock:
            return self._blocks[-1].height

    def best_block_hash(self) -> bytes:
        with self._lock:
            return self._blocks[-1].hash

    def get_block(self, height: int) -> Optional[BlockView]:
        with self._lock:
            if height < 0 or height >= len(self._blocks):
                return None
            return self._blocks[height].to_view(self.chain_id)

    def state_root(self) -> bytes:
        """Hash committing to every account, key and storage entry."""
        with self._lock:
            writer = BinaryWriter()
            for account_id in sorted(self._accounts):
                account = self._accounts[account_id]
                writer.string(account_id)
                writer.u128(account.amount)
                writer.u128(account.locked)
                writer.fixed_bytes(account.code_hash(), len(ZERO_HASH))
                for key, value in sorted(account.storage.items()):
                    writer.dynamic_bytes(key).dynamic_bytes(value)
                for public_key in sorted(account.access_keys, key=str):
                    writer.string(str(public_key))
                    account.access_keys[public_key].serialize(writer)
            return hashlib.sha256(writer.getvalue()).digest()

    def transaction_outcome(self, tx_hash: bytes) -> ExecutionOutcomeWithIdView:
        with self._lock:
            key = hash_to_str(tx_hash)
            signed = self._known_transaction(key)
            outcome = self._outcomes.get(key)
            if outcome is None:
                return ExecutionOutcomeWithIdView(
                    id=key,
                    outcome=ExecutionOutcomeView(
                        executor_id=signed.transaction.signer_id,
                        status=ExecutionStatus(kind=StatusKind.NOT_STARTED),
                    ),
                )
            return outcome

    def final_outcome(self, tx_hash: bytes) -> FinalExecutionOutcomeView:
        """
        Outcome of a transaction and every receipt it caused so far.

        Receipts are listed in execution order; the status is that of the
        last receipt in the success chain, ``Started`` while it is pending.
        """
        with self._lock:
            signed = self._known_transaction(hash_to_str(tx_hash))
            tx_outcome = self.transaction_outcome(tx_hash)

            receipts_outcome = []
            queue = list(tx_outcome.outcome.receipt_ids)
            while queue:
                receipt_outcome = self._outcomes.get(queue.pop(0))
                if receipt_outcome is None:
                    continue
                receipts_outcome.append(receipt_outcome)
                queue.extend(receipt_outcome.outcome.receipt_ids)

            return FinalExecutionOutcomeView(
                status=self._final_status(tx_outcome),
                transaction=TransactionView.model_validate(signed.to_view()),
                transaction_outcome=tx_outcome,
                receipts_outcome=receipts_outcome,
            )

    def _known_transaction(self, key: str) -> SignedTransaction:
        signed = self._transactions.get(key)
        if signed is None:
            raise NotFoundError(f"Transaction {key} does not exist", "UNKNOWN_TRANSACTION")
        return signed

    def _final_status(self, tx_outcome: ExecutionOutcomeWithIdView) -> ExecutionStatus:
        status = tx_outcome.outcome.status
        while status.kind == StatusKind.SUCCESS_RECEIPT_ID:
            receipt_outcome = self._outcomes.get(status.value)
            if receipt_outcome is None:
                return ExecutionStatus(kind=StatusKind.STARTED)
            status = receipt_outcome.outcome.status
        return status

    # ── submission ───────────────────────────────────────────────────────

    def submit_transaction(self, signed_transaction: SignedTransaction) -> bytes:
        """
        Validate a transaction and add it to the pool.

        Returns:
            Transaction hash

        Raises:
            RejectedError: If the transaction is invalid against current state
        """
        with self._lock:
            key = signed_transaction.hash_str
            if key in self._transactions:
                raise _rejected(f"Transaction {key} was already submitted", "Duplicate")
            self._validate(signed_transaction)
            self._transactions[key] = signed_transaction
            self._pool.append(signed_transaction)
            self.logger.debug(f"Transaction {key} added to pool")
            return signed_transaction.hash

    def commit_transaction(self, signed_transaction: SignedTransaction) -> FinalExecutionOutcomeView:
        """
        Submit a transaction and produce blocks until all its receipts ran.

        Raises:
            RejectedError: If the transaction is invalid
        """
        with self._lock:
            tx_hash = self.submit_transaction(signed_transaction)
            for _ in range(MAX_BLOCKS_PER_COMMIT):
                self.produce_block()
                if not self._pending_receipts:
                    break
            else:
                self.logger.warning(
                    f"Receipts of {hash_to_str(tx_hash)} still pending after "
                    f"{MAX_BLOCKS_PER_COMMIT} blocks"
                )

            outcome = self.final_outcome(tx_hash)
            failure = outcome.transaction_outcome.outcome.status.failure
            if isinstance(failure, dict) and "InvalidTxError" in failure:
                raise RejectedError(
                    f"Transaction {hash_to_str(tx_hash)} became invalid before execution",
                    INVALID_TRANSACTION, failure
                )
            return outcome

    def add_receipt(self, receipt: Receipt) -> None:
        """Queue a receipt for the next block, bypassing transactions."""
        with self._lock:
            self._pending_receipts.append(receipt)
            self.logger.debug(f"Receipt {receipt.receipt_id_str} queued for {receipt.receiver_id}")

    def _validate(self, signed_transaction: SignedTransaction) -> int:
        """Check a transaction against current state and return the deposits it carries."""
        tx = signed_transaction.transaction
        if not tx.public_key.verify(signed_transaction.hash, signed_transaction.signature):
            raise _rejected("Invalid transaction signature", "InvalidSignature")

        account = self._accounts.get(tx.signer_id)
        if account is None:
            raise _rejected(
                f"Signer {tx.signer_id} does not exist",
                {"SignerDoesNotExist": {"signer_id": tx.signer_id}}
            )
        access_key = account.access_keys.get(tx.public_key)
        if access_key is None:
            raise _rejected(
                f"Signer {tx.signer_id} has no access key {tx.public_key}",
                {"InvalidAccessKeyError": {"AccessKeyNotFound": {
                    "account_id": tx.signer_id, "public_key": str(tx.public_key)
                }}}
            )
        if tx.nonce <= access_key.nonce:
            raise _rejected(
                f"Transaction nonce {tx.nonce} must be larger than nonce of the used access key {access_key.nonce}",
                {"InvalidNonce": {"tx_nonce": tx.nonce, "ak_nonce": access_key.nonce}}
            )
        if tx.block_hash != ZERO_HASH and tx.block_hash not in self._block_hashes:
            raise _rejected(f"Unknown reference block {hash_to_str(tx.block_hash)}", "Expired")

        if isinstance(access_key.permission, FunctionCallPermission):
            self._check_function_call_permission(tx.receiver_id, tx.actions, access_key.permission)

        cost = sum(_deposit_of(action) for action in tx.actions)
        if account.amount < cost:
            raise _rejected(
                f"Sender {tx.signer_id} does not have enough balance {account.amount} for operation costing {cost}",
                {"NotEnoughBalance": {
                    "signer_id": tx.signer_id, "balance": str(account.amount), "cost": str(cost)
                }}
            )
        return cost

    def _check_function_call_permission(
        self,
        receiver_id: str,
        actions: Tuple[Action, ...],
        permission: FunctionCallPermission
    ) -> None:
        if len(actions) != 1 or not isinstance(actions[0], FunctionCall):
            raise _rejected(
                "Access key only allows a single function call",
                {"InvalidAccessKeyError": "RequiresFullAccess"}
            )
        call = actions[0]
        if call.deposit:
            raise _rejected(
                "Function call access keys cannot attach deposits",
                {"InvalidAccessKeyError": "DepositWithFunctionCall"}
            )
        if receiver_id != permission.receiver_id:
            raise _rejected(
                f"Access key is restricted to {permission.receiver_id}, not {receiver_id}",
                {"InvalidAccessKeyError": {"ReceiverMismatch": {
                    "tx_receiver": receiver_id, "ak_receiver": permission.receiver_id
                }}}
            )
        if permission.method_names and call.method_name not in permission.method_names:
            raise _rejected(
                f"Access key does not allow calling {call.method_name}",
                {"InvalidAccessKeyError": {"MethodNameMismatch": {"method_name": call.method_name}}}
            )

    # ── block production ─────────────────────────────────────────────────

    def _make_block(
        self,
        height: int,
        prev_hash: bytes,
        transactions: Tuple[str, ...] = (),
        receipts: Tuple[str, ...] = ()
    ) -> _Block:
        prev_state_root = self.state_root()
        timestamp = time.time_ns()
        writer = BinaryWriter()
        writer.string(self.chain_id).u64(height).fixed_bytes(prev_hash, len(ZERO_HASH))
        writer.fixed_bytes(prev_state_root, len(ZERO_HASH)).u64(timestamp)
        return _Block(
            height=height,
            hash=hashlib.sha256(writer.getvalue()).digest(),
            prev_hash=prev_hash,
            prev_state_root=prev_state_root,
            timestamp=timestamp,
            transactions=transactions,
            receipts=receipts,
        )

    def _append_block(self, block: _Block) -> None:
        self._blocks.append(block)
        self._block_hashes.add(block.hash)

    def produce_block(self) -> BlockView:
        """
        Convert pooled transactions, apply queued receipts and seal a block.

        Returns:
            The new block
        """
        with self._lock:
            prev = self._blocks[-1]
            block = self._make_block(
                prev.height + 1,
                prev.hash,
                tuple(signed.hash_str for signed in self._pool),
                tuple(receipt.receipt_id_str for receipt in self._pending_receipts),
            )
            block_hash_str = hash_to_str(block.hash)

            receipts, self._pending_receipts = self._pending_receipts, []
            pool, self._pool = self._pool, []
            for signed in pool:
                receipt = self._convert_transaction(signed, block_hash_str)
                if receipt is not None:
                    receipts.append(receipt)

            for receipt in receipts:
                self._pending_receipts.extend(self._apply_receipt(receipt, block_hash_str))

            self._append_block(block)
            self.logger.debug(
                f"Produced block {block.height} ({block_hash_str}) with "
                f"{len(pool)} transactions and {len(receipts)} receipts"
            )
            return block.to_view(self.chain_id)

    def _record(self, outcome_id: str, block_hash: str, outcome: ExecutionOutcomeView) -> None:
        self._outcomes[outcome_id] = ExecutionOutcomeWithIdView(block_hash=block_hash, id=outcome_id, outcome=outcome)

    def _convert_transaction(self, signed: SignedTransaction, block_hash: str) -> Optional[Receipt]:
        tx = signed.transaction
        try:
            cost = self._validate(signed)
        except RejectedError as e:
            self.logger.info(f"Dropping transaction {signed.hash_str}: {e.message}")
            self._record(signed.hash_str, block_hash, ExecutionOutcomeView(
                executor_id=tx.signer_id,
                status=ExecutionStatus.failed(e.data),
            ))
            return None

        account = self._accounts[tx.signer_id]
        account.access_keys[tx.public_key] = AccessKey(
            nonce=tx.nonce, permission=account.access_keys[tx.public_key].permission
        )
        account.amount -= cost

        receipt = Receipt(
            predecessor_id=tx.signer_id,
            receiver_id=tx.receiver_id,
            receipt_id=_derive_id(signed.hash, 0),
            receipt=ActionReceipt(tx.signer_id, tx.public_key, tx.actions),
        )
        self._record(signed.hash_str, block_hash, ExecutionOutcomeView(
            receipt_ids=[receipt.receipt_id_str],
            executor_id=tx.signer_id,
            status=ExecutionStatus.success_receipt_id(receipt.receipt_id_str),
        ))
        return receipt

    def _apply_receipt(self, receipt: Receipt, block_hash: str) -> List[Receipt]:
        snapshot = copy.deepcopy(self._accounts)
        logs: List[str] = []
        try:
            value, children = self._apply_actions(receipt, logs)
            status = ExecutionStatus.success_value(value or b"")
        except ActionError as e:
            self._accounts = snapshot
            children = []
            status = ExecutionStatus.failed(e.to_view())
            refund = sum(_deposit_of(action) for action in receipt.receipt.actions)
            if refund and receipt.predecessor_id != SYSTEM_ACCOUNT:
                children.append(Receipt.new_balance_refund(
                    receipt.predecessor_id, refund, _derive_id(receipt.receipt_id, 0)
                ))
            elif refund:
                self.logger.warning(
                    f"Refund of {refund} to {receipt.receiver_id} failed and is dropped: {e}"
                )
            self.logger.debug(f"Receipt {receipt.receipt_id_str} failed: {e}")

        self._record(receipt.receipt_id_str, block_hash, ExecutionOutcomeView(
            logs=logs,
            receipt_ids=[child.receipt_id_str for child in children],
            executor_id=receipt.receiver_id,
            status=status,
        ))
        return children

    def _apply_actions(self, receipt: Receipt, logs: List[str]) -> Tuple[Optional[bytes], List[Receipt]]:
        receiver_id = receipt.receiver_id
        actor_id = receipt.predecessor_id
        created = False
        value = None
        children: List[Receipt] = []

        for index, action in enumerate(receipt.receipt.actions):
            account = self._accounts.get(receiver_id)
            if isinstance(action, CreateAccount):
                if account is not None:
                    raise ActionError(index, {"AccountAlreadyExists": {"account_id": receiver_id}})
                self._accounts[receiver_id] = _Account(amount=0)
                created = True
                continue
            if account is None:
                raise ActionError(index, {"AccountDoesNotExist": {"account_id": receiver_id}})

            if isinstance(action, Transfer):
                account.amount += action.deposit
                continue
            if isinstance(action, FunctionCall):
                account.amount += action.deposit
                value = self._call_contract(index, receipt, action, account, logs)
                continue

            # Everything below changes the account itself
            if actor_id != receiver_id and not created:
                raise ActionError(index, {"ActorNoPermission": {
                    "account_id": receiver_id, "actor_id": actor_id
                }})

            if isinstance(action, DeployContract):
                account.code = action.code
            elif isinstance(action, Stake):
                self._stake(index, receiver_id, account, action)
            elif isinstance(action, AddKey):
                if action.public_key in account.access_keys:
                    raise ActionError(index, {"AddKeyAlreadyExists": {
                        "account_id": receiver_id, "public_key": str(action.public_key)
                    }})
                account.access_keys[action.public_key] = action.access_key
            elif isinstance(action, DeleteKey):
                if action.public_key not in account.access_keys:
                    raise ActionError(index, {"DeleteKeyDoesNotExist": {
                        "account_id": receiver_id, "public_key": str(action.public_key)
                    }})
                del account.access_keys[action.public_key]
            elif isinstance(action, DeleteAccount):
                if account.locked:
                    raise ActionError(index, {"DeleteAccountStaking": {"account_id": receiver_id}})
                del self._accounts[receiver_id]
                if account.amount:
                    children.append(Receipt(
                        predecessor_id=receiver_id,
                        receiver_id=action.beneficiary_id,
                        receipt_id=_derive_id(receipt.receipt_id, len(children)),
                        receipt=ActionReceipt(
                            receipt.receipt.signer_id,
                            receipt.receipt.signer_public_key,
                            (Transfer(deposit=account.amount),),
                        ),
                    ))

        return value, children

    def _stake(self, index: int, account_id: str, account: _Account, action: Stake) -> None:
        if action.stake > account.locked:
            increase = action.stake - account.locked
            if account.amount < increase:
                raise ActionError(index, {"TriesToStake": {
                    "account_id": account_id,
                    "stake": str(action.stake),
                    "locked": str(account.locked),
                    "balance": str(account.amount),
                }})
            account.amount -= increase
        else:
            account.amount += account.locked - action.stake
        account.locked = action.stake

    def _call_contract(
        self,
        index: int,
        receipt: Receipt,
        action: FunctionCall,
        account: _Account,
        logs: List[str]
    ) -> Optional[bytes]:
        methods = self._contracts.get(receipt.receiver_id)
        if methods is None:
            raise ActionError(index, {"FunctionCallError": {"CompilationError": {
                "CodeDoesNotExist": {"account_id": receipt.receiver_id}
            }}})
        method = methods.get(action.method_name)
        if method is None:
            raise ActionError(index, {"FunctionCallError": {"MethodResolveError": "MethodNotFound"}})

        context = CallContext(
            account_id=receipt.receiver_id,
            predecessor_id=receipt.predecessor_id,
            signer_id=receipt.receipt.signer_id,
            method_name=action.method_name,
            args=action.args,
            deposit=action.deposit,
            gas=action.gas,
            storage=account.storage,
            logs=logs,
        )
        try:
            return method(context)
        except Exception as e:
            raise ActionError(index, {"FunctionCallError": {
                "ExecutionError": f"Smart contract panicked: {e}"
            }}) from e
