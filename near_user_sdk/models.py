"""
Data models for chain views returned by users.

These mirror the JSON shapes a node returns, so RPC responses validate
straight into them and the in-process node produces the same values.
"""
import base64
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Base64Bytes, BaseModel, Field, model_validator

from .transaction import AccessKey, Action, action_from_view, permission_from_view


class StatusKind(str, Enum):
    """Execution status variants reported by the node."""
    SUCCESS_VALUE = "SuccessValue"
    SUCCESS_RECEIPT_ID = "SuccessReceiptId"
    FAILURE = "Failure"
    UNKNOWN = "Unknown"
    NOT_STARTED = "NotStarted"
    STARTED = "Started"


_PENDING_KINDS = (StatusKind.UNKNOWN, StatusKind.NOT_STARTED, StatusKind.STARTED)


class ExecutionStatus(BaseModel):
    """
    Status of an outcome.

    The node encodes this as either a bare string (``"Unknown"``) or a
    single-key object (``{"SuccessValue": "<base64>"}``); both parse here.
    """
    kind: StatusKind
    value: Optional[str] = None
    failure: Optional[Any] = None

    @model_validator(mode="before")
    @classmethod
    def _parse_wire_form(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"kind": data}
        if isinstance(data, dict) and "kind" not in data and len(data) == 1:
            (name, body), = data.items()
            if name == StatusKind.FAILURE.value:
                return {"kind": name, "failure": body}
            return {"kind": name, "value": body}
        return data

    @classmethod
    def success_value(cls, value: bytes = b"") -> "ExecutionStatus":
        return cls(kind=StatusKind.SUCCESS_VALUE, value=base64.b64encode(value).decode("ascii"))

    @classmethod
    def success_receipt_id(cls, receipt_id: str) -> "ExecutionStatus":
        return cls(kind=StatusKind.SUCCESS_RECEIPT_ID, value=receipt_id)

    @classmethod
    def failed(cls, error: Any) -> "ExecutionStatus":
        return cls(kind=StatusKind.FAILURE, failure=error)

    @property
    def is_success(self) -> bool:
        return self.kind in (StatusKind.SUCCESS_VALUE, StatusKind.SUCCESS_RECEIPT_ID)

    @property
    def is_failure(self) -> bool:
        return self.kind == StatusKind.FAILURE

    @property
    def is_pending(self) -> bool:
        return self.kind in _PENDING_KINDS

    def decoded_value(self) -> Optional[bytes]:
        """Bytes carried by a ``SuccessValue``, None for every other status."""
        if self.kind != StatusKind.SUCCESS_VALUE:
            return None
        return base64.b64decode(self.value or "")

    def to_wire(self) -> Any:
        if self.kind in _PENDING_KINDS:
            return self.kind.value
        if self.kind == StatusKind.FAILURE:
            return {self.kind.value: self.failure}
        return {self.kind.value: self.value}


class ExecutionOutcomeView(BaseModel):
    logs: List[str] = Field(default_factory=list)
    receipt_ids: List[str] = Field(default_factory=list)
    gas_burnt: int = 0
    tokens_burnt: int = 0
    executor_id: str = ""
    status: ExecutionStatus


class ExecutionOutcomeWithIdView(BaseModel):
    proof: List[Any] = Field(default_factory=list)
    block_hash: str = ""
    id: str
    outcome: ExecutionOutcomeView


class TransactionView(BaseModel):
    signer_id: str
    public_key: str
    nonce: int
    receiver_id: str
    actions: List[Any] = Field(default_factory=list)
    signature: str = ""
    hash: str = ""

    def parsed_actions(self) -> List[Action]:
        """Actions of the transaction as ``Action`` objects, in execution order."""
        return [action_from_view(action) for action in self.actions]


class FinalExecutionOutcomeView(BaseModel):
    """
    Outcome of a transaction once every receipt it triggered has resolved.
    """
    status: ExecutionStatus
    transaction: TransactionView
    transaction_outcome: ExecutionOutcomeWithIdView
    receipts_outcome: List[ExecutionOutcomeWithIdView] = Field(default_factory=list)

    @property
    def transaction_hash(self) -> str:
        return self.transaction_outcome.id

    @property
    def logs(self) -> List[str]:
        """Logs of the transaction and all its receipts, in execution order."""
        collected = list(self.transaction_outcome.outcome.logs)
        for receipt_outcome in self.receipts_outcome:
            collected.extend(receipt_outcome.outcome.logs)
        return collected


class AccountView(BaseModel):
    amount: int
    locked: int = 0
    code_hash: str = "11111111111111111111111111111111"
    storage_usage: int = 0
    block_height: Optional[int] = None
    block_hash: Optional[str] = None


class AccessKeyView(BaseModel):
    nonce: int
    permission: Any = "FullAccess"
    block_height: Optional[int] = None
    block_hash: Optional[str] = None

    def to_access_key(self) -> AccessKey:
        return AccessKey(nonce=self.nonce, permission=permission_from_view(self.permission))


class StateItem(BaseModel):
    key: Base64Bytes
    value: Base64Bytes
    proof: List[Any] = Field(default_factory=list)


class ViewStateResult(BaseModel):
    values: List[StateItem] = Field(default_factory=list)
    proof: List[Any] = Field(default_factory=list)

    def as_dict(self) -> Dict[bytes, bytes]:
        return {item.key: item.value for item in self.values}


class BlockHeaderView(BaseModel):
    height: int
    hash: str
    prev_hash: str
    prev_state_root: str
    timestamp: int = 0
    epoch_id: Optional[str] = None


class BlockView(BaseModel):
    author: str = ""
    header: BlockHeaderView
    chunks: List[Any] = Field(default_factory=list)


class SyncInfoView(BaseModel):
    latest_block_hash: str
    latest_block_height: int
    latest_state_root: Optional[str] = None
    syncing: bool = False


class StatusView(BaseModel):
    chain_id: str = ""
    sync_info: SyncInfoView
    version: Optional[Dict[str, Any]] = None
