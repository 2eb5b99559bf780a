"""
NEAR user SDK: sign, submit and inspect transactions against a NEAR-style
node, from blocking or asyncio code.
"""
from .exceptions import (
    ErrorKind, NotFoundError, RejectedError, SigningError, TransportError, UserError
)
from .models import (
    AccessKeyView, AccountView, BlockView, ExecutionOutcomeView, ExecutionStatus,
    FinalExecutionOutcomeView, StatusKind, StatusView, ViewStateResult
)
from .signer import InMemorySigner, KeyType, PublicKey, Signature, Signer
from .transaction import (
    AccessKey, Action, AddKey, CreateAccount, DeleteAccount, DeleteKey,
    DeployContract, FunctionCall, Receipt, SignedTransaction, Stake, Transaction,
    Transfer
)
from .user import (
    AsyncReceiptInjector, AsyncRpcUser, AsyncUser, ReceiptInjector, RpcUser, User
)
from .version import __version__

__all__ = [
    "AccessKey",
    "AccessKeyView",
    "AccountView",
    "Action",
    "AddKey",
    "AsyncReceiptInjector",
    "AsyncRpcUser",
    "AsyncUser",
    "BlockView",
    "CreateAccount",
    "DeleteAccount",
    "DeleteKey",
    "DeployContract",
    "ErrorKind",
    "ExecutionOutcomeView",
    "ExecutionStatus",
    "FinalExecutionOutcomeView",
    "FunctionCall",
    "InMemorySigner",
    "KeyType",
    "NotFoundError",
    "PublicKey",
    "Receipt",
    "ReceiptInjector",
    "RejectedError",
    "RpcUser",
    "Signature",
    "SignedTransaction",
    "Signer",
    "SigningError",
    "Stake",
    "StatusKind",
    "StatusView",
    "Transaction",
    "Transfer",
    "TransportError",
    "User",
    "UserError",
    "ViewStateResult",
    "__version__",
]
