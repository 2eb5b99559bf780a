"""
Chain clients: the sync and async contracts and their JSON-RPC transports.
"""
from .async_base import AsyncReceiptInjector, AsyncUser
from .async_rpc_user import AsyncRpcUser
from .base import ReceiptInjector, User
from .rpc_user import RpcUser

__all__ = [
    "AsyncReceiptInjector",
    "AsyncRpcUser",
    "AsyncUser",
    "ReceiptInjector",
    "RpcUser",
    "User",
]
