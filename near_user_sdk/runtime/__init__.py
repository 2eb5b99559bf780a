"""
In-process test backend: a simulated node and the users bound to it.
"""
from .node import ActionError, CallContext, ContractMethod, InMemoryNode
from .user import AsyncRuntimeUser, RuntimeUser

__all__ = [
    "ActionError",
    "AsyncRuntimeUser",
    "CallContext",
    "ContractMethod",
    "InMemoryNode",
    "RuntimeUser",
]
