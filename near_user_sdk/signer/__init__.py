"""
Signer module for the NEAR user SDK.

A signer is the only holder of key material; users and the transaction
builder consume it through the ``Signer`` protocol.
"""
from .base import Signer
from .in_memory import InMemorySigner
from .keys import KeyType, PublicKey, Signature

__all__ = ['Signer', 'InMemorySigner', 'KeyType', 'PublicKey', 'Signature']
