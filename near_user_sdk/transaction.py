"""
Action model, transactions and receipts.

Everything here is immutable: a transaction is built, hashed and signed as one
unit and never changed afterwards.
"""
import base64
import hashlib
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional, Sequence, Tuple, Union

import base58

from .serialize import BinaryWriter
from .signer.base import Signer
from .signer.keys import PUBLIC_KEY_LENGTHS, KeyType, PublicKey, Signature

CRYPTO_HASH_LENGTH = 32
ZERO_HASH = bytes(CRYPTO_HASH_LENGTH)
SYSTEM_ACCOUNT = "system"


def hash_to_str(value: bytes) -> str:
    """Render a 32-byte hash as base58."""
    return base58.b58encode(value).decode("ascii")


def hash_from_str(value: str) -> bytes:
    """
    Parse a base58 hash.

    Raises:
        ValueError: If the text is not base58 or not 32 bytes long
    """
    raw = base58.b58decode(value)
    if len(raw) != CRYPTO_HASH_LENGTH:
        raise ValueError(f"Hash must be {CRYPTO_HASH_LENGTH} bytes, got {len(raw)}")
    return raw


def _write_public_key(writer: BinaryWriter, public_key: PublicKey) -> None:
    writer.u8(public_key.key_type)
    writer.fixed_bytes(public_key.data, PUBLIC_KEY_LENGTHS[public_key.key_type])


# ─────────────────────────────────────────────────────────────────────────
#  Access keys
# ─────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FullAccessPermission:
    """Key may sign any transaction for its account."""
    TAG: ClassVar[int] = 1

    def serialize(self, writer: BinaryWriter) -> None:
        writer.u8(self.TAG)

    def to_view(self) -> Any:
        return "FullAccess"


@dataclass(frozen=True)
class FunctionCallPermission:
    """Key may only call ``method_names`` (any method if empty) on ``receiver_id``."""
    TAG: ClassVar[int] = 0

    receiver_id: str
    method_names: Tuple[str, ...] = ()
    allowance: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "method_names", tuple(self.method_names))

    def serialize(self, writer: BinaryWriter) -> None:
        writer.u8(self.TAG)
        writer.option(self.allowance, writer.u128)
        writer.string(self.receiver_id)
        writer.vec(self.method_names, writer.string)

    def to_view(self) -> Any:
        return {
            "FunctionCall": {
                "allowance": str(self.allowance) if self.allowance is not None else None,
                "receiver_id": self.receiver_id,
                "method_names": list(self.method_names),
            }
        }


AccessKeyPermission = Union[FullAccessPermission, FunctionCallPermission]


def permission_from_view(view: Any) -> AccessKeyPermission:
    """
    Parse the JSON form of a permission.

    Raises:
        ValueError: If the permission is not recognized
    """
    if view == "FullAccess":
        return FullAccessPermission()
    if isinstance(view, dict) and "FunctionCall" in view:
        body = view["FunctionCall"]
        allowance = body.get("allowance")
        return FunctionCallPermission(
            receiver_id=body["receiver_id"],
            method_names=tuple(body.get("method_names") or ()),
            allowance=int(allowance) if allowance is not None else None,
        )
    raise ValueError(f"Unknown access key permission: {view!r}")


@dataclass(frozen=True)
class AccessKey:
    """Nonce counter plus permission scope of one public key on one account."""
    nonce: int = 0
    permission: AccessKeyPermission = field(default_factory=FullAccessPermission)

    @classmethod
    def full_access(cls) -> "AccessKey":
        return cls(nonce=0, permission=FullAccessPermission())

    @classmethod
    def function_call_access(
        cls,
        receiver_id: str,
        method_names: Sequence[str] = (),
        allowance: Optional[int] = None
    ) -> "AccessKey":
        return cls(
            nonce=0,
            permission=FunctionCallPermission(receiver_id, tuple(method_names), allowance),
        )

    def serialize(self, writer: BinaryWriter) -> None:
        writer.u64(self.nonce)
        self.permission.serialize(writer)

    def to_view(self) -> Dict[str, Any]:
        return {"nonce": self.nonce, "permission": self.permission.to_view()}


# ─────────────────────────────────────────────────────────────────────────
#  Actions
# ─────────────────────────────────────────────────────────────────────────

class Action:
    """Base class of the eight transaction action variants."""
    TAG: ClassVar[int]
    NAME: ClassVar[str]

    def serialize(self, writer: BinaryWriter) -> None:
        writer.u8(self.TAG)
        self._serialize_fields(writer)

    def _serialize_fields(self, writer: BinaryWriter) -> None:
        pass

    def to_view(self) -> Any:
        return {self.NAME: self._view_fields()}

    def _view_fields(self) -> Dict[str, Any]:
        return {}


@dataclass(frozen=True)
class CreateAccount(Action):
    TAG: ClassVar[int] = 0
    NAME: ClassVar[str] = "CreateAccount"

    def to_view(self) -> Any:
        return self.NAME


@dataclass(frozen=True)
class DeployContract(Action):
    TAG: ClassVar[int] = 1
    NAME: ClassVar[str] = "DeployContract"

    code: bytes

    def _serialize_fields(self, writer: BinaryWriter) -> None:
        writer.dynamic_bytes(self.code)

    def _view_fields(self) -> Dict[str, Any]:
        return {"code": base64.b64encode(self.code).decode("ascii")}


@dataclass(frozen=True)
class FunctionCall(Action):
    TAG: ClassVar[int] = 2
    NAME: ClassVar[str] = "FunctionCall"

    method_name: str
    args: bytes
    gas: int
    deposit: int

    def _serialize_fields(self, writer: BinaryWriter) -> None:
        writer.string(self.method_name)
        writer.dynamic_bytes(self.args)
        writer.u64(self.gas)
        writer.u128(self.deposit)

    def _view_fields(self) -> Dict[str, Any]:
        return {
            "method_name": self.method_name,
            "args": base64.b64encode(self.args).decode("ascii"),
            "gas": self.gas,
            "deposit": str(self.deposit),
        }


@dataclass(frozen=True)
class Transfer(Action):
    TAG: ClassVar[int] = 3
    NAME: ClassVar[str] = "Transfer"

    deposit: int

    def _serialize_fields(self, writer: BinaryWriter) -> None:
        writer.u128(self.deposit)

    def _view_fields(self) -> Dict[str, Any]:
        return {"deposit": str(self.deposit)}


@dataclass(frozen=True)
class Stake(Action):
    TAG: ClassVar[int] = 4
    NAME: ClassVar[str] = "Stake"

    stake: int
    public_key: PublicKey

    def _serialize_fields(self, writer: BinaryWriter) -> None:
        writer.u128(self.stake)
        _write_public_key(writer, self.public_key)

    def _view_fields(self) -> Dict[str, Any]:
        return {"stake": str(self.stake), "public_key": str(self.public_key)}


@dataclass(frozen=True)
class AddKey(Action):
    TAG: ClassVar[int] = 5
    NAME: ClassVar[str] = "AddKey"

    public_key: PublicKey
    access_key: AccessKey

    def _serialize_fields(self, writer: BinaryWriter) -> None:
        _write_public_key(writer, self.public_key)
        self.access_key.serialize(writer)

    def _view_fields(self) -> Dict[str, Any]:
        return {"public_key": str(self.public_key), "access_key": self.access_key.to_view()}


@dataclass(frozen=True)
class DeleteKey(Action):
    TAG: ClassVar[int] = 6
    NAME: ClassVar[str] = "DeleteKey"

    public_key: PublicKey

    def _serialize_fields(self, writer: BinaryWriter) -> None:
        _write_public_key(writer, self.public_key)

    def _view_fields(self) -> Dict[str, Any]:
        return {"public_key": str(self.public_key)}


@dataclass(frozen=True)
class DeleteAccount(Action):
    TAG: ClassVar[int] = 7
    NAME: ClassVar[str] = "DeleteAccount"

    beneficiary_id: str

    def _serialize_fields(self, writer: BinaryWriter) -> None:
        writer.string(self.beneficiary_id)

    def _view_fields(self) -> Dict[str, Any]:
        return {"beneficiary_id": self.beneficiary_id}


def action_from_view(view: Any) -> Action:
    """
    Parse the JSON form a node reports for an action.

    Raises:
        ValueError: If the action is not recognized
    """
    if view == CreateAccount.NAME:
        return CreateAccount()
    if not isinstance(view, dict) or len(view) != 1:
        raise ValueError(f"Unknown action: {view!r}")
    (name, body), = view.items()
    if name == CreateAccount.NAME:
        return CreateAccount()
    if name == DeployContract.NAME:
        return DeployContract(code=base64.b64decode(body["code"]))
    if name == FunctionCall.NAME:
        return FunctionCall(
            method_name=body["method_name"],
            args=base64.b64decode(body["args"]),
            gas=int(body["gas"]),
            deposit=int(body["deposit"]),
        )
    if name == Transfer.NAME:
        return Transfer(deposit=int(body["deposit"]))
    if name == Stake.NAME:
        return Stake(stake=int(body["stake"]), public_key=PublicKey.from_string(body["public_key"]))
    if name == AddKey.NAME:
        access_key = body["access_key"]
        return AddKey(
            public_key=PublicKey.from_string(body["public_key"]),
            access_key=AccessKey(
                nonce=int(access_key.get("nonce", 0)),
                permission=permission_from_view(access_key["permission"]),
            ),
        )
    if name == DeleteKey.NAME:
        return DeleteKey(public_key=PublicKey.from_string(body["public_key"]))
    if name == DeleteAccount.NAME:
        return DeleteAccount(beneficiary_id=body["beneficiary_id"])
    raise ValueError(f"Unknown action: {name}")


# ─────────────────────────────────────────────────────────────────────────
#  Transactions
# ─────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Transaction:
    """
    Unsigned transaction: an ordered, non-empty list of actions bound to a
    signer, receiver, nonce and reference block hash.
    """
    signer_id: str
    public_key: PublicKey
    nonce: int
    receiver_id: str
    block_hash: bytes
    actions: Tuple[Action, ...]

    def __post_init__(self):
        object.__setattr__(self, "actions", tuple(self.actions))
        if not self.actions:
            raise ValueError("A transaction needs at least one action")
        if len(self.block_hash) != CRYPTO_HASH_LENGTH:
            raise ValueError(f"Block hash must be {CRYPTO_HASH_LENGTH} bytes, got {len(self.block_hash)}")

    def serialize(self) -> bytes:
        writer = BinaryWriter()
        writer.string(self.signer_id)
        _write_public_key(writer, self.public_key)
        writer.u64(self.nonce)
        writer.string(self.receiver_id)
        writer.fixed_bytes(self.block_hash, CRYPTO_HASH_LENGTH)
        writer.vec(self.actions, lambda action: action.serialize(writer))
        return writer.getvalue()

    def get_hash(self) -> bytes:
        """sha256 of the serialized transaction; this is what gets signed."""
        return hashlib.sha256(self.serialize()).digest()


@dataclass(frozen=True)
class SignedTransaction:
    """A transaction together with its signature."""
    transaction: Transaction
    signature: Signature

    @classmethod
    def from_actions(
        cls,
        nonce: int,
        signer_id: str,
        receiver_id: str,
        signer: Signer,
        actions: Sequence[Action],
        block_hash: bytes
    ) -> "SignedTransaction":
        """
        Build, hash and sign a transaction in one step.

        Args:
            nonce: Access key nonce to use (last observed nonce + 1)
            signer_id: Account signing the transaction
            receiver_id: Account the actions apply to
            signer: Signer whose public key authorizes the transaction
            actions: Actions, executed in the given order
            block_hash: Reference block hash

        Returns:
            Signed transaction
        """
        transaction = Transaction(
            signer_id=signer_id,
            public_key=signer.public_key(),
            nonce=nonce,
            receiver_id=receiver_id,
            block_hash=block_hash,
            actions=tuple(actions),
        )
        return cls(transaction, signer.sign(transaction.get_hash()))

    @property
    def hash(self) -> bytes:
        return self.transaction.get_hash()

    @property
    def hash_str(self) -> str:
        return hash_to_str(self.hash)

    def serialize(self) -> bytes:
        writer = BinaryWriter()
        writer.u8(self.signature.key_type)
        writer.fixed_bytes(self.signature.data, len(self.signature.data))
        return self.transaction.serialize() + writer.getvalue()

    def to_base64(self) -> str:
        """Submission form used by the JSON-RPC broadcast methods."""
        return base64.b64encode(self.serialize()).decode("ascii")

    def to_view(self) -> Dict[str, Any]:
        tx = self.transaction
        return {
            "signer_id": tx.signer_id,
            "public_key": str(tx.public_key),
            "nonce": tx.nonce,
            "receiver_id": tx.receiver_id,
            "actions": [action.to_view() for action in tx.actions],
            "signature": str(self.signature),
            "hash": self.hash_str,
        }


# ─────────────────────────────────────────────────────────────────────────
#  Receipts
# ─────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ActionReceipt:
    signer_id: str
    signer_public_key: PublicKey
    actions: Tuple[Action, ...]

    def __post_init__(self):
        object.__setattr__(self, "actions", tuple(self.actions))


@dataclass(frozen=True)
class Receipt:
    """
    Side effect produced by executing actions, addressed to ``receiver_id``.

    Receipts normally come from transactions; injecting them directly is only
    possible on the in-process test backend.
    """
    predecessor_id: str
    receiver_id: str
    receipt_id: bytes
    receipt: ActionReceipt

    @classmethod
    def new_balance_refund(cls, receiver_id: str, amount: int, receipt_id: bytes) -> "Receipt":
        """Receipt returning ``amount`` to ``receiver_id`` on behalf of the system."""
        system_key = PublicKey(KeyType.ED25519, bytes(32))
        return cls(
            predecessor_id=SYSTEM_ACCOUNT,
            receiver_id=receiver_id,
            receipt_id=receipt_id,
            receipt=ActionReceipt(SYSTEM_ACCOUNT, system_key, (Transfer(deposit=amount),)),
        )

    @property
    def receipt_id_str(self) -> str:
        return hash_to_str(self.receipt_id)

    def to_view(self) -> Dict[str, Any]:
        return {
            "predecessor_id": self.predecessor_id,
            "receiver_id": self.receiver_id,
            "receipt_id": self.receipt_id_str,
            "receipt": {
                "Action": {
                    "signer_id": self.receipt.signer_id,
                    "signer_public_key": str(self.receipt.signer_public_key),
                    "actions": [action.to_view() for action in self.receipt.actions],
                }
            },
        }
