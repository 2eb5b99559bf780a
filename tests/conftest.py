"""
Pytest fixtures for the NEAR user SDK tests.
"""
from typing import List, Optional

import pytest

from near_user_sdk._rate_limited_log import reset_rate_limited_log
from near_user_sdk.exceptions import NotFoundError, TransportError, UserError
from near_user_sdk.models import (
    AccessKeyView, AccountView, ExecutionOutcomeView, ExecutionOutcomeWithIdView,
    ExecutionStatus, FinalExecutionOutcomeView, TransactionView, ViewStateResult
)
from near_user_sdk.runtime import AsyncRuntimeUser, InMemoryNode, RuntimeUser
from near_user_sdk.signer import InMemorySigner, KeyType
from near_user_sdk.transaction import SignedTransaction
from near_user_sdk.user import AsyncUser, User

ALICE = "alice.near"
BOB = "bob.near"
INITIAL_BALANCE = 1_000_000_000
REFERENCE_BLOCK_HASH = bytes(range(32))


# ─────────────────────────────────────────────────────────────────────────
#  RATE-LIMITED LOG STATE
# ─────────────────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def _clear_rate_limited_log():
    """Each test starts with no suppressed messages."""
    reset_rate_limited_log()
    yield
    reset_rate_limited_log()


# ─────────────────────────────────────────────────────────────────────────
#  SIGNERS
# ─────────────────────────────────────────────────────────────────────────

@pytest.fixture
def alice_signer():
    return InMemorySigner.from_seed(ALICE, KeyType.ED25519, ALICE)


@pytest.fixture
def bob_signer():
    return InMemorySigner.from_seed(BOB, KeyType.ED25519, BOB)


# ─────────────────────────────────────────────────────────────────────────
#  OUTCOMES
# ─────────────────────────────────────────────────────────────────────────

def outcome_for(signed_transaction: SignedTransaction, status: Optional[ExecutionStatus] = None) -> FinalExecutionOutcomeView:
    """Successful final outcome the way a node would report it."""
    status = status or ExecutionStatus.success_value(b"")
    return FinalExecutionOutcomeView(
        status=status,
        transaction=TransactionView.model_validate(signed_transaction.to_view()),
        transaction_outcome=ExecutionOutcomeWithIdView(
            id=signed_transaction.hash_str,
            outcome=ExecutionOutcomeView(
                executor_id=signed_transaction.transaction.signer_id,
                status=status,
            ),
        ),
    )


@pytest.fixture
def make_outcome():
    return outcome_for


# ─────────────────────────────────────────────────────────────────────────
#  RECORDING USERS
# ─────────────────────────────────────────────────────────────────────────

class RecordingUser(User):
    """
    User double that accepts every transaction and remembers it.

    ``access_key_nonce`` of None means the key is unknown; ``block_hash`` of
    None makes the block hash query fail.
    """

    def __init__(self, signer, access_key_nonce: Optional[int] = 0, block_hash: Optional[bytes] = REFERENCE_BLOCK_HASH,
                 nonce_error: Optional[UserError] = None):
        super().__init__(signer)
        self.access_key_nonce = access_key_nonce
        self.block_hash = block_hash
        self.nonce_error = nonce_error
        self.committed: List[SignedTransaction] = []
        self.added: List[SignedTransaction] = []

    def view_account(self, account_id):
        return AccountView(amount=INITIAL_BALANCE)

    def view_state(self, account_id, prefix=b""):
        return ViewStateResult()

    def add_transaction(self, signed_transaction):
        self.added.append(signed_transaction)

    def commit_transaction(self, signed_transaction):
        self.committed.append(signed_transaction)
        self.access_key_nonce = signed_transaction.transaction.nonce
        return outcome_for(signed_transaction)

    def get_best_height(self):
        return len(self.committed)

    def get_best_block_hash(self):
        if self.block_hash is None:
            raise TransportError("node unreachable")
        return self.block_hash

    def get_block(self, height):
        return None

    def get_transaction_result(self, hash):
        raise NotFoundError("unknown transaction")

    def get_transaction_final_result(self, hash):
        raise NotFoundError("unknown transaction")

    def get_state_root(self):
        return bytes(32)

    def get_access_key(self, account_id, public_key):
        if self.nonce_error is not None:
            raise self.nonce_error
        if self.access_key_nonce is None:
            raise NotFoundError(f"Access key {public_key} does not exist")
        return AccessKeyView(nonce=self.access_key_nonce)


class AsyncRecordingUser(AsyncUser):
    """Coroutine twin of ``RecordingUser``."""

    def __init__(self, signer, access_key_nonce: Optional[int] = 0, block_hash: Optional[bytes] = REFERENCE_BLOCK_HASH):
        super().__init__(signer)
        self.access_key_nonce = access_key_nonce
        self.block_hash = block_hash
        self.committed: List[SignedTransaction] = []

    async def view_account(self, account_id):
        return AccountView(amount=INITIAL_BALANCE)

    async def view_state(self, account_id, prefix=b""):
        return ViewStateResult()

    async def add_transaction(self, signed_transaction):
        pass

    async def commit_transaction(self, signed_transaction):
        self.committed.append(signed_transaction)
        self.access_key_nonce = signed_transaction.transaction.nonce
        return outcome_for(signed_transaction)

    async def get_best_height(self):
        return len(self.committed)

    async def get_best_block_hash(self):
        if self.block_hash is None:
            raise TransportError("node unreachable")
        return self.block_hash

    async def get_block(self, height):
        return None

    async def get_transaction_result(self, hash):
        raise NotFoundError("unknown transaction")

    async def get_transaction_final_result(self, hash):
        raise NotFoundError("unknown transaction")

    async def get_state_root(self):
        return bytes(32)

    async def get_access_key(self, account_id, public_key):
        if self.access_key_nonce is None:
            raise NotFoundError(f"Access key {public_key} does not exist")
        return AccessKeyView(nonce=self.access_key_nonce)


@pytest.fixture
def recording_user(alice_signer):
    return RecordingUser(alice_signer)


@pytest.fixture
def recording_user_factory(alice_signer):
    def _make(**kwargs):
        return RecordingUser(alice_signer, **kwargs)
    return _make


@pytest.fixture
def async_recording_user_factory(alice_signer):
    def _make(**kwargs):
        return AsyncRecordingUser(alice_signer, **kwargs)
    return _make


# ─────────────────────────────────────────────────────────────────────────
#  IN-PROCESS NODE
# ─────────────────────────────────────────────────────────────────────────

@pytest.fixture
def node(alice_signer, bob_signer):
    """Node with alice and bob funded, each holding one full access key."""
    node = InMemoryNode()
    node.add_account(ALICE, INITIAL_BALANCE, alice_signer.public_key())
    node.add_account(BOB, INITIAL_BALANCE, bob_signer.public_key())
    return node


@pytest.fixture
def alice(node, alice_signer):
    return RuntimeUser(ALICE, alice_signer, node)


@pytest.fixture
def bob(node, bob_signer):
    return RuntimeUser(BOB, bob_signer, node)


@pytest.fixture
def async_alice(node, alice_signer):
    return AsyncRuntimeUser(ALICE, alice_signer, node)
