"""
Tests for the in-process node: validation, action rules, blocks and outcomes.
"""
import json
import logging

import pytest

from near_user_sdk.exceptions import NotFoundError, RejectedError
from near_user_sdk.models import StatusKind
from near_user_sdk.runtime import InMemoryNode, RuntimeUser
from near_user_sdk.signer import InMemorySigner
from near_user_sdk.transaction import (
    AccessKey, AddKey, CreateAccount, Receipt, SignedTransaction, Transfer, ZERO_HASH
)

BALANCE = 1_000_000_000


def _signed(signer, nonce, receiver_id, actions, block_hash=ZERO_HASH, signer_id=None):
    return SignedTransaction.from_actions(
        nonce, signer_id or signer.account_id, receiver_id, signer, actions, block_hash
    )


def _counter(node):
    calls = []

    def increment(ctx):
        count = int(ctx.storage.get(b"count", b"0")) + ctx.json_args().get("by", 1)
        ctx.storage[b"count"] = str(count).encode()
        ctx.log(f"count is {count}")
        calls.append(ctx)
        return json.dumps(count).encode()

    def explode(ctx):
        ctx.storage[b"count"] = b"999"
        raise RuntimeError("boom")

    node.add_account("counter.near", 0)
    node.register_contract("counter.near", {"increment": increment, "explode": explode})
    return calls


class TestTransfers:
    def test_send_money(self, alice, node):
        outcome = alice.send_money("alice.near", "bob.near", 100)

        assert outcome.status.kind == StatusKind.SUCCESS_VALUE
        assert node.view_account("alice.near").amount == BALANCE - 100
        assert node.view_account("bob.near").amount == BALANCE + 100
        assert alice.get_access_key_nonce_for_signer("alice.near") == 1
        assert outcome.transaction.parsed_actions() == [Transfer(deposit=100)]

    def test_transfer_to_missing_account_is_refunded(self, alice, node):
        outcome = alice.send_money("alice.near", "ghost.near", 100)

        assert outcome.status.is_failure
        assert outcome.status.failure == {
            "ActionError": {"index": 0, "kind": {"AccountDoesNotExist": {"account_id": "ghost.near"}}}
        }
        assert len(outcome.receipts_outcome) == 2
        assert outcome.receipts_outcome[1].outcome.executor_id == "alice.near"
        assert node.view_account("alice.near").amount == BALANCE

    def test_not_enough_balance(self, alice):
        with pytest.raises(RejectedError) as excinfo:
            alice.send_money("alice.near", "bob.near", BALANCE + 1)
        assert "NotEnoughBalance" in excinfo.value.data["InvalidTxError"]
        assert alice.get_access_key_nonce_for_signer("alice.near") == 0


class TestValidation:
    def test_stale_nonce(self, node, alice_signer):
        node.commit_transaction(_signed(alice_signer, 1, "bob.near", [Transfer(deposit=1)]))
        with pytest.raises(RejectedError) as excinfo:
            node.commit_transaction(_signed(alice_signer, 1, "bob.near", [Transfer(deposit=2)]))
        assert excinfo.value.cause_name == "INVALID_TRANSACTION"
        assert excinfo.value.data == {"InvalidTxError": {"InvalidNonce": {"tx_nonce": 1, "ak_nonce": 1}}}

    def test_nonce_may_skip(self, node, alice_signer):
        node.commit_transaction(_signed(alice_signer, 10, "bob.near", [Transfer(deposit=1)]))
        assert node.get_access_key("alice.near", alice_signer.public_key()).nonce == 10

    def test_unknown_signer(self, node):
        stranger = InMemorySigner.from_seed("stranger.near")
        with pytest.raises(RejectedError, match="does not exist"):
            node.commit_transaction(_signed(stranger, 1, "bob.near", [Transfer(deposit=1)]))

    def test_unknown_key(self, node, bob_signer):
        with pytest.raises(RejectedError, match="no access key"):
            node.commit_transaction(_signed(bob_signer, 1, "bob.near", [Transfer(deposit=1)], signer_id="alice.near"))

    def test_bad_signature(self, node, alice_signer, bob_signer):
        good = _signed(alice_signer, 1, "bob.near", [Transfer(deposit=1)])
        forged = SignedTransaction(good.transaction, bob_signer.sign(good.hash))
        with pytest.raises(RejectedError, match="signature"):
            node.commit_transaction(forged)

    def test_unknown_block_hash_expired(self, node, alice_signer):
        with pytest.raises(RejectedError) as excinfo:
            node.commit_transaction(_signed(alice_signer, 1, "bob.near", [Transfer(deposit=1)], block_hash=b"\x01" * 32))
        assert excinfo.value.data == {"InvalidTxError": "Expired"}

    def test_known_block_hash_accepted(self, node, alice_signer):
        block_hash = node.best_block_hash()
        outcome = node.commit_transaction(_signed(alice_signer, 1, "bob.near", [Transfer(deposit=1)], block_hash))
        assert outcome.status.is_success

    def test_duplicate_submission(self, node, alice_signer):
        signed = _signed(alice_signer, 1, "bob.near", [Transfer(deposit=1)])
        node.submit_transaction(signed)
        with pytest.raises(RejectedError, match="already submitted"):
            node.submit_transaction(signed)


class TestAccountsAndKeys:
    def test_create_account(self, alice, node):
        carol = InMemorySigner.from_seed("carol.near")
        outcome = alice.create_account("alice.near", "carol.near", carol.public_key(), 500)

        assert outcome.status.is_success
        assert node.view_account("carol.near").amount == 500
        assert node.get_access_key("carol.near", carol.public_key()).permission == "FullAccess"

    def test_create_existing_account_fails(self, alice, bob_signer, node):
        outcome = alice.create_account("alice.near", "bob.near", bob_signer.public_key(), 500)
        assert outcome.status.failure["ActionError"]["kind"] == {"AccountAlreadyExists": {"account_id": "bob.near"}}
        assert node.view_account("alice.near").amount == BALANCE

    def test_add_and_delete_key(self, alice, node):
        extra = InMemorySigner.from_seed("extra").public_key()
        alice.add_key("alice.near", extra, AccessKey.full_access())
        assert node.get_access_key("alice.near", extra).nonce == 0

        alice.delete_key("alice.near", extra)
        with pytest.raises(NotFoundError) as excinfo:
            node.get_access_key("alice.near", extra)
        assert excinfo.value.cause_name == "UNKNOWN_ACCESS_KEY"
        assert alice.get_access_key_nonce_for_signer("alice.near") == 2

    def test_add_existing_key_fails(self, alice, alice_signer):
        outcome = alice.add_key("alice.near", alice_signer.public_key(), AccessKey.full_access())
        assert "AddKeyAlreadyExists" in outcome.status.failure["ActionError"]["kind"]

    def test_delete_missing_key_fails(self, alice):
        outcome = alice.delete_key("alice.near", InMemorySigner.from_seed("nobody").public_key())
        assert "DeleteKeyDoesNotExist" in outcome.status.failure["ActionError"]["kind"]

    def test_swap_key(self, alice, node, alice_signer):
        new_signer = InMemorySigner.from_seed("alice.near", seed="rotated")
        alice.swap_key("alice.near", alice_signer.public_key(), new_signer.public_key(), AccessKey.full_access())

        with pytest.raises(NotFoundError):
            node.get_access_key("alice.near", alice_signer.public_key())
        alice.set_signer(new_signer)
        outcome = alice.send_money("alice.near", "bob.near", 1)
        assert outcome.status.is_success
        assert node.get_access_key("alice.near", new_signer.public_key()).nonce == 1

    def test_actor_must_own_account(self, alice, node):
        outcome = alice.delete_account("alice.near", "bob.near")
        assert outcome.status.failure["ActionError"]["kind"] == {
            "ActorNoPermission": {"account_id": "bob.near", "actor_id": "alice.near"}
        }
        assert node.view_account("bob.near").amount == BALANCE

    def test_delete_account(self, node, caplog):
        signer = InMemorySigner.from_seed("dave.near")
        node.add_account("dave.near", 50, signer.public_key())
        dave = RuntimeUser("dave.near", signer, node)

        with caplog.at_level(logging.WARNING):
            outcome = dave.delete_account("dave.near", "dave.near")

        assert outcome.status.is_success
        with pytest.raises(NotFoundError):
            node.view_account("dave.near")
        # The beneficiary is the deleted account itself, so the balance is lost
        assert any("dropped" in record.getMessage() for record in caplog.records)

    def test_deploy_contract(self, alice, node):
        assert node.view_account("alice.near").code_hash == "1" * 32
        alice.deploy_contract("alice.near", b"\x00asm\x01")
        account = node.view_account("alice.near")
        assert account.code_hash != "1" * 32
        assert account.storage_usage == 5

    def test_stake(self, alice, alice_signer, node):
        alice.stake("alice.near", alice_signer.public_key(), 400)
        account = node.view_account("alice.near")
        assert (account.amount, account.locked) == (BALANCE - 400, 400)

        alice.stake("alice.near", alice_signer.public_key(), 100)
        account = node.view_account("alice.near")
        assert (account.amount, account.locked) == (BALANCE - 100, 100)

    def test_stake_above_balance_fails(self, alice, alice_signer):
        outcome = alice.stake("alice.near", alice_signer.public_key(), BALANCE * 2)
        assert "TriesToStake" in outcome.status.failure["ActionError"]["kind"]

    def test_view_missing_account(self, node):
        with pytest.raises(NotFoundError) as excinfo:
            node.view_account("ghost.near")
        assert excinfo.value.cause_name == "UNKNOWN_ACCOUNT"

    def test_add_account_twice(self, node):
        with pytest.raises(ValueError, match="already exists"):
            node.add_account("alice.near", 1)


class TestContracts:
    def test_function_call(self, alice, node):
        calls = _counter(node)
        outcome = alice.function_call("alice.near", "counter.near", "increment", b'{"by": 2}', 10 ** 12, 0)

        assert outcome.status.decoded_value() == b"2"
        assert outcome.logs == ["count is 2"]
        assert node.view_state("counter.near").as_dict() == {b"count": b"2"}
        assert calls[0].predecessor_id == "alice.near"
        assert calls[0].gas == 10 ** 12

    def test_deposit_reaches_contract(self, alice, node):
        _counter(node)
        alice.function_call("alice.near", "counter.near", "increment", b"", 10 ** 12, 30)
        assert node.view_account("counter.near").amount == 30
        assert node.view_account("alice.near").amount == BALANCE - 30

    def test_panic_rolls_back(self, alice, node):
        _counter(node)
        alice.function_call("alice.near", "counter.near", "increment", b"", 10 ** 12, 0)
        outcome = alice.function_call("alice.near", "counter.near", "explode", b"", 10 ** 12, 5)

        kind = outcome.status.failure["ActionError"]["kind"]
        assert "boom" in kind["FunctionCallError"]["ExecutionError"]
        assert node.view_state("counter.near").as_dict() == {b"count": b"1"}
        assert node.view_account("alice.near").amount == BALANCE

    def test_unknown_method(self, alice, node):
        _counter(node)
        outcome = alice.function_call("alice.near", "counter.near", "decrement", b"", 10 ** 12, 0)
        assert outcome.status.failure["ActionError"]["kind"] == {
            "FunctionCallError": {"MethodResolveError": "MethodNotFound"}
        }

    def test_account_without_contract(self, alice):
        outcome = alice.function_call("alice.near", "bob.near", "anything", b"", 10 ** 12, 0)
        assert "CompilationError" in outcome.status.failure["ActionError"]["kind"]["FunctionCallError"]

    def test_view_state_prefix(self, alice, node):
        _counter(node)
        alice.function_call("alice.near", "counter.near", "increment", b"", 10 ** 12, 0)
        assert node.view_state("counter.near", b"co").as_dict() == {b"count": b"1"}
        assert node.view_state("counter.near", b"x").values == []


class TestFunctionCallKeys:
    @pytest.fixture
    def limited(self, alice, node):
        _counter(node)
        signer = InMemorySigner.from_seed("alice.near", seed="limited")
        alice.add_key("alice.near", signer.public_key(), AccessKey.function_call_access("counter.near", ["increment"]))
        return RuntimeUser("alice.near", signer, node)

    def test_allowed_call(self, limited):
        outcome = limited.function_call("alice.near", "counter.near", "increment", b"", 10 ** 12, 0)
        assert outcome.status.is_success

    def test_transfer_requires_full_access(self, limited):
        with pytest.raises(RejectedError) as excinfo:
            limited.send_money("alice.near", "bob.near", 1)
        assert excinfo.value.data == {"InvalidTxError": {"InvalidAccessKeyError": "RequiresFullAccess"}}

    def test_other_method_refused(self, limited):
        with pytest.raises(RejectedError, match="does not allow calling explode"):
            limited.function_call("alice.near", "counter.near", "explode", b"", 10 ** 12, 0)

    def test_other_receiver_refused(self, limited):
        with pytest.raises(RejectedError, match="restricted to counter.near"):
            limited.function_call("alice.near", "bob.near", "increment", b"", 10 ** 12, 0)

    def test_deposit_refused(self, limited):
        with pytest.raises(RejectedError, match="cannot attach deposits"):
            limited.function_call("alice.near", "counter.near", "increment", b"", 10 ** 12, 1)


class TestBlocks:
    def test_genesis(self, node):
        assert node.best_height() == 0
        genesis = node.get_block(0)
        assert genesis.header.height == 0
        assert genesis.header.prev_hash == "1" * 32

    def test_missing_block_is_none(self, alice):
        assert alice.get_block(1000) is None
        assert alice.get_block(-1) is None

    def test_commit_advances_chain(self, alice, node):
        genesis_hash = node.best_block_hash()
        alice.send_money("alice.near", "bob.near", 1)
        assert alice.get_best_height() == 1
        block = alice.get_block(1)
        assert block.header.prev_hash == node.get_block(0).header.hash
        assert alice.get_best_block_hash() != genesis_hash

    def test_state_root_tracks_state(self, alice):
        before = alice.get_state_root()
        assert alice.get_state_root() == before
        alice.send_money("alice.near", "bob.near", 1)
        assert alice.get_state_root() != before

    def test_pool_waits_for_block(self, alice, node, alice_signer):
        signed = _signed(alice_signer, 1, "bob.near", [Transfer(deposit=5)])
        alice.add_transaction(signed)

        assert alice.get_transaction_result(signed.hash).status.kind == StatusKind.NOT_STARTED
        assert alice.get_transaction_final_result(signed.hash).status.kind == StatusKind.NOT_STARTED
        assert node.view_account("bob.near").amount == BALANCE

        node.produce_block()
        final = alice.get_transaction_final_result(signed.hash)
        assert final.status.is_success
        assert alice.get_transaction_result(signed.hash).status.kind == StatusKind.SUCCESS_RECEIPT_ID
        assert node.view_account("bob.near").amount == BALANCE + 5

    def test_pooled_transaction_invalidated_before_block(self, node, alice_signer):
        first = _signed(alice_signer, 1, "bob.near", [Transfer(deposit=BALANCE)])
        second = _signed(alice_signer, 2, "bob.near", [Transfer(deposit=BALANCE)])
        node.submit_transaction(first)
        node.submit_transaction(second)
        node.produce_block()

        assert node.final_outcome(first.hash).status.is_success
        dropped = node.final_outcome(second.hash)
        assert dropped.status.is_failure
        assert "NotEnoughBalance" in dropped.status.failure["InvalidTxError"]

    def test_unknown_transaction(self, alice):
        with pytest.raises(NotFoundError):
            alice.get_transaction_final_result(b"\x02" * 32)


class TestReceipts:
    def test_add_receipt(self, alice, node):
        alice.add_receipt(Receipt.new_balance_refund("bob.near", 7, b"\x01" * 32))
        assert node.view_account("bob.near").amount == BALANCE
        node.produce_block()
        assert node.view_account("bob.near").amount == BALANCE + 7

    def test_system_refund_to_missing_account_dropped(self, node, caplog):
        node.add_receipt(Receipt.new_balance_refund("ghost.near", 7, b"\x01" * 32))
        with caplog.at_level(logging.WARNING):
            node.produce_block()
        assert any("dropped" in record.getMessage() for record in caplog.records)

    def test_created_account_may_receive_keys(self, alice, node):
        key = InMemorySigner.from_seed("erin.near").public_key()
        outcome = alice.sign_and_commit_actions(
            "alice.near", "erin.near",
            [CreateAccount(), AddKey(public_key=key, access_key=AccessKey.full_access())],
        )
        assert outcome.status.is_success
        assert node.view_account("erin.near").amount == 0


def test_node_logger_is_used():
    logger = logging.getLogger("test.node")
    node = InMemoryNode(logger=logger)
    assert node.logger is logger
    assert node.chain_id == "sandbox"
