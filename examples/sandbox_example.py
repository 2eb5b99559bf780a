#!/usr/bin/env python3
"""
Run the SDK against the in-process node, no network required.

Shows blocking and asyncio users sharing one node, a host-side contract,
and concurrent submissions from one key.
"""
import asyncio
import json
import logging

from near_user_sdk import InMemorySigner
from near_user_sdk.runtime import AsyncRuntimeUser, InMemoryNode, RuntimeUser


def increment(ctx):
    count = int(ctx.storage.get(b"count", b"0")) + 1
    ctx.storage[b"count"] = str(count).encode()
    ctx.log(f"{ctx.predecessor_id} incremented to {count}")
    return json.dumps(count).encode()


async def burst(user, count):
    outcomes = await asyncio.gather(*[
        user.function_call("alice.near", "counter.near", "increment", b"", 10 ** 13, 0)
        for _ in range(count)
    ])
    return sorted(outcome.transaction.nonce for outcome in outcomes)


def main():
    logging.basicConfig(level=logging.INFO)

    alice_signer = InMemorySigner.from_seed("alice.near")
    node = InMemoryNode()
    node.add_account("alice.near", 10 ** 25, alice_signer.public_key())
    node.add_account("counter.near", 0)
    node.register_contract("counter.near", {"increment": increment})

    alice = RuntimeUser("alice.near", alice_signer, node)

    bob_signer = InMemorySigner.from_seed("bob.near")
    outcome = alice.create_account("alice.near", "bob.near", bob_signer.public_key(), 10 ** 24)
    print(f"create_account: {outcome.status.kind.value}")

    outcome = alice.function_call("alice.near", "counter.near", "increment", b"", 10 ** 13, 0)
    print(f"increment -> {outcome.status.decoded_value().decode()} logs={outcome.logs}")

    nonces = asyncio.run(burst(AsyncRuntimeUser("alice.near", alice_signer, node), 5))
    print(f"concurrent nonces: {nonces}")

    print(f"counter state: {node.view_state('counter.near').as_dict()}")
    print(f"height {node.best_height()}, state root {node.state_root().hex()}")


if __name__ == "__main__":
    main()
