#!/usr/bin/env python3
"""
Deploy and call a Solidity contract through the EVM contract account.

Usage:
    NEAR_ACCOUNT_ID=alice.test NEAR_SECRET_KEY=ed25519:... \\
        python evm_example.py path/to/zombieAttack.bin
"""
import os
import sys

from near_user_sdk import InMemorySigner, RpcUser
from near_user_sdk.evm import EvmCallError, EvmContract, sender_name_to_eth_address


def main():
    if len(sys.argv) != 2:
        print("Usage: evm_example.py <bytecode file>")
        sys.exit(1)

    account_id = os.environ.get("NEAR_ACCOUNT_ID")
    secret_key = os.environ.get("NEAR_SECRET_KEY")
    if not account_id or not secret_key:
        print("ERROR: NEAR_ACCOUNT_ID and NEAR_SECRET_KEY environment variables are required")
        sys.exit(1)

    with open(sys.argv[1]) as f:
        bytecode = f.read()

    signer = InMemorySigner.from_secret_key(account_id, secret_key)
    with RpcUser(os.environ.get("NEAR_RPC_URL"), account_id, signer) as user:
        zombies = EvmContract(user, account_id, "zombies")
        try:
            zombies.deploy(bytecode)
            zombies.call("createRandomZombie", ["string"], ["kitty"])
            owner = sender_name_to_eth_address(account_id)
            (ids,) = zombies.call("getZombiesByOwner", ["address"], [owner], ["uint256[]"])
        except EvmCallError as e:
            print(f"EVM call failed: {e}")
            sys.exit(1)

    print(f"Zombies owned by {owner}: {list(ids)}")


if __name__ == "__main__":
    main()
