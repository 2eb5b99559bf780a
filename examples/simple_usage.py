#!/usr/bin/env python3
"""
Simple example of using the NEAR user SDK against a running node.
"""
import os

from near_user_sdk import AccessKey, InMemorySigner, RejectedError, RpcUser


def main():
    """
    Demonstrate basic usage of RpcUser.

    This example shows how to:
    1. Load a signer from a secret key
    2. Send money and read the outcome
    3. Add a function call key to the account
    """
    # Read configuration from environment
    RPC_URL = os.environ.get("NEAR_RPC_URL", "http://localhost:3030")
    ACCOUNT_ID = os.environ.get("NEAR_ACCOUNT_ID")
    SECRET_KEY = os.environ.get("NEAR_SECRET_KEY")
    RECEIVER_ID = os.environ.get("NEAR_RECEIVER_ID", "test.near")

    # Verify configuration
    if not ACCOUNT_ID:
        print("ERROR: NEAR_ACCOUNT_ID environment variable is required")
        return

    if not SECRET_KEY:
        print("ERROR: NEAR_SECRET_KEY environment variable is required")
        return

    signer = InMemorySigner.from_secret_key(ACCOUNT_ID, SECRET_KEY)

    with RpcUser(RPC_URL, ACCOUNT_ID, signer) as user:
        print(f"Balance of {ACCOUNT_ID}: {user.view_balance(ACCOUNT_ID)}")

        try:
            outcome = user.send_money(ACCOUNT_ID, RECEIVER_ID, 10 ** 21)
        except RejectedError as e:
            print(f"Transfer rejected: {e}")
            return

        print(f"Transaction {outcome.transaction_hash}: {outcome.status.kind.value}")
        if outcome.status.is_failure:
            print(f"Failure: {outcome.status.failure}")
            return

        app_key = InMemorySigner.from_random(ACCOUNT_ID)
        outcome = user.add_key(
            ACCOUNT_ID,
            app_key.public_key(),
            AccessKey.function_call_access(RECEIVER_ID, ["increment"], allowance=10 ** 24),
        )
        print(f"Added key {app_key.public_key()}: {outcome.status.kind.value}")
        print(f"Nonce of signing key is now {user.get_access_key_nonce_for_signer(ACCOUNT_ID)}")


if __name__ == "__main__":
    main()
