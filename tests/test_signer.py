"""
Tests for key types and the in-memory signer.
"""
import hashlib

import pytest

from near_user_sdk.signer import InMemorySigner, KeyType, PublicKey, Signature, Signer


def test_from_seed_is_deterministic():
    first = InMemorySigner.from_seed("alice.near", KeyType.ED25519, "alice.near")
    second = InMemorySigner.from_seed("alice.near", KeyType.ED25519, "alice.near")
    other = InMemorySigner.from_seed("alice.near", KeyType.ED25519, "bob.near")
    assert first.public_key() == second.public_key()
    assert first.public_key() != other.public_key()


def test_seed_defaults_to_account_id():
    assert (
        InMemorySigner.from_seed("alice.near").public_key()
        == InMemorySigner.from_seed("alice.near", KeyType.ED25519, "alice.near").public_key()
    )


def test_signer_satisfies_protocol(alice_signer):
    assert isinstance(alice_signer, Signer)
    assert alice_signer.account_id == "alice.near"


def test_ed25519_sign_and_verify(alice_signer):
    signature = alice_signer.sign(b"payload")
    assert signature.key_type == KeyType.ED25519
    assert len(signature.data) == 64
    assert alice_signer.public_key().verify(b"payload", signature)
    assert not alice_signer.public_key().verify(b"tampered", signature)


def test_secp256k1_sign_and_verify():
    signer = InMemorySigner.from_seed("eth.near", KeyType.SECP256K1)
    digest = hashlib.sha256(b"payload").digest()
    signature = signer.sign(digest)
    assert signature.key_type == KeyType.SECP256K1
    assert len(signature.data) == 65
    assert len(signer.public_key().data) == 64
    assert signer.public_key().verify(digest, signature)
    assert not signer.public_key().verify(hashlib.sha256(b"other").digest(), signature)


def test_secp256k1_requires_digest():
    signer = InMemorySigner.from_seed("eth.near", KeyType.SECP256K1)
    with pytest.raises(ValueError, match="32-byte digests"):
        signer.sign(b"not a digest")


def test_verify_rejects_other_curve(alice_signer):
    signer = InMemorySigner.from_seed("eth.near", KeyType.SECP256K1)
    signature = signer.sign(bytes(32))
    assert not alice_signer.public_key().verify(bytes(32), signature)


def test_public_key_text_form(alice_signer):
    text = str(alice_signer.public_key())
    assert text.startswith("ed25519:")
    assert PublicKey.from_string(text) == alice_signer.public_key()


def test_public_key_without_prefix_is_ed25519(alice_signer):
    text = str(alice_signer.public_key()).split(":", 1)[1]
    assert PublicKey.from_string(text) == alice_signer.public_key()


def test_public_key_errors():
    with pytest.raises(ValueError, match="Unknown key type"):
        PublicKey.from_string("rsa:abc")
    with pytest.raises(ValueError, match="public key must be 32 bytes"):
        PublicKey(KeyType.ED25519, b"\x01")


def test_signature_length_checked():
    with pytest.raises(ValueError, match="signature must be 64 bytes"):
        Signature(KeyType.ED25519, b"\x00" * 10)


def test_secret_key_string_loads_same_key(alice_signer):
    loaded = InMemorySigner.from_secret_key("alice.near", alice_signer.secret_key_string())
    assert loaded.public_key() == alice_signer.public_key()


def test_secret_length_checked():
    with pytest.raises(ValueError, match="Secret must be 32 bytes"):
        InMemorySigner("alice.near", KeyType.ED25519, b"short")


def test_random_signers_differ():
    assert InMemorySigner.from_random("a").public_key() != InMemorySigner.from_random("a").public_key()


def test_repr_hides_secret(alice_signer):
    assert alice_signer.secret_key_string().split(":")[1] not in repr(alice_signer)
