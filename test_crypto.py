#!/usr/bin/env python3
"""
Tests for the cryptographic building blocks.
Runs under pytest, or standalone as a quick sanity check.
"""

import sys
import pytest
from cryptography.hazmat.primitives.asymmetric import ec

from cryptolab import codec
from cryptolab.exercise import KeyExchangeExercise, Solution, ExerciseFailed, check_implementation
from cryptolab.hashing import hash_text, hash_bytes, hash_file, is_insecure
from cryptolab.primitives import (
    generate_keypair,
    serialize_public_key,
    deserialize_public_key,
    AuthenticationError,
    CryptoError,
    InvalidKeyMaterialError
)
from cryptolab.session_key import derive_session_key, derive_session_key_from_bytes
from cryptolab.signing import (
    generate_signing_keypair,
    sign,
    verify,
    serialize_signing_public_key,
    deserialize_signing_public_key
)
from cryptolab.symmetric import (
    generate_symmetric_key,
    key_from_passphrase,
    derive_key_from_password,
    encrypt_text,
    decrypt_text,
    random_bytes
)


PAYLOADS = [b"", b"x", b"Hello, World!", "Grüße, 世界".encode("utf-8"), bytes(range(256)) * 4]


def test_session_key_symmetry():
    """Test that both sides derive the same session key"""
    print("Testing session key symmetry...")

    for _ in range(5):
        alice_private, alice_public = generate_keypair()
        bob_private, bob_public = generate_keypair()

        alice_key = derive_session_key(alice_private, bob_public)
        bob_key = derive_session_key(bob_private, alice_public)

        assert alice_key == bob_key, "Session keys differ"
        assert len(alice_key) == 32, "Wrong session key length"

    print("✓ Session key derivation is symmetric")


def test_session_key_depends_on_pair_and_salt():
    alice_private, alice_public = generate_keypair()
    _, bob_public = generate_keypair()
    _, eve_public = generate_keypair()

    assert derive_session_key(alice_private, bob_public) != derive_session_key(alice_private, eve_public)
    assert derive_session_key(alice_private, bob_public) != derive_session_key(alice_private, bob_public, salt=b"")


def test_session_key_from_serialized_public_key():
    alice_private, alice_public = generate_keypair()
    bob_private, bob_public = generate_keypair()

    from_bytes = derive_session_key_from_bytes(alice_private, serialize_public_key(bob_public))
    assert from_bytes == derive_session_key(bob_private, alice_public)


def test_invalid_key_material():
    """Test that bad keys are rejected instead of producing a key"""
    print("Testing invalid key material...")

    p521_private, _ = generate_keypair()
    _, p256_public = generate_keypair(ec.SECP256R1())

    with pytest.raises(InvalidKeyMaterialError):
        derive_session_key(p521_private, p256_public)

    with pytest.raises(InvalidKeyMaterialError):
        derive_session_key(p521_private, b"not a key")

    with pytest.raises(InvalidKeyMaterialError):
        deserialize_public_key(b"\x04" + b"\x01" * 132)

    with pytest.raises(InvalidKeyMaterialError):
        codec.seal(b"data", b"short key")

    print("✓ Invalid key material is rejected")


def test_public_key_roundtrip():
    _, public_key = generate_keypair()
    encoded = serialize_public_key(public_key)

    assert encoded[0] == 0x04
    assert len(encoded) == 133
    assert serialize_public_key(deserialize_public_key(encoded)) == encoded


@pytest.mark.parametrize("plaintext", PAYLOADS)
def test_encryption_roundtrip(plaintext):
    """Test symmetric encryption"""
    key = generate_symmetric_key()

    sealed = codec.seal(plaintext, key)

    assert codec.open(sealed, key) == plaintext, "Decryption failed"
    assert len(sealed) == codec.NONCE_SIZE + len(plaintext) + codec.TAG_SIZE


def test_fresh_nonce_per_seal():
    key = generate_symmetric_key()

    first = codec.seal(b"same message", key)
    second = codec.seal(b"same message", key)

    assert first[:codec.NONCE_SIZE] != second[:codec.NONCE_SIZE], "Nonce reused"
    assert first != second


def test_tamper_detection():
    """Flip every single bit of a sealed message; each must fail to open"""
    print("Testing tamper detection...")

    key = generate_symmetric_key()
    sealed = codec.seal(b"attack at dawn", key)

    for index in range(len(sealed)):
        for bit in range(8):
            tampered = bytearray(sealed)
            tampered[index] ^= 1 << bit
            try:
                codec.open(bytes(tampered), key)
                assert False, f"Tampered byte {index} bit {bit} was accepted"
            except AuthenticationError:
                pass  # Expected

    print("✓ Tampering is detected")


def test_truncation_rejected():
    key = generate_symmetric_key()
    sealed = codec.seal(b"attack at dawn", key)

    for length in (0, 5, codec.NONCE_SIZE + codec.TAG_SIZE - 1, len(sealed) - 1):
        with pytest.raises(AuthenticationError):
            codec.open(sealed[:length], key)


@pytest.mark.parametrize("plaintext", PAYLOADS)
def test_wrong_key_rejected(plaintext):
    """Test authentication against a different key"""
    key = generate_symmetric_key()
    wrong_key = generate_symmetric_key()
    assert key != wrong_key

    try:
        codec.open(codec.seal(plaintext, key), wrong_key)
        assert False, "Should have raised AuthenticationError"
    except AuthenticationError:
        pass  # Expected


def test_open_text_rejects_non_utf8():
    key = generate_symmetric_key()
    sealed = codec.seal(b"\xff\xfe\xfd", key)

    with pytest.raises(AuthenticationError):
        codec.open_text(sealed, key)


def test_authentication_error_is_crypto_error():
    assert issubclass(AuthenticationError, CryptoError)
    assert issubclass(InvalidKeyMaterialError, CryptoError)


def test_hashing():
    """Test hash functions against known digests"""
    print("Testing hashing...")

    assert hash_text("abc", "sha256") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    assert hash_text("abc", "sha1") == "a9993e364706816aba3e25717850c26c9cd0d89d"
    assert hash_text("", "md5") == "d41d8cd98f00b204e9800998ecf8427e"
    assert hash_text("") == (
        "cf83e1357eefb8bdf1542850d66d8007d620e4050b5715dc83f4a921d36ce9ce"
        "47d0d13c5d85f2b0ff8318d2877eec2f63b931bd47417a81a538327af927da3e"
    )
    assert len(hash_text("abc", "SHA384")) == 96
    assert hash_text("abc") != hash_text("abd")

    assert is_insecure("md5") and is_insecure("SHA1")
    assert not is_insecure("sha512")

    with pytest.raises(ValueError):
        hash_text("abc", "sha3-1024")

    print("✓ Hashing works")


def test_hash_file(tmp_path):
    path = tmp_path / "download.bin"
    data = bytes(range(256)) * 1000
    path.write_bytes(data)

    assert hash_file(path, "sha256") == hash_bytes(data, "sha256")
    assert hash_file(str(path)) == hash_bytes(data)


def test_signing():
    """Test Ed25519 signatures"""
    print("Testing signing...")

    private_key, public_key = generate_signing_keypair()
    message = b"I owe Bob 10 dollars"

    signature = sign(message, private_key)

    assert len(signature) == 64
    assert verify(signature, message, public_key), "Valid signature rejected"
    assert not verify(signature, b"I owe Bob 1000 dollars", public_key), "Modified data accepted"

    _, other_public = generate_signing_keypair()
    assert not verify(signature, message, other_public), "Wrong key accepted"

    restored = deserialize_signing_public_key(serialize_signing_public_key(public_key))
    assert verify(signature, message, restored)

    with pytest.raises(InvalidKeyMaterialError):
        deserialize_signing_public_key(b"too short")

    print("✓ Signing works")


def test_passphrase_encryption():
    """Test the symmetric encryption tool"""
    key = key_from_passphrase("correct horse battery staple")
    assert len(key) == 32
    assert key == key_from_passphrase("correct horse battery staple")

    token = encrypt_text("Lorem ipsum dolor sit amet.", key)

    assert decrypt_text(token, key) == "Lorem ipsum dolor sit amet."
    assert decrypt_text(token, key_from_passphrase("wrong")) is None
    assert decrypt_text("definitely not base64!", key) is None


def test_decrypt_text_rejects_non_base64_without_decrypting(monkeypatch):
    """Text that is not base64 is refused before any decryption is attempted"""
    key = key_from_passphrase("pass")
    opened = []
    monkeypatch.setattr(codec, "open_text", lambda *args: opened.append(args))

    assert decrypt_text("not base64 at all", key) is None
    assert opened == []


def test_password_key_derivation():
    salt = random_bytes(16)

    key = derive_key_from_password("hunter2", salt)

    assert len(key) == 32
    assert key == derive_key_from_password("hunter2", salt)
    assert key != derive_key_from_password("hunter2", random_bytes(16))
    assert key != derive_key_from_password("hunter2", salt, iterations=1000)


def test_exercise_solution():
    """Test the reference solution of the key exchange exercise"""
    print("Testing exercise...")

    check_implementation(Solution())

    print("✓ Exercise solution works")


def test_exercise_detects_broken_implementation():
    class Broken(Solution):
        def decrypt(self, data, symmetric_key):
            return "something else"

    class WrongKey(KeyExchangeExercise):
        def generate_keypair(self):
            return Solution().generate_keypair()

        def encrypt(self, text, symmetric_key):
            return codec.seal_text(text, generate_symmetric_key())

        def decrypt(self, data, symmetric_key):
            return codec.open_text(data, symmetric_key)

    with pytest.raises(ExerciseFailed):
        check_implementation(Broken())
    with pytest.raises(ExerciseFailed):
        check_implementation(WrongKey())


def run_all_tests():
    """Run the quick sanity checks"""
    print("\n" + "="*50)
    print("Running Cryptographic Tests")
    print("="*50 + "\n")

    try:
        test_session_key_symmetry()
        test_invalid_key_material()
        test_tamper_detection()
        test_hashing()
        test_signing()
        test_exercise_solution()

        print("\n" + "="*50)
        print("✓ All tests passed!")
        print("="*50 + "\n")
        return 0

    except AssertionError as e:
        print(f"\n✗ Test failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(run_all_tests())
