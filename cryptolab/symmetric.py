"""
Symmetric encryption tools for the symmetric-encryption page.

Everything here is built on the same ChaCha20-Poly1305 codec the chat uses;
the only difference is where the key comes from.
"""

import base64
import binascii
import os
from typing import Optional
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from . import codec
from .primitives import CryptoError


PBKDF2_ITERATIONS = 10000


def random_bytes(length: int) -> bytes:
    """Return cryptographically secure random bytes"""
    if length < 0:
        raise ValueError("length must be non-negative")
    return os.urandom(length)


def generate_symmetric_key() -> bytes:
    """Generate a random 256-bit key"""
    return random_bytes(codec.KEY_SIZE)


def key_from_passphrase(passphrase: str) -> bytes:
    """
    Turn an arbitrary passphrase into a 32-byte key by hashing it with SHA-256.

    Fine for a demo; real systems should use derive_key_from_password().
    """
    digest = hashes.Hash(hashes.SHA256())
    digest.update(passphrase.encode("utf-8"))
    return digest.finalize()


def derive_key_from_password(password: str, salt: bytes, iterations: int = PBKDF2_ITERATIONS) -> bytes:
    """
    Derive an AES-256-sized key from a password using PBKDF2.

    Args:
        password: User's password
        salt: Salt for key derivation
        iterations: PBKDF2 round count

    Returns:
        32-byte key
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA1(),
        length=32,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password.encode("utf-8"))


def encrypt_text(text: str, key: bytes) -> str:
    """Encrypt a string and return the combined payload as base64"""
    return base64.b64encode(codec.seal_text(text, key)).decode("ascii")


def decrypt_text(token: str, key: bytes) -> Optional[str]:
    """
    Decrypt a base64 payload produced by encrypt_text().

    Returns:
        The plaintext, or None if the token is not base64 or does not
        decrypt under this key
    """
    try:
        sealed = base64.b64decode(token, validate=True)
    except (binascii.Error, ValueError):
        return None

    try:
        return codec.open_text(sealed, key)
    except CryptoError:
        return None
