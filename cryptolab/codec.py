"""
Message codec: authenticated encryption of chat payloads.

Uses ChaCha20-Poly1305 in a self-contained "combined" layout so callers only
ever handle one opaque byte string:

    nonce (12 bytes) || ciphertext || tag (16 bytes)
"""

import os
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305

from .primitives import AuthenticationError, InvalidKeyMaterialError


NONCE_SIZE = 12
TAG_SIZE = 16
KEY_SIZE = 32


def _cipher(key: bytes) -> ChaCha20Poly1305:
    if not isinstance(key, (bytes, bytearray)) or len(key) != KEY_SIZE:
        raise InvalidKeyMaterialError(f"Symmetric key must be {KEY_SIZE} bytes")
    return ChaCha20Poly1305(bytes(key))


def seal(plaintext: bytes, key: bytes) -> bytes:
    """
    Encrypt and authenticate a payload.

    A fresh random nonce is drawn for every call.

    Args:
        plaintext: Message to encrypt
        key: 32-byte symmetric key

    Returns:
        nonce + ciphertext + tag
    """
    cipher = _cipher(key)
    nonce = os.urandom(NONCE_SIZE)
    return nonce + cipher.encrypt(nonce, plaintext, None)


def open(sealed: bytes, key: bytes) -> bytes:
    """
    Verify and decrypt a combined payload.

    Args:
        sealed: nonce + ciphertext + tag, as produced by seal()
        key: 32-byte symmetric key

    Returns:
        Decrypted plaintext

    Raises:
        AuthenticationError: If the payload is truncated, modified or was
            sealed under a different key
    """
    cipher = _cipher(key)
    if len(sealed) < NONCE_SIZE + TAG_SIZE:
        raise AuthenticationError("Ciphertext too short")

    nonce = sealed[:NONCE_SIZE]
    try:
        return cipher.decrypt(nonce, sealed[NONCE_SIZE:], None)
    except InvalidTag:
        raise AuthenticationError("Decryption failed: authentication tag mismatch")


def seal_text(text: str, key: bytes) -> bytes:
    """Seal a UTF-8 string"""
    return seal(text.encode("utf-8"), key)


def open_text(sealed: bytes, key: bytes) -> str:
    """Open a payload and decode it as UTF-8"""
    plaintext = open(sealed, key)
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError:
        raise AuthenticationError("Decrypted payload is not valid UTF-8")
