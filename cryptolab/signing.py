"""
Digital signatures with Ed25519.

Signing keys are separate from the key-agreement keys used for chat
encryption.
"""

from typing import Tuple
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey
from cryptography.hazmat.primitives import serialization

from .primitives import InvalidKeyMaterialError


def generate_signing_keypair() -> Tuple[Ed25519PrivateKey, Ed25519PublicKey]:
    """
    Generate an Ed25519 keypair for digital signatures.

    Returns:
        Tuple of (private_key, public_key)
    """
    private_key = Ed25519PrivateKey.generate()
    public_key = private_key.public_key()
    return private_key, public_key


def sign(data: bytes, private_key: Ed25519PrivateKey) -> bytes:
    """
    Sign data.

    Args:
        data: Message to sign
        private_key: Signer's private key

    Returns:
        64-byte signature
    """
    if not isinstance(private_key, Ed25519PrivateKey):
        raise InvalidKeyMaterialError("Expected an Ed25519 private key")
    return private_key.sign(data)


def verify(signature: bytes, data: bytes, public_key: Ed25519PublicKey) -> bool:
    """
    Check a signature.

    Args:
        signature: Signature to check
        data: Data that was supposedly signed
        public_key: Signer's public key

    Returns:
        True if the signature is valid for exactly this data
    """
    if not isinstance(public_key, Ed25519PublicKey):
        raise InvalidKeyMaterialError("Expected an Ed25519 public key")
    try:
        public_key.verify(signature, data)
        return True
    except InvalidSignature:
        return False


def serialize_signing_public_key(public_key: Ed25519PublicKey) -> bytes:
    """Serialize Ed25519 public key to bytes"""
    return public_key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw
    )


def deserialize_signing_public_key(key_bytes: bytes) -> Ed25519PublicKey:
    """Deserialize bytes to Ed25519 public key"""
    try:
        return Ed25519PublicKey.from_public_bytes(bytes(key_bytes))
    except ValueError as e:
        raise InvalidKeyMaterialError(f"Invalid signing key: {e}")
