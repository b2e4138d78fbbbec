"""
Cryptographic building blocks for the crypto playground.

Covers the topics of the playground pages:
- Hashing (SHA-2 family, plus SHA-1 and MD5 for comparison)
- Signing with Ed25519
- Symmetric encryption with ChaCha20-Poly1305
- Asymmetric key agreement (ECDH on NIST P-521) with HKDF session keys
"""

from .primitives import (
    generate_keypair,
    serialize_public_key,
    deserialize_public_key,
    CryptoError,
    AuthenticationError,
    InvalidKeyMaterialError
)
from .session_key import derive_session_key, PROTOCOL_SALT
from .codec import seal, open_text, seal_text
from .hashing import hash_text, hash_bytes, hash_file, to_hex

__all__ = [
    'generate_keypair',
    'serialize_public_key',
    'deserialize_public_key',
    'derive_session_key',
    'PROTOCOL_SALT',
    'seal',
    'seal_text',
    'open_text',
    'hash_text',
    'hash_bytes',
    'hash_file',
    'to_hex',
    'CryptoError',
    'AuthenticationError',
    'InvalidKeyMaterialError'
]
