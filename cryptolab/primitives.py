"""
Cryptographic Primitives for the Playground

This module provides the foundational key-agreement operations used by the
end-to-end encrypted chat demo: keypair generation, public key
serialization and the error types every other module raises.
"""

from typing import Optional, Tuple
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives import serialization


DEFAULT_CURVE = ec.SECP521R1

SUPPORTED_CURVES = {
    "secp256r1": ec.SECP256R1,
    "secp384r1": ec.SECP384R1,
    "secp521r1": ec.SECP521R1,
}


class CryptoError(Exception):
    """Base exception for cryptographic errors"""
    pass


class AuthenticationError(CryptoError):
    """Ciphertext was tampered with, truncated or sealed under another key"""
    pass


class InvalidKeyMaterialError(CryptoError, ValueError):
    """Key bytes or key objects that cannot be used for the operation"""
    pass


def generate_keypair(curve: Optional[ec.EllipticCurve] = None) -> Tuple[ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey]:
    """
    Generate an elliptic-curve key-agreement keypair.

    Args:
        curve: Curve instance to use (defaults to NIST P-521)

    Returns:
        Tuple of (private_key, public_key)
    """
    if curve is None:
        curve = DEFAULT_CURVE()
    private_key = ec.generate_private_key(curve)
    public_key = private_key.public_key()
    return private_key, public_key


def curve_by_name(name: str) -> ec.EllipticCurve:
    """Look up a supported curve by its lowercase name"""
    try:
        return SUPPORTED_CURVES[name.lower()]()
    except KeyError:
        raise InvalidKeyMaterialError(f"Unsupported curve: {name}")


def serialize_public_key(public_key: ec.EllipticCurvePublicKey) -> bytes:
    """Serialize an EC public key to uncompressed X9.62 point bytes"""
    if not isinstance(public_key, ec.EllipticCurvePublicKey):
        raise InvalidKeyMaterialError("Expected an elliptic-curve public key")
    return public_key.public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint
    )


def deserialize_public_key(key_bytes: bytes, curve: Optional[ec.EllipticCurve] = None) -> ec.EllipticCurvePublicKey:
    """
    Deserialize X9.62 point bytes to an EC public key.

    Args:
        key_bytes: Encoded point
        curve: Curve the point lies on (defaults to NIST P-521)

    Returns:
        The public key

    Raises:
        InvalidKeyMaterialError: If the bytes are not a valid point on the curve
    """
    if curve is None:
        curve = DEFAULT_CURVE()
    try:
        return ec.EllipticCurvePublicKey.from_encoded_point(curve, bytes(key_bytes))
    except (ValueError, TypeError) as e:
        raise InvalidKeyMaterialError(f"Invalid public key: {e}")
