"""
Session key derivation.

Both ends of a chat derive the same symmetric key independently: ECDH between
one party's private key and the other's public key, stretched through HKDF.
The key itself never travels over the transport.
"""

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from .primitives import InvalidKeyMaterialError, deserialize_public_key


PROTOCOL_SALT = b"SALT"
SESSION_KEY_LENGTH = 32


def key_agreement(private_key: ec.EllipticCurvePrivateKey, public_key: ec.EllipticCurvePublicKey) -> bytes:
    """
    Perform ECDH key agreement.

    Args:
        private_key: Our private key
        public_key: Their public key

    Returns:
        Raw shared secret

    Raises:
        InvalidKeyMaterialError: If the keys are not EC keys on the same curve
    """
    if not isinstance(private_key, ec.EllipticCurvePrivateKey):
        raise InvalidKeyMaterialError("Expected an elliptic-curve private key")
    if not isinstance(public_key, ec.EllipticCurvePublicKey):
        raise InvalidKeyMaterialError("Expected an elliptic-curve public key")
    if private_key.curve.name != public_key.curve.name:
        raise InvalidKeyMaterialError(
            f"Curve mismatch: {private_key.curve.name} vs {public_key.curve.name}"
        )
    try:
        return private_key.exchange(ec.ECDH(), public_key)
    except ValueError as e:
        raise InvalidKeyMaterialError(f"Key agreement failed: {e}")


def derive_session_key(private_key: ec.EllipticCurvePrivateKey,
                       public_key: ec.EllipticCurvePublicKey,
                       salt: bytes = PROTOCOL_SALT) -> bytes:
    """
    Derive the symmetric chat key for a pair of participants.

    derive_session_key(a_priv, b_pub) == derive_session_key(b_priv, a_pub)

    Args:
        private_key: Our private key
        public_key: Their public key
        salt: Application-specific HKDF salt

    Returns:
        32-byte symmetric key
    """
    shared_secret = key_agreement(private_key, public_key)
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=SESSION_KEY_LENGTH,
        salt=salt,
        info=b""
    )
    return hkdf.derive(shared_secret)


def derive_session_key_from_bytes(private_key: ec.EllipticCurvePrivateKey,
                                  public_key_bytes: bytes,
                                  salt: bytes = PROTOCOL_SALT) -> bytes:
    """Derive the chat key from a peer public key in X9.62 form"""
    if not isinstance(private_key, ec.EllipticCurvePrivateKey):
        raise InvalidKeyMaterialError("Expected an elliptic-curve private key")
    public_key = deserialize_public_key(public_key_bytes, private_key.curve)
    return derive_session_key(private_key, public_key, salt)
