"""
End-to-end encrypted chat kernel.

Participants register their public keys with a KeyDirectory, derive a shared
symmetric key per pair of participants (ECDH + HKDF) and exchange only
ChaCha20-Poly1305 ciphertext over an in-process Transport.
"""

from .config import Settings
from .context import ChatContext
from .directory import KeyDirectory
from .errors import (
    AuthenticationError,
    CryptoError,
    IdentityConflictError,
    InvalidKeyMaterialError,
    UnknownIdentityError
)
from .participant import Delivery, Participant, ParticipantRegistry
from .session import ChatEntry, ChatSession, SessionStore
from .transport import Envelope, Subscription, Transport

__all__ = [
    'ChatContext',
    'Settings',
    'KeyDirectory',
    'Transport',
    'Envelope',
    'Subscription',
    'Participant',
    'ParticipantRegistry',
    'Delivery',
    'ChatSession',
    'ChatEntry',
    'SessionStore',
    'CryptoError',
    'AuthenticationError',
    'InvalidKeyMaterialError',
    'UnknownIdentityError',
    'IdentityConflictError'
]
