"""
Key-exchange exercise.

Learners subclass KeyExchangeExercise and fill in keypair generation,
encryption and decryption. check_implementation() runs a full exchange
between two fresh keypairs and fails loudly if the message does not survive.
"""

from abc import ABC, abstractmethod
from typing import Tuple
from cryptography.hazmat.primitives.asymmetric import ec

from . import codec
from .primitives import CryptoError, generate_keypair
from .session_key import derive_session_key


EXERCISE_CURVE = ec.SECP384R1
EXERCISE_SALT = b""
EXERCISE_MESSAGE = "Swift Student Challenge 2021"

Keypair = Tuple[ec.EllipticCurvePublicKey, ec.EllipticCurvePrivateKey]


class ExerciseFailed(Exception):
    """Raised when an exercise implementation does not round-trip"""
    pass


class KeyExchangeExercise(ABC):
    """The three operations a learner has to provide."""

    @abstractmethod
    def generate_keypair(self) -> Keypair:
        """Return (public_key, private_key) on P-384"""

    @abstractmethod
    def encrypt(self, text: str, symmetric_key: bytes) -> bytes:
        """Encrypt text under the given key"""

    @abstractmethod
    def decrypt(self, data: bytes, symmetric_key: bytes) -> str:
        """Decrypt data produced by encrypt()"""

    def symmetric_key(self, public_key: ec.EllipticCurvePublicKey,
                      private_key: ec.EllipticCurvePrivateKey) -> bytes:
        return derive_session_key(private_key, public_key, salt=EXERCISE_SALT)


class Solution(KeyExchangeExercise):
    """Reference solution."""

    def generate_keypair(self) -> Keypair:
        private_key, public_key = generate_keypair(EXERCISE_CURVE())
        return public_key, private_key

    def encrypt(self, text: str, symmetric_key: bytes) -> bytes:
        return codec.seal_text(text, symmetric_key)

    def decrypt(self, data: bytes, symmetric_key: bytes) -> str:
        return codec.open_text(data, symmetric_key)


def check_implementation(impl: KeyExchangeExercise, message: str = EXERCISE_MESSAGE) -> None:
    """
    Exchange a message between two keypairs produced by impl.

    Args:
        impl: Implementation under test
        message: Text to send

    Raises:
        ExerciseFailed: If the decrypted text differs or decryption errors
    """
    public_a, private_a = impl.generate_keypair()
    public_b, private_b = impl.generate_keypair()

    encrypted = impl.encrypt(message, impl.symmetric_key(public_b, private_a))
    try:
        decrypted = impl.decrypt(encrypted, impl.symmetric_key(public_a, private_b))
    except CryptoError as e:
        raise ExerciseFailed(f"Decryption failed: {e}")

    if decrypted != message:
        raise ExerciseFailed("Decryption failed.")
