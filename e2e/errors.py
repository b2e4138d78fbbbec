"""Errors raised by the chat kernel."""

from cryptolab.primitives import AuthenticationError, CryptoError, InvalidKeyMaterialError


class UnknownIdentityError(LookupError):
    """No participant or public key is registered under this identity"""

    def __init__(self, identity: str):
        super().__init__(f"Unknown identity: {identity}")
        self.identity = identity


class IdentityConflictError(ValueError):
    """The identity is already held by another participant"""

    def __init__(self, identity: str):
        super().__init__(f"Identity already taken: {identity}")
        self.identity = identity


__all__ = [
    "AuthenticationError",
    "CryptoError",
    "IdentityConflictError",
    "InvalidKeyMaterialError",
    "UnknownIdentityError",
]
