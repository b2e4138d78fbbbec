"""
Key directory: the trusted stand-in for a key server.

Maps participant identities to their public key-agreement keys. It is only a
lookup cache; a miss means "unknown participant" and is never papered over
with a default key.
"""

import logging
import threading
from typing import Dict, List, Optional
from cryptography.hazmat.primitives.asymmetric import ec

from .errors import UnknownIdentityError

logger = logging.getLogger(__name__)


class KeyDirectory:
    """Identity -> public key mapping"""

    def __init__(self):
        self._keys: Dict[str, ec.EllipticCurvePublicKey] = {}
        self._lock = threading.Lock()

    def register(self, identity: str, public_key: ec.EllipticCurvePublicKey) -> None:
        """Register or replace the public key for an identity"""
        with self._lock:
            replaced = identity in self._keys
            self._keys[identity] = public_key
        logger.debug("%s public key for %r", "Replaced" if replaced else "Registered", identity)

    def unregister(self, identity: str) -> None:
        """Remove an identity; unknown identities are ignored"""
        with self._lock:
            removed = self._keys.pop(identity, None)
        if removed is not None:
            logger.debug("Unregistered %r", identity)

    def lookup(self, identity: str) -> Optional[ec.EllipticCurvePublicKey]:
        """
        Get the public key for an identity.

        Args:
            identity: Identity to look up

        Returns:
            Public key, or None if the identity was never registered
        """
        with self._lock:
            return self._keys.get(identity)

    def require(self, identity: str) -> ec.EllipticCurvePublicKey:
        """Like lookup(), but raises UnknownIdentityError on a miss"""
        public_key = self.lookup(identity)
        if public_key is None:
            raise UnknownIdentityError(identity)
        return public_key

    def identities(self) -> List[str]:
        with self._lock:
            return list(self._keys)

    def __contains__(self, identity: str) -> bool:
        with self._lock:
            return identity in self._keys

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)
