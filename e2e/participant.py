"""
Participants of the end-to-end encrypted chat.

A participant owns a key-agreement keypair for its whole lifetime, publishes
its public key in the KeyDirectory under its identity, and listens on the
Transport for envelopes addressed to it. Participants are only created through
ParticipantRegistry, which keeps at most one participant per identity.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional
from cryptography.hazmat.primitives.asymmetric import ec

from cryptolab import codec
from cryptolab.primitives import CryptoError, generate_keypair, serialize_public_key
from cryptolab.session_key import derive_session_key
from .directory import KeyDirectory
from .errors import IdentityConflictError, UnknownIdentityError
from .session import ChatEntry, ChatSession, SessionStore
from .transport import Envelope, Subscription, Transport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Delivery:
    """
    Outcome of handling one incoming envelope.

    Attributes:
        envelope: The envelope that arrived
        entry: Entry recorded in the receiving session, if any
        error: Why the message could not be decrypted, if it could not
    """
    envelope: Envelope
    entry: Optional[ChatEntry]
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Participant:
    """
    A chat participant.

    Equality is object identity; the registry guarantees one object per
    identity string.
    """

    def __init__(self, identity: str, registry: "ParticipantRegistry",
                 private_key: ec.EllipticCurvePrivateKey):
        self._identity = identity
        self._registry = registry
        self._private_key = private_key
        self.public_key = private_key.public_key()
        self.subscription: Optional[Subscription] = None
        self._ready = threading.Event()

    @property
    def identity(self) -> str:
        return self._identity

    def _attach(self) -> None:
        """Publish our key and start listening under our identity"""
        self._registry.directory.register(self._identity, self.public_key)
        self.subscription = self._registry.transport.subscribe(self._identity, self.receive)

    def _wait_ready(self) -> bool:
        """Block until the creating thread has attached us; False if attaching failed"""
        self._ready.wait()
        return self.subscription is not None

    def public_key_bytes(self) -> bytes:
        return serialize_public_key(self.public_key)

    def derive_shared_key(self, public_key: ec.EllipticCurvePublicKey, salt: bytes) -> bytes:
        """Derive the symmetric key shared with the holder of public_key"""
        return derive_session_key(self._private_key, public_key, salt)

    def get_chat(self, other: "Participant") -> ChatSession:
        """Get (or open) our chat with another participant"""
        return self._registry.sessions.get_or_create(self, other)

    def chats(self) -> List[ChatSession]:
        return self._registry.sessions.sessions_for(self)

    def receive(self, envelope: Envelope) -> Delivery:
        """
        Decrypt an incoming envelope and record it in the matching session.

        Decryption failures are recorded as failed entries and reported in
        the returned Delivery instead of being raised.

        Args:
            envelope: Envelope addressed to us

        Returns:
            Delivery describing what happened
        """
        sender = self._registry.get(envelope.sender)
        if sender is None:
            logger.warning("%s: dropped envelope from unknown identity %r",
                           self._identity, envelope.sender)
            return Delivery(envelope=envelope, entry=None, error=UnknownIdentityError(envelope.sender))

        session = self.get_chat(sender)
        try:
            text = codec.open_text(envelope.ciphertext, session.session_key())
        except (CryptoError, UnknownIdentityError) as e:
            logger.warning("%s: could not decrypt message from %s: %s",
                           self._identity, sender.identity, e)
            entry = session.record_failure(sender, str(e))
            return Delivery(envelope=envelope, entry=entry, error=e)

        entry = session.on_receive(text, sender)
        return Delivery(envelope=envelope, entry=entry)

    def rename(self, new_identity: str) -> None:
        """
        Move this participant (and its unchanged keypair) to a new identity.

        The directory entry and the transport subscription follow the new
        name; the old identity is released.

        Raises:
            IdentityConflictError: If another participant holds new_identity
        """
        old_identity = self._identity
        if new_identity == old_identity:
            return

        self._registry._rekey(self, old_identity, new_identity)
        self._identity = new_identity

        directory = self._registry.directory
        directory.unregister(old_identity)
        directory.register(new_identity, self.public_key)

        if self.subscription is not None:
            self.subscription.cancel()
        self.subscription = self._registry.transport.subscribe(new_identity, self.receive)
        logger.info("Renamed participant %r to %r", old_identity, new_identity)

    def __repr__(self) -> str:
        return f"Participant({self._identity!r})"


class ParticipantRegistry:
    """
    Identity -> Participant, creating participants lazily on first reference.
    """

    def __init__(self, directory: KeyDirectory, transport: Transport, sessions: SessionStore,
                 curve: Optional[ec.EllipticCurve] = None):
        self.directory = directory
        self.transport = transport
        self.sessions = sessions
        self._curve = curve
        self._participants: Dict[str, Participant] = {}
        self._lock = threading.Lock()

    def get_or_create(self, identity: str) -> Participant:
        """
        Get the participant for an identity, creating it if necessary.

        Args:
            identity: Participant name

        Returns:
            The one Participant for this identity, already registered in the
            directory and subscribed on the transport
        """
        while True:
            with self._lock:
                existing = self._participants.get(identity)
            if existing is not None:
                if existing._wait_ready():
                    return existing
                continue

            private_key, _ = generate_keypair(self._curve)
            candidate = Participant(identity, self, private_key)
            with self._lock:
                participant = self._participants.setdefault(identity, candidate)
            if participant is not candidate:
                continue

            try:
                candidate._attach()
            except Exception:
                with self._lock:
                    if self._participants.get(identity) is candidate:
                        del self._participants[identity]
                raise
            finally:
                candidate._ready.set()
            logger.info("Created participant %r", identity)
            return candidate

    def get(self, identity: str) -> Optional[Participant]:
        """The participant for an identity, or None; never one that is still being attached"""
        with self._lock:
            participant = self._participants.get(identity)
        if participant is None or not participant._wait_ready():
            return None
        return participant

    def require(self, identity: str) -> Participant:
        participant = self.get(identity)
        if participant is None:
            raise UnknownIdentityError(identity)
        return participant

    def identities(self) -> List[str]:
        with self._lock:
            return list(self._participants)

    def _rekey(self, participant: Participant, old_identity: str, new_identity: str) -> None:
        with self._lock:
            holder = self._participants.get(new_identity)
            if holder is not None and holder is not participant:
                raise IdentityConflictError(new_identity)
            if self._participants.get(old_identity) is participant:
                del self._participants[old_identity]
            self._participants[new_identity] = participant

    def __contains__(self, identity: str) -> bool:
        with self._lock:
            return identity in self._participants

    def __len__(self) -> int:
        with self._lock:
            return len(self._participants)
