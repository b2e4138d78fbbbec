"""
Chat sessions.

A ChatSession belongs to an ordered pair of participants (me, them) and keeps
the conversation as seen from "me". The symmetric key is derived on every use
from the current keys and is never stored on the session.
"""

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Tuple

from cryptolab import codec
from cryptolab.session_key import PROTOCOL_SALT
from .directory import KeyDirectory
from .transport import Envelope, Transport

if TYPE_CHECKING:
    from .participant import Participant

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatEntry:
    """
    One line of a conversation.

    Attributes:
        sender: Participant who wrote the message
        text: Plaintext, or None if the message could not be decrypted
        error: Why decryption failed, if it did
    """
    sender: "Participant"
    text: Optional[str]
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.text is None

    def display_text(self, fallback: str) -> str:
        """Text to show, substituting fallback for failed entries"""
        return fallback if self.text is None else self.text


Listener = Callable[["ChatSession", ChatEntry], None]


class ChatSession:
    """
    Conversation between "me" and "them", from me's point of view.
    """

    def __init__(self, me: "Participant", them: "Participant", directory: KeyDirectory,
                 transport: Transport, salt: bytes = PROTOCOL_SALT):
        self.me = me
        self.them = them
        self._directory = directory
        self._transport = transport
        self._salt = salt
        self._messages: List[ChatEntry] = []
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    @property
    def participants(self) -> Tuple["Participant", "Participant"]:
        return self.me, self.them

    @property
    def messages(self) -> Tuple[ChatEntry, ...]:
        """Read-only snapshot of the history, oldest first"""
        with self._lock:
            return tuple(self._messages)

    @property
    def last_message(self) -> Optional[ChatEntry]:
        with self._lock:
            return self._messages[-1] if self._messages else None

    def add_listener(self, listener: Listener) -> None:
        """Call listener(session, entry) after every appended entry"""
        with self._lock:
            self._listeners.append(listener)

    def session_key(self) -> bytes:
        """
        Derive the pair's symmetric key from the current directory entry.

        Raises:
            UnknownIdentityError: If the counterpart has no registered key
        """
        their_key = self._directory.require(self.them.identity)
        return self.me.derive_shared_key(their_key, self._salt)

    def send(self, text: str) -> Envelope:
        """
        Encrypt text, publish it to the counterpart and record it locally.

        The entry is recorded once the envelope has been handed to the
        transport, whether or not anybody received it.

        Args:
            text: Message to send

        Returns:
            The envelope that was published
        """
        ciphertext = codec.seal_text(text, self.session_key())
        envelope = Envelope(
            ciphertext=ciphertext,
            sender=self.me.identity,
            recipient=self.them.identity
        )
        try:
            delivered = self._transport.publish(envelope)
            logger.debug("%s -> %s: %d bytes, %d handler(s)",
                         envelope.sender, envelope.recipient, len(ciphertext), delivered)
        finally:
            self._append(ChatEntry(sender=self.me, text=text))
        return envelope

    def on_receive(self, text: str, sender: "Participant") -> ChatEntry:
        """Record a decrypted incoming message"""
        return self._append(ChatEntry(sender=sender, text=text))

    def record_failure(self, sender: "Participant", reason: str) -> ChatEntry:
        """Record an incoming message that could not be decrypted"""
        return self._append(ChatEntry(sender=sender, text=None, error=reason))

    def _append(self, entry: ChatEntry) -> ChatEntry:
        with self._lock:
            self._messages.append(entry)
            listeners = list(self._listeners)
        for listener in listeners:
            listener(self, entry)
        return entry

    def __repr__(self) -> str:
        return f"ChatSession({self.me.identity!r} -> {self.them.identity!r}, {len(self._messages)} messages)"


class SessionStore:
    """Exactly one ChatSession per ordered (me, them) pair"""

    def __init__(self, directory: KeyDirectory, transport: Transport, salt: bytes = PROTOCOL_SALT):
        self._directory = directory
        self._transport = transport
        self._salt = salt
        self._sessions: Dict[Tuple["Participant", "Participant"], ChatSession] = {}
        self._lock = threading.Lock()

    def get_or_create(self, me: "Participant", them: "Participant") -> ChatSession:
        """
        Get the session for (me, them), creating it on first use.

        Args:
            me: Participant whose view this is
            them: Counterpart

        Returns:
            The memoized ChatSession

        Raises:
            ValueError: If me and them are the same participant
        """
        if me is them:
            raise ValueError(f"{me.identity} cannot open a chat with themselves")
        key = (me, them)
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                session = ChatSession(me, them, self._directory, self._transport, self._salt)
                self._sessions[key] = session
                logger.debug("Opened chat %s -> %s", me.identity, them.identity)
            return session

    def sessions_for(self, me: "Participant") -> List[ChatSession]:
        """All sessions owned by a participant, in creation order"""
        with self._lock:
            return [s for (owner, _), s in self._sessions.items() if owner is me]

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
