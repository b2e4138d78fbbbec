"""
ChatContext: the object that owns all shared state of one chat world.

Each context has its own key directory, transport, participant registry and
session store, so independent demos (and tests) never see each other's
participants.
"""

import logging
from collections import deque
from typing import Deque, List, Optional
from cryptography.hazmat.primitives.asymmetric import ec

from cryptolab.primitives import curve_by_name
from .config import Settings
from .directory import KeyDirectory
from .participant import Participant, ParticipantRegistry
from .session import ChatSession, SessionStore
from .transport import Envelope, Transport

logger = logging.getLogger(__name__)


class ChatContext:
    """
    Entry point for building a chat demo.

    Usage:
        >>> ctx = ChatContext()
        >>> alice, bob = ctx.participant("Alice"), ctx.participant("Bob")
        >>> envelope = alice.get_chat(bob).send("hello")
        >>> bob.get_chat(alice).messages[-1].text
        'hello'
    """

    def __init__(self, settings: Optional[Settings] = None, curve: Optional[ec.EllipticCurve] = None):
        """
        Initialize an empty chat world.

        Args:
            settings: Settings to use (defaults to Settings())
            curve: Key-agreement curve for new participants (defaults to settings.curve)
        """
        self.settings = settings or Settings()
        if curve is None:
            curve = curve_by_name(self.settings.curve)
        self.directory = KeyDirectory()
        self.transport = Transport()
        self.sessions = SessionStore(self.directory, self.transport, self.settings.protocol_salt)
        self.registry = ParticipantRegistry(self.directory, self.transport, self.sessions, curve)
        self.wire_log: Deque[Envelope] = deque(maxlen=self.settings.wire_log_size)
        self.transport.tap(self.wire_log.append)

    def participant(self, identity: str) -> Participant:
        """Get or create the participant for an identity"""
        return self.registry.get_or_create(identity)

    def chat(self, me: str, them: str) -> ChatSession:
        """Get or create the chat between two identities, from me's side"""
        return self.participant(me).get_chat(self.participant(them))

    def demo_participants(self) -> List[Participant]:
        """The configured demo roster, created on first call"""
        return [self.participant(name) for name in self.settings.demo_roster]

    def others(self, *without: Participant) -> List[Participant]:
        """The demo roster minus the given participants"""
        return [p for p in self.demo_participants() if p not in without]
