"""
In-process message transport.

Simulates the network link between participants: every identity has an
inbox of handlers, and publish() hands an envelope synchronously to each
handler in the recipient's inbox. Nothing is queued, retried or persisted;
an envelope for an identity nobody listens on is dropped.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class Envelope(BaseModel):
    """Ciphertext plus routing metadata, as seen on the wire"""
    model_config = ConfigDict(frozen=True)

    ciphertext: bytes
    sender: str
    recipient: str


Handler = Callable[[Envelope], Any]


@dataclass(eq=False)
class Subscription:
    """Handle returned by Transport.subscribe()"""
    identity: str
    handler: Handler
    transport: "Transport" = field(repr=False)
    active: bool = True

    def cancel(self) -> None:
        self.transport.unsubscribe(self)


class Transport:
    """
    Publish/subscribe bus keyed by identity.

    Handlers for one recipient run in subscription order, and envelopes to one
    recipient are delivered in publish order.
    """

    def __init__(self):
        self._inboxes: Dict[str, List[Subscription]] = {}
        self._taps: List[Handler] = []
        self._lock = threading.Lock()

    def subscribe(self, identity: str, handler: Handler) -> Subscription:
        """
        Listen for envelopes addressed to an identity.

        Subscribing twice adds a second listener; nothing is de-duplicated.

        Args:
            identity: Recipient identity to listen on
            handler: Called once per envelope

        Returns:
            Subscription that can be cancelled
        """
        subscription = Subscription(identity=identity, handler=handler, transport=self)
        with self._lock:
            self._inboxes.setdefault(identity, []).append(subscription)
        logger.debug("Subscribed handler to %r", identity)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a subscription; cancelling twice is a no-op"""
        with self._lock:
            inbox = self._inboxes.get(subscription.identity, [])
            if subscription in inbox:
                inbox.remove(subscription)
                if not inbox:
                    del self._inboxes[subscription.identity]
            subscription.active = False

    def tap(self, observer: Handler) -> None:
        """Observe every published envelope, whoever it is addressed to"""
        with self._lock:
            self._taps.append(observer)

    def publish(self, envelope: Envelope) -> int:
        """
        Deliver an envelope to every handler of its recipient.

        A handler that raises is logged and skipped; the others still run.

        Args:
            envelope: Envelope to deliver

        Returns:
            Number of handlers reached (0 if the envelope was dropped)
        """
        with self._lock:
            handlers = [s.handler for s in self._inboxes.get(envelope.recipient, [])]
            taps = list(self._taps)

        for observer in taps:
            try:
                observer(envelope)
            except Exception:
                logger.exception("Wire observer failed on envelope to %r", envelope.recipient)

        if not handlers:
            logger.debug("Dropped envelope from %r: nobody listens on %r",
                         envelope.sender, envelope.recipient)
            return 0

        for handler in handlers:
            try:
                handler(envelope)
            except Exception:
                logger.exception("Handler for %r failed on envelope from %r",
                                 envelope.recipient, envelope.sender)
        return len(handlers)

    def subscribers(self, identity: str) -> int:
        with self._lock:
            return len(self._inboxes.get(identity, []))
