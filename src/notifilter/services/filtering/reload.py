"""
Reload Signal.

Intra-process broadcast raised when the allow-list changes. The receiver
asks the listener supervisor to restart the filtering listener so any
process-level state is discarded.

Delivery is best-effort. The engine re-reads the allow-list for every
event, so a lost signal only delays the restart, never a decision.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from ...core.constants import ACTION_ALLOW_LIST_CHANGED
from ...core.logging import get_logger
from .allow_list import AllowListStore
from .models import AllowedSenderSet

logger = get_logger(__name__)

# Receives the action identifier of a delivered broadcast
Receiver = Callable[[str], None]


@dataclass
class ReloadSignal:
    """
    Broadcast channel keyed by action identifier.

    Usage:
        signal = ReloadSignal()
        signal.register(ACTION_ALLOW_LIST_CHANGED, receiver.on_receive)
        signal.send(ACTION_ALLOW_LIST_CHANGED)
    """

    _receivers: dict[str, list[Receiver]] = field(default_factory=dict, repr=False)
    _sent: int = field(default=0, repr=False)

    @property
    def sent_count(self) -> int:
        return self._sent

    def register(self, action: str, receiver: Receiver) -> None:
        receivers = self._receivers.setdefault(action, [])
        if receiver not in receivers:
            receivers.append(receiver)

    def unregister(self, action: str, receiver: Receiver) -> None:
        receivers = self._receivers.get(action, [])
        if receiver in receivers:
            receivers.remove(receiver)

    def send(self, action: str = ACTION_ALLOW_LIST_CHANGED) -> int:
        """
        Deliver a broadcast to every receiver registered for the action.

        A failing receiver is logged and does not stop delivery.

        Returns:
            Number of receivers that handled the broadcast
        """
        self._sent += 1
        receivers = list(self._receivers.get(action, []))
        if not receivers:
            logger.debug("No receivers for action %s", action)
            return 0

        delivered = 0
        for receiver in receivers:
            try:
                receiver(action)
                delivered += 1
            except Exception as e:
                logger.error("Receiver for %s failed: %s", action, e, exc_info=True)
        return delivered


def bind_store(store: AllowListStore, signal: ReloadSignal) -> Callable[[AllowedSenderSet], None]:
    """
    Send ACTION_ALLOW_LIST_CHANGED whenever the store saves.

    Returns:
        The store listener, for unsubscribing
    """

    def on_change(contacts: AllowedSenderSet) -> None:
        logger.debug("Allow-list changed (%d entries), broadcasting reload", len(contacts))
        signal.send(ACTION_ALLOW_LIST_CHANGED)

    store.subscribe(on_change)
    return on_change


@dataclass
class ReloadReceiver:
    """Restarts the filtering listener when the allow-list changes."""

    restart: Callable[[], None]
    received: int = 0

    def on_receive(self, action: str) -> None:
        if action != ACTION_ALLOW_LIST_CHANGED:
            return

        self.received += 1
        self.restart()
        logger.info("Allow-list updated, listener restart requested")
