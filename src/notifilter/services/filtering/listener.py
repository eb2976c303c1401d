"""
Notification Listener.

Hosts a FilterEngine against the upstream notification surface. The
surface calls on_listener_connected when it starts delivering events,
on_notification_posted for each event, and on_listener_disconnected when
delivery stops. Events received while disconnected are dropped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ...core.formatters import get_utc_now
from ...core.logging import get_logger
from .allow_list import AllowListStore
from .device import ControlSurface
from .engine import FilterEngine
from .models import FilterDecision, FilterOutcome, IncomingEvent
from .policy import AlertPolicyController

logger = get_logger(__name__)


def build_controller(
    surface: ControlSurface, restore_delay: float | None = None
) -> AlertPolicyController:
    """Controller for a surface, using the default delay unless one is given."""
    if restore_delay is None:
        return AlertPolicyController(surface=surface)
    return AlertPolicyController(surface=surface, restore_delay=restore_delay)


class ListenerState(Enum):
    """Listener connection states."""

    CREATED = "created"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    STOPPED = "stopped"


@dataclass
class NotificationListener:
    """
    Filtering listener for a single source application.

    Usage:
        listener = NotificationListener(source_app, store, surface)
        listener.on_listener_connected()
        listener.on_notification_posted(event)
        listener.stop()
    """

    source_app: str
    store: AllowListStore
    surface: ControlSurface
    restore_delay: float | None = None

    # Shared controller, kept across listener restarts; restore_delay is then unused
    controller: AlertPolicyController | None = None

    _engine: FilterEngine = field(init=False, repr=False)
    _owns_controller: bool = field(default=False, init=False, repr=False)
    _state: ListenerState = field(default=ListenerState.CREATED, repr=False)
    _connected_at: datetime | None = field(default=None, repr=False)
    _connections: int = field(default=0, repr=False)
    _dropped: int = field(default=0, repr=False)
    _allowed_count: int = field(default=0, repr=False)

    def __post_init__(self) -> None:
        if self.controller is None:
            self.controller = build_controller(self.surface, self.restore_delay)
            self._owns_controller = True
        self._engine = FilterEngine(
            source_app=self.source_app,
            store=self.store,
            controller=self.controller,
            cancel=self.surface.cancel_notification,
        )

    @property
    def state(self) -> ListenerState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == ListenerState.CONNECTED

    @property
    def engine(self) -> FilterEngine:
        return self._engine

    # =========================================================================
    # Surface Callbacks
    # =========================================================================

    def on_listener_connected(self) -> None:
        """Start receiving events and load the allow-list."""
        if self._state == ListenerState.STOPPED:
            logger.warning("Ignoring connect on stopped listener")
            return

        self._state = ListenerState.CONNECTED
        self._connected_at = get_utc_now()
        self._connections += 1
        self._allowed_count = len(self.store.load())
        logger.info(
            "Listener connected for %s (%d allowed contact(s))",
            self.source_app,
            self._allowed_count,
        )

    def on_listener_disconnected(self) -> None:
        """Stop receiving events until the next connect."""
        if self._state != ListenerState.CONNECTED:
            return

        self._state = ListenerState.DISCONNECTED
        logger.warning("Listener disconnected from notification surface")

    def reconnect(self) -> None:
        """Re-register after a disconnect, reloading the allow-list."""
        logger.info("Reconnecting listener")
        self.on_listener_connected()

    def on_notification_posted(self, event: IncomingEvent) -> FilterOutcome:
        """
        Filter one posted notification.

        Returns:
            FilterOutcome; IGNORED when the listener is not connected
        """
        if not self.is_connected:
            self._dropped += 1
            logger.debug("Dropping event %s while %s", event.event_key, self._state.value)
            return FilterOutcome(decision=FilterDecision.IGNORED, reason="listener not connected")

        return self._engine.handle(event)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def stop(self) -> None:
        """
        Stop the listener.

        A controller this listener created is closed, restoring any active
        interruption override. A shared controller is left to its owner.
        """
        if self._state == ListenerState.STOPPED:
            return

        if self._owns_controller:
            assert self.controller is not None
            self.controller.close()
        self._state = ListenerState.STOPPED
        logger.info("Listener stopped")

    def get_status(self) -> dict:
        """Get listener status."""
        engine_metrics = self._engine.metrics
        assert self.controller is not None
        policy_metrics = self.controller.metrics
        return {
            "source_app": self.source_app,
            "state": self._state.value,
            "connected_at": self._connected_at.isoformat() if self._connected_at else None,
            "connections": self._connections,
            "allowed_contacts_at_connect": self._allowed_count,
            "events": {
                "seen": engine_metrics.events_seen,
                "ignored": engine_metrics.events_ignored,
                "passed": engine_metrics.events_passed,
                "suppressed": engine_metrics.events_suppressed,
                "evaluation_errors": engine_metrics.evaluation_errors,
                "dropped_disconnected": self._dropped,
            },
            "policy": {
                "active_overrides": self.controller.active_overrides,
                "overrides_applied": policy_metrics.overrides_applied,
                "restores_applied": policy_metrics.restores_applied,
                "restore_failures": policy_metrics.restore_failures,
                "cancel_only_fallbacks": policy_metrics.cancel_only_fallbacks,
            },
        }
