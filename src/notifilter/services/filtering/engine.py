"""
Filter Engine.

Per-event state machine:

    IDLE --event from source app--> EVALUATING
    EVALUATING --allowed--> PASSTHROUGH --> IDLE
    EVALUATING --not allowed--> SUPPRESSING --> IDLE

Events from any other application are ignored without side effects. The
allow-list is re-read for every evaluated event; the engine keeps no
allow-list state between events. Any unexpected error while evaluating
suppresses the event (fail-closed) and leaves the engine ready for the next.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from ...core.logging import get_logger
from .allow_list import AllowListStore
from .identity import extract_identity
from .matcher import is_allowed
from .models import EngineState, FilterDecision, FilterOutcome, IncomingEvent
from .policy import AlertPolicyController

logger = get_logger(__name__)

# Withdraws a notification by its event key
Canceller = Callable[[str], None]


@dataclass
class EngineMetrics:
    """Counters for the filter engine."""

    events_seen: int = 0
    events_ignored: int = 0
    events_passed: int = 0
    events_suppressed: int = 0
    evaluation_errors: int = 0


@dataclass
class FilterEngine:
    """
    Decides, per notification, whether to let it alert or suppress it.

    Usage:
        engine = FilterEngine(
            source_app="com.tencent.mm",
            store=AllowListStore(),
            controller=AlertPolicyController(surface=device),
            cancel=device.cancel_notification,
        )
        outcome = engine.handle(event)
    """

    source_app: str
    store: AllowListStore
    controller: AlertPolicyController
    cancel: Canceller

    _state: EngineState = field(default=EngineState.IDLE, repr=False)
    _metrics: EngineMetrics = field(default_factory=EngineMetrics, repr=False)

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def metrics(self) -> EngineMetrics:
        return self._metrics

    def accepts(self, event: IncomingEvent) -> bool:
        """Check whether an event is in scope for filtering."""
        return event.source_app == self.source_app

    def evaluate(self, event: IncomingEvent) -> FilterOutcome:
        """
        Decide an event without side effects.

        Reloads the allow-list, extracts the sender, and matches it. Nothing
        is cancelled and the interruption filter is untouched.

        Args:
            event: Notification to evaluate

        Returns:
            FilterOutcome with the decision that handle() would take
        """
        if not self.accepts(event):
            return FilterOutcome(
                decision=FilterDecision.IGNORED,
                reason=f"source app {event.source_app!r} is not filtered",
            )

        allow_list = self.store.load()
        identity = extract_identity(event.raw_title)

        if not allow_list:
            return FilterOutcome(
                decision=FilterDecision.SUPPRESSED,
                identity=identity,
                reason="allow-list is empty",
            )

        if is_allowed(identity, allow_list):
            return FilterOutcome(
                decision=FilterDecision.PASSTHROUGH,
                identity=identity,
                reason="sender is allowed",
            )

        return FilterOutcome(
            decision=FilterDecision.SUPPRESSED,
            identity=identity,
            reason="sender is not allowed",
        )

    def handle(self, event: IncomingEvent) -> FilterOutcome:
        """
        Handle one posted notification.

        Never raises; returns to IDLE before returning.

        Args:
            event: Notification posted by the upstream surface

        Returns:
            FilterOutcome describing the path taken
        """
        self._metrics.events_seen += 1

        if not self.accepts(event):
            self._metrics.events_ignored += 1
            return FilterOutcome(decision=FilterDecision.IGNORED)

        self._state = EngineState.EVALUATING
        logger.debug("Notification received: %s - %s", event.raw_title, event.body)

        try:
            outcome = self.evaluate(event)
        except Exception as e:
            self._metrics.evaluation_errors += 1
            logger.error("Evaluation failed, suppressing: %s", e, exc_info=True)
            outcome = FilterOutcome(
                decision=FilterDecision.SUPPRESSED,
                reason=f"evaluation error: {e}",
            )

        try:
            if outcome.decision == FilterDecision.PASSTHROUGH:
                self._state = EngineState.PASSTHROUGH
                self._metrics.events_passed += 1
                logger.debug("Keeping notification: '%s' is allowed", outcome.identity)
            else:
                self._state = EngineState.SUPPRESSING
                self._metrics.events_suppressed += 1
                logger.debug(
                    "Suppressing notification: '%s' (%s)",
                    outcome.identity,
                    outcome.reason,
                )
                self._suppress(event)
        finally:
            self._state = EngineState.IDLE

        return outcome

    def _suppress(self, event: IncomingEvent) -> None:
        key = event.event_key

        def cancel_event() -> None:
            self.cancel(key)

        try:
            result = self.controller.suppress_once(cancel_event)
        except Exception as e:
            # Last resort: withdraw without touching the policy
            logger.error("Suppression failed, cancelling directly: %s", e, exc_info=True)
            try:
                cancel_event()
            except Exception as cancel_error:
                logger.error("Failed to cancel notification %s: %s", key, cancel_error)
            return

        if result.degraded:
            logger.debug("Notification %s cancelled without policy override", key)
