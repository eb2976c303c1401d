"""
Alert Policy Controller.

Cancelling a notification does not stop a sound or vibration that is already
playing. To make a suppressed notification silent, the controller briefly
switches the device-wide interruption filter to NONE around the cancellation
and restores the user's mode shortly afterwards.

Overlapping suppressions are coalesced with a reference count:

- only the 0 -> 1 transition captures the user's mode and writes NONE
- every suppression schedules its own release after RESTORE_DELAY_SECONDS
- only the 1 -> 0 transition restores the captured mode

The restored value is therefore always the mode captured before the first
override, never a value read while an override was active, and the device
leaves NONE 500ms after the latest suppression.

All methods must be called from the event loop thread.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field

from ...core.constants import RESTORE_DELAY_SECONDS
from ...core.formatters import format_duration_ms
from ...core.logging import get_logger
from .device import ControlSurface
from .models import InterruptionFilter, PolicyResult, SuppressionResult

logger = get_logger(__name__)


@dataclass
class PolicyMetrics:
    """Counters for the alert policy controller."""

    suppressions: int = 0
    overrides_applied: int = 0
    overrides_joined: int = 0
    restores_applied: int = 0
    restore_failures: int = 0
    cancel_only_fallbacks: int = 0
    cancel_failures: int = 0


@dataclass
class AlertPolicyController:
    """
    Holds and restores the device-wide interruption filter.

    Usage:
        controller = AlertPolicyController(surface=device)
        controller.suppress_once(lambda: device.cancel_notification(key))
        ...
        controller.close()  # restores immediately if an override is active
    """

    surface: ControlSurface
    restore_delay: float = RESTORE_DELAY_SECONDS

    # Runtime state
    _active: int = field(default=0, repr=False)
    _snapshot: InterruptionFilter | None = field(default=None, repr=False)
    _timers: dict[int, asyncio.TimerHandle] = field(default_factory=dict, repr=False)
    _next_token: int = field(default=0, repr=False)
    _metrics: PolicyMetrics = field(default_factory=PolicyMetrics, repr=False)

    @property
    def active_overrides(self) -> int:
        """Number of suppressions whose restore has not fired yet."""
        return self._active

    @property
    def captured_snapshot(self) -> InterruptionFilter | None:
        """Mode that will be restored, or None when no override is active."""
        return self._snapshot

    @property
    def pending_restores(self) -> int:
        return len(self._timers)

    @property
    def metrics(self) -> PolicyMetrics:
        return self._metrics

    # =========================================================================
    # Suppression
    # =========================================================================

    def suppress_once(self, cancel_fn: Callable[[], None]) -> SuppressionResult:
        """
        Withdraw one notification with no perceptible alert.

        Steps:
        1. Check policy access (failure or exception -> cancel-only)
        2. Capture the current interruption filter (first override only)
        3. Set the interruption filter to NONE (first override only)
        4. Invoke cancel_fn
        5. Schedule the release of this suppression after restore_delay

        Never raises. Returns once cancel_fn has run; the restore is a
        detached timer.

        Args:
            cancel_fn: Withdraws the notification from the delivery surface

        Returns:
            SuppressionResult describing which path was taken
        """
        self._metrics.suppressions += 1

        loop = self._running_loop()
        overridden, error = self._acquire(loop)

        if not overridden:
            self._metrics.cancel_only_fallbacks += 1
            logger.debug("Cancel-only suppression: %s", error)

        cancelled = self._invoke_cancel(cancel_fn)

        if overridden:
            assert loop is not None
            self._schedule_release(loop)

        return SuppressionResult(
            cancelled=cancelled,
            policy_overridden=overridden,
            degraded=not overridden,
            error=error,
        )

    def _acquire(self, loop: asyncio.AbstractEventLoop | None) -> tuple[bool, str | None]:
        """
        Take a reference on the override, applying it if this is the first.

        Returns:
            (overridden, reason) where reason explains a cancel-only fallback
        """
        if loop is None:
            # Without a loop the restore could never fire
            logger.warning("No running event loop, cannot schedule restore")
            return False, "no running event loop"

        if self._active > 0:
            self._active += 1
            self._metrics.overrides_joined += 1
            logger.debug("Joined active override (%d active)", self._active)
            return True, None

        if not self._has_access():
            return False, "interruption policy access denied"

        captured = self._read_filter()
        if not captured.success:
            logger.warning("Cannot read interruption filter: %s", captured.error)
            return False, captured.error

        applied = self._write_filter(InterruptionFilter.NONE)
        if not applied.success:
            logger.warning("Cannot override interruption filter: %s", applied.error)
            return False, applied.error

        self._snapshot = captured.mode
        self._active = 1
        self._metrics.overrides_applied += 1
        logger.debug(
            "Interruption filter overridden (captured %s, restoring in %s)",
            self._snapshot.value,
            format_duration_ms(self.restore_delay),
        )
        return True, None

    def _invoke_cancel(self, cancel_fn: Callable[[], None]) -> bool:
        try:
            cancel_fn()
        except Exception as e:
            self._metrics.cancel_failures += 1
            logger.error("Failed to cancel notification: %s", e, exc_info=True)
            return False
        return True

    # =========================================================================
    # Restore
    # =========================================================================

    def _schedule_release(self, loop: asyncio.AbstractEventLoop) -> None:
        self._next_token += 1
        token = self._next_token
        self._timers[token] = loop.call_later(self.restore_delay, self._release, token)

    def _release(self, token: int) -> None:
        """Drop one reference; restore the captured mode on the last one."""
        self._timers.pop(token, None)
        if self._active == 0:
            return

        self._active -= 1
        if self._active == 0:
            self._restore()

    def _restore(self) -> None:
        snapshot = self._snapshot
        self._snapshot = None
        if snapshot is None:
            return

        result = self._write_filter(snapshot)
        if result.success:
            self._metrics.restores_applied += 1
            logger.debug("Restored interruption filter to %s", snapshot.value)
        else:
            self._metrics.restore_failures += 1
            logger.error(
                "Failed to restore interruption filter to %s: %s",
                snapshot.value,
                result.error,
            )

    def close(self) -> None:
        """
        Cancel pending releases and restore the captured mode now.

        Called on listener shutdown so a restart never leaves the device
        in NONE.
        """
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()

        if self._active > 0:
            logger.info("Restoring interruption filter early (%d active)", self._active)
            self._active = 0
            self._restore()

    # =========================================================================
    # Boundary Calls
    # =========================================================================

    @staticmethod
    def _running_loop() -> asyncio.AbstractEventLoop | None:
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def _has_access(self) -> bool:
        """Policy access check; an exception counts as no access."""
        try:
            return bool(self.surface.has_policy_access())
        except Exception as e:
            logger.warning("Policy access check failed, assuming no access: %s", e)
            return False

    def _read_filter(self) -> PolicyResult:
        try:
            mode = self.surface.get_interruption_filter()
        except Exception as e:
            return PolicyResult(success=False, error=str(e))

        # A mode we could not restore must not be captured
        if not isinstance(mode, InterruptionFilter) or mode == InterruptionFilter.UNKNOWN:
            return PolicyResult(success=False, error=f"unrestorable interruption filter: {mode!r}")
        return PolicyResult(success=True, mode=mode)

    def _write_filter(self, mode: InterruptionFilter) -> PolicyResult:
        try:
            self.surface.set_interruption_filter(mode)
        except Exception as e:
            return PolicyResult(success=False, mode=mode, error=str(e))
        return PolicyResult(success=True, mode=mode)
