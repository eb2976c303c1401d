"""
Device Control Surface.

The outbound capabilities the filtering service needs from the host platform:
withdraw a posted notification, and read or set the device-wide interruption
filter. SimulatedDevice is an in-memory implementation used by the CLI
simulator and by tests.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from .models import InterruptionFilter


@runtime_checkable
class ControlSurface(Protocol):
    """
    Host platform capabilities used by the filtering service.

    Implementations may raise from any method; callers treat an exception
    as a failed operation and degrade.
    """

    @abstractmethod
    def cancel_notification(self, event_key: str) -> None:
        """Withdraw a posted notification by its key."""
        ...

    @abstractmethod
    def has_policy_access(self) -> bool:
        """Check whether the interruption filter may be read and modified."""
        ...

    @abstractmethod
    def get_interruption_filter(self) -> InterruptionFilter:
        """Read the current device-wide interruption filter."""
        ...

    @abstractmethod
    def set_interruption_filter(self, mode: InterruptionFilter) -> None:
        """Set the device-wide interruption filter."""
        ...


@dataclass
class SimulatedDevice:
    """
    In-memory control surface.

    Records every cancellation and interruption filter write so callers can
    inspect what a suppression did.
    """

    interruption_filter: InterruptionFilter = InterruptionFilter.ALL
    policy_access: bool = True

    cancelled: list[str] = field(default_factory=list)
    filter_history: list[InterruptionFilter] = field(default_factory=list)

    def cancel_notification(self, event_key: str) -> None:
        self.cancelled.append(event_key)

    def has_policy_access(self) -> bool:
        return self.policy_access

    def get_interruption_filter(self) -> InterruptionFilter:
        if not self.policy_access:
            raise PermissionError("Interruption policy access not granted")
        return self.interruption_filter

    def set_interruption_filter(self, mode: InterruptionFilter) -> None:
        if not self.policy_access:
            raise PermissionError("Interruption policy access not granted")
        self.interruption_filter = mode
        self.filter_history.append(mode)
