"""
Filtering Data Models.

Events, decisions, and the result types returned at every external boundary
(storage, interruption policy) so callers map failures to safe defaults
instead of handling exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

# Canonical sender identifier derived from a notification title
SenderIdentity = str

# Immutable snapshot of the persisted allow-list
AllowedSenderSet = frozenset[str]


class InterruptionFilter(Enum):
    """
    Device-wide interruption modes.

    NONE is the "block everything" mode used during a suppression.
    """

    UNKNOWN = "unknown"
    ALL = "all"
    PRIORITY = "priority"
    NONE = "none"
    ALARMS = "alarms"


class EngineState(Enum):
    """FilterEngine states for a single event."""

    IDLE = "idle"
    EVALUATING = "evaluating"
    SUPPRESSING = "suppressing"
    PASSTHROUGH = "passthrough"


class FilterDecision(Enum):
    """Outcome of handling one event."""

    IGNORED = "ignored"  # Different source application
    PASSTHROUGH = "passthrough"  # Sender allowed, left to display
    SUPPRESSED = "suppressed"  # Cancelled, alert policy overridden


@dataclass(frozen=True)
class IncomingEvent:
    """
    One filterable notification.

    Created by the upstream event source and read-only to the engine.
    """

    source_app: str
    raw_title: Optional[str]
    body: str = ""
    event_key: str = ""


@dataclass(frozen=True)
class FilterOutcome:
    """Result of FilterEngine.handle or FilterEngine.evaluate."""

    decision: FilterDecision
    identity: SenderIdentity | None = None
    reason: str = ""

    @property
    def suppressed(self) -> bool:
        return self.decision == FilterDecision.SUPPRESSED

    def to_dict(self) -> dict:
        return {
            "decision": self.decision.value,
            "identity": self.identity,
            "reason": self.reason,
        }


# =============================================================================
# Boundary Results
# =============================================================================


@dataclass
class LoadResult:
    """Result of reading the persisted allow-list."""

    success: bool
    contacts: AllowedSenderSet = field(default_factory=frozenset)
    error: str | None = None


@dataclass
class SaveResult:
    """Result of writing the persisted allow-list."""

    success: bool
    contacts: AllowedSenderSet = field(default_factory=frozenset)
    error: str | None = None


@dataclass
class PolicyResult:
    """Result of reading or writing the interruption filter."""

    success: bool
    mode: InterruptionFilter | None = None
    error: str | None = None


@dataclass
class SuppressionResult:
    """Result of AlertPolicyController.suppress_once."""

    cancelled: bool
    policy_overridden: bool
    degraded: bool = False  # Cancel-only fallback was taken
    error: str | None = None
