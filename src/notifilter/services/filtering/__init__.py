"""
Notification Filtering Module.

Suppresses notifications from one source application unless the sender is
on the user's allow-list, silencing suppressed notifications by briefly
overriding the device-wide interruption filter.

Components:
- AllowListStore: JSON-backed allow-list with atomic saves
- extract_identity: Title -> sender identity
- is_allowed: Fail-closed allow-list matching
- AlertPolicyController: Override/restore of the interruption filter
- FilterEngine: Per-event state machine
- ReloadSignal / ReloadReceiver: Allow-list change broadcast
- NotificationListener: Engine host bound to the notification surface
- ListenerSupervisor: Restarts the listener on allow-list changes
- SimulatedDevice: In-memory control surface

Usage:
    from notifilter.services.filtering import ListenerSupervisor, AllowListStore

    supervisor = ListenerSupervisor(store=AllowListStore(), surface=device)
    await supervisor.start()
    supervisor.post(event)
"""

from .allow_list import AllowListStore
from .device import ControlSurface, SimulatedDevice
from .engine import EngineMetrics, FilterEngine
from .identity import extract_identity
from .listener import ListenerState, NotificationListener
from .matcher import is_allowed
from .models import (
    AllowedSenderSet,
    EngineState,
    FilterDecision,
    FilterOutcome,
    IncomingEvent,
    InterruptionFilter,
    LoadResult,
    PolicyResult,
    SaveResult,
    SenderIdentity,
    SuppressionResult,
)
from .policy import AlertPolicyController, PolicyMetrics
from .reload import ReloadReceiver, ReloadSignal, bind_store
from .supervisor import ListenerSupervisor, SupervisorMetrics

__all__ = [
    # Models
    "AllowedSenderSet",
    "EngineState",
    "FilterDecision",
    "FilterOutcome",
    "IncomingEvent",
    "InterruptionFilter",
    "LoadResult",
    "PolicyResult",
    "SaveResult",
    "SenderIdentity",
    "SuppressionResult",
    # Store
    "AllowListStore",
    # Matching
    "extract_identity",
    "is_allowed",
    # Policy
    "AlertPolicyController",
    "PolicyMetrics",
    # Engine
    "FilterEngine",
    "EngineMetrics",
    # Reload
    "ReloadSignal",
    "ReloadReceiver",
    "bind_store",
    # Hosting
    "NotificationListener",
    "ListenerState",
    "ListenerSupervisor",
    "SupervisorMetrics",
    # Device
    "ControlSurface",
    "SimulatedDevice",
]
