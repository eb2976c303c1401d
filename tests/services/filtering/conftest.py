"""
Shared fixtures for filtering tests.

Provides factory functions and fixtures for events, stores, and
control surfaces used across the filtering test suite.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import pytest

from notifilter.services.filtering import (
    AllowListStore,
    IncomingEvent,
    InterruptionFilter,
    SimulatedDevice,
)

TARGET_APP = "com.tencent.mm"


def make_event(
    raw_title: str | None = "老婆 - [语音] 2",
    source_app: str = TARGET_APP,
    body: str = "[语音]",
    event_key: str = "0|com.tencent.mm|1|null|10086",
) -> IncomingEvent:
    """
    Create an IncomingEvent for testing.

    Args:
        raw_title: Notification title
        source_app: Originating application
        body: Notification text
        event_key: Cancellation handle

    Returns:
        IncomingEvent
    """
    return IncomingEvent(
        source_app=source_app,
        raw_title=raw_title,
        body=body,
        event_key=event_key,
    )


@dataclass
class FaultyDevice(SimulatedDevice):
    """SimulatedDevice whose operations can be made to fail."""

    access_error: Exception | None = None
    read_error: Exception | None = None
    write_error: Exception | None = None
    restore_error: Exception | None = None
    cancel_error: Exception | None = None
    read_value: object = None
    writes: int = field(default=0)

    def has_policy_access(self) -> bool:
        if self.access_error is not None:
            raise self.access_error
        return super().has_policy_access()

    def get_interruption_filter(self) -> InterruptionFilter:
        if self.read_error is not None:
            raise self.read_error
        if self.read_value is not None:
            return self.read_value  # type: ignore[return-value]
        return super().get_interruption_filter()

    def set_interruption_filter(self, mode: InterruptionFilter) -> None:
        self.writes += 1
        if self.write_error is not None:
            raise self.write_error
        if self.restore_error is not None and mode != InterruptionFilter.NONE:
            raise self.restore_error
        super().set_interruption_filter(mode)

    def cancel_notification(self, event_key: str) -> None:
        if self.cancel_error is not None:
            raise self.cancel_error
        super().cancel_notification(event_key)


@pytest.fixture
def store(allow_list_path: Path) -> AllowListStore:
    """Empty allow-list store backed by a temp file."""
    return AllowListStore(path=allow_list_path)


@pytest.fixture
def wife_store(store: AllowListStore) -> AllowListStore:
    """Store whose allow-list is {"老婆"}."""
    assert store.save({"老婆"}).success
    return store


@pytest.fixture
def device() -> SimulatedDevice:
    """Device with policy access, interruption filter ALL."""
    return SimulatedDevice()


@pytest.fixture
def faulty_device() -> FaultyDevice:
    return FaultyDevice()


@pytest.fixture
def event_factory():
    """
    Factory fixture for IncomingEvent.

    Usage:
        def test_something(event_factory):
            event = event_factory("同事 说了什么", event_key="k1")
    """
    return make_event
