"""
Tests for ReloadSignal, ReloadReceiver, and bind_store.
"""

from __future__ import annotations

from notifilter.core.constants import ACTION_ALLOW_LIST_CHANGED
from notifilter.services.filtering import (
    AllowListStore,
    ReloadReceiver,
    ReloadSignal,
    bind_store,
)


class TestReloadSignal:
    """Tests for broadcast delivery."""

    def test_delivers_to_registered_receivers(self):
        signal = ReloadSignal()
        received = []
        signal.register(ACTION_ALLOW_LIST_CHANGED, received.append)

        delivered = signal.send()

        assert delivered == 1
        assert received == [ACTION_ALLOW_LIST_CHANGED]
        assert signal.sent_count == 1

    def test_send_without_receivers(self):
        signal = ReloadSignal()
        assert signal.send() == 0
        assert signal.sent_count == 1

    def test_only_matching_action(self):
        signal = ReloadSignal()
        received = []
        signal.register("other.action", received.append)

        signal.send(ACTION_ALLOW_LIST_CHANGED)

        assert received == []

    def test_register_twice_delivers_once(self):
        signal = ReloadSignal()
        received = []
        signal.register(ACTION_ALLOW_LIST_CHANGED, received.append)
        signal.register(ACTION_ALLOW_LIST_CHANGED, received.append)

        assert signal.send() == 1
        assert len(received) == 1

    def test_unregister(self):
        signal = ReloadSignal()
        received = []
        signal.register(ACTION_ALLOW_LIST_CHANGED, received.append)
        signal.unregister(ACTION_ALLOW_LIST_CHANGED, received.append)
        signal.unregister("never.registered", received.append)

        signal.send()

        assert received == []

    def test_failing_receiver_does_not_stop_delivery(self, caplog):
        signal = ReloadSignal()
        received = []

        def broken(_action):
            raise RuntimeError("receiver bug")

        signal.register(ACTION_ALLOW_LIST_CHANGED, broken)
        signal.register(ACTION_ALLOW_LIST_CHANGED, received.append)

        with caplog.at_level("ERROR"):
            delivered = signal.send()

        assert delivered == 1
        assert received == [ACTION_ALLOW_LIST_CHANGED]
        assert "receiver bug" in caplog.text


class TestReloadReceiver:
    """Tests for the restart-requesting receiver."""

    def test_restarts_on_allow_list_action(self):
        restarts = []
        receiver = ReloadReceiver(restart=lambda: restarts.append(1))

        receiver.on_receive(ACTION_ALLOW_LIST_CHANGED)

        assert restarts == [1]
        assert receiver.received == 1

    def test_ignores_other_actions(self):
        restarts = []
        receiver = ReloadReceiver(restart=lambda: restarts.append(1))

        receiver.on_receive("android.intent.action.BOOT_COMPLETED")

        assert restarts == []
        assert receiver.received == 0


class TestBindStore:
    """Tests for broadcasting on store saves."""

    def test_save_broadcasts(self, store: AllowListStore):
        signal = ReloadSignal()
        received = []
        signal.register(ACTION_ALLOW_LIST_CHANGED, received.append)
        bind_store(store, signal)

        store.add("老婆")
        store.remove("老婆")

        assert received == [ACTION_ALLOW_LIST_CHANGED, ACTION_ALLOW_LIST_CHANGED]

    def test_failed_save_does_not_broadcast(self, store: AllowListStore):
        signal = ReloadSignal()
        bind_store(store, signal)

        store.add("   ")

        assert signal.sent_count == 0

    def test_unbind(self, store: AllowListStore):
        signal = ReloadSignal()
        listener = bind_store(store, signal)
        store.unsubscribe(listener)

        store.add("老婆")

        assert signal.sent_count == 0
