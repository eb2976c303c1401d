"""
Listener Supervisor.

Owns the filtering listener's lifecycle: creates and connects it on start,
replaces it with a fresh instance whenever the allow-list changes, and stops
it on shutdown. One AlertPolicyController is shared by every listener it
creates, so an interruption override active during a restart is restored on
its normal schedule; only shutdown restores it early.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime

from ...core.config import get_settings
from ...core.constants import ACTION_ALLOW_LIST_CHANGED
from ...core.formatters import get_utc_now
from ...core.logging import get_logger
from .allow_list import AllowListStore, ChangeListener
from .device import ControlSurface
from .listener import NotificationListener, build_controller
from .models import FilterDecision, FilterOutcome, IncomingEvent
from .policy import AlertPolicyController
from .reload import ReloadReceiver, ReloadSignal, bind_store

logger = get_logger(__name__)


@dataclass
class SupervisorMetrics:
    """Metrics for the listener supervisor."""

    listeners_started: int = 0
    restarts_requested: int = 0
    restarts_completed: int = 0
    restarts_coalesced: int = 0


@dataclass
class ListenerSupervisor:
    """
    Restarts the notification listener on allow-list changes.

    Usage:
        supervisor = ListenerSupervisor(store=store, surface=device)
        await supervisor.start()
        supervisor.post(event)
        store.add("老婆")          # triggers a listener restart
        await supervisor.stop()
    """

    store: AllowListStore
    surface: ControlSurface
    source_app: str | None = None
    signal: ReloadSignal = field(default_factory=ReloadSignal)
    restore_delay: float | None = None

    # Poll the allow-list file for saves made by other processes (None = off)
    watch_interval: float | None = None

    # Runtime state
    _watch_task: asyncio.Task | None = field(default=None, repr=False)
    _last_mtime: int | None = field(default=None, repr=False)
    _listener: NotificationListener | None = field(default=None, repr=False)
    _controller: AlertPolicyController | None = field(default=None, repr=False)
    _receiver: ReloadReceiver | None = field(default=None, repr=False)
    _store_listener: ChangeListener | None = field(default=None, repr=False)
    _restart_task: asyncio.Task | None = field(default=None, repr=False)
    _running: bool = field(default=False, repr=False)
    _start_time: datetime | None = field(default=None, repr=False)
    _metrics: SupervisorMetrics = field(default_factory=SupervisorMetrics, repr=False)

    def __post_init__(self) -> None:
        if self.source_app is None:
            self.source_app = get_settings().source_app

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def listener(self) -> NotificationListener | None:
        """Currently active listener."""
        return self._listener

    @property
    def metrics(self) -> SupervisorMetrics:
        return self._metrics

    async def start(self) -> None:
        """Create and connect the listener, and subscribe to reload broadcasts."""
        if self._running:
            logger.warning("Supervisor already running")
            return

        self._running = True
        self._start_time = get_utc_now()

        self._receiver = ReloadReceiver(restart=self.request_restart)
        self.signal.register(ACTION_ALLOW_LIST_CHANGED, self._receiver.on_receive)
        self._store_listener = bind_store(self.store, self.signal)

        # Outlives every listener so pending restores survive restarts
        self._controller = build_controller(self.surface, self.restore_delay)
        self._start_listener()

        if self.watch_interval is not None:
            self._last_mtime = self._file_mtime()
            self._watch_task = asyncio.create_task(self._watch_loop())

        logger.info("Supervisor started for %s", self.source_app)

    async def stop(self) -> None:
        """Unsubscribe from reload broadcasts, stop the listener and restore any override."""
        if not self._running:
            return

        self._running = False

        for task in (self._watch_task, self._restart_task):
            if task and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._watch_task = None
        self._restart_task = None

        if self._receiver is not None:
            self.signal.unregister(ACTION_ALLOW_LIST_CHANGED, self._receiver.on_receive)
            self._receiver = None
        if self._store_listener is not None:
            self.store.unsubscribe(self._store_listener)
            self._store_listener = None

        if self._listener is not None:
            self._listener.stop()
            self._listener = None
        if self._controller is not None:
            self._controller.close()
            self._controller = None

        logger.info("Supervisor stopped")

    def post(self, event: IncomingEvent) -> FilterOutcome:
        """Route a posted notification to the active listener."""
        if self._listener is None:
            return FilterOutcome(decision=FilterDecision.IGNORED, reason="no active listener")
        return self._listener.on_notification_posted(event)

    # =========================================================================
    # Restart
    # =========================================================================

    def request_restart(self) -> None:
        """
        Schedule a listener restart.

        Requests arriving while a restart is pending are coalesced into it.
        Without a running event loop the restart happens immediately.
        """
        if not self._running:
            return

        self._metrics.restarts_requested += 1

        if self._restart_task is not None and not self._restart_task.done():
            self._metrics.restarts_coalesced += 1
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._restart_listener()
            return

        self._restart_task = loop.create_task(self._restart_async())

    async def _restart_async(self) -> None:
        # Yield so a burst of saves collapses into one restart
        await asyncio.sleep(0)
        if self._running:
            self._restart_listener()

    def _file_mtime(self) -> int | None:
        try:
            return self.store.file_path.stat().st_mtime_ns
        except OSError:
            return None

    async def _watch_loop(self) -> None:
        """Broadcast a reload when the allow-list file changes on disk."""
        assert self.watch_interval is not None
        while self._running:
            try:
                await asyncio.sleep(self.watch_interval)

                mtime = self._file_mtime()
                if mtime != self._last_mtime:
                    self._last_mtime = mtime
                    logger.debug("Allow-list file changed on disk")
                    self.signal.send(ACTION_ALLOW_LIST_CHANGED)

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Allow-list watch error: %s", e)

    def _restart_listener(self) -> None:
        old = self._listener
        if old is not None:
            old.stop()

        # The restart already covers this on-disk version
        self._last_mtime = self._file_mtime()
        self._start_listener()
        self._metrics.restarts_completed += 1
        logger.info("Listener restarted (%d total)", self._metrics.restarts_completed)

    def _start_listener(self) -> None:
        assert self.source_app is not None
        listener = NotificationListener(
            source_app=self.source_app,
            store=self.store,
            surface=self.surface,
            controller=self._controller,
        )
        listener.on_listener_connected()
        self._listener = listener
        self._metrics.listeners_started += 1

    def get_status(self) -> dict:
        """Get supervisor status."""
        return {
            "running": self._running,
            "uptime_seconds": (
                (get_utc_now() - self._start_time).total_seconds() if self._start_time else 0
            ),
            "listener": self._listener.get_status() if self._listener else None,
            "metrics": {
                "listeners_started": self._metrics.listeners_started,
                "restarts_requested": self._metrics.restarts_requested,
                "restarts_completed": self._metrics.restarts_completed,
                "restarts_coalesced": self._metrics.restarts_coalesced,
            },
        }
