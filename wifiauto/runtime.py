"""
Runtime wiring for wifiauto.

Builds the concrete adapters (JSON settings file, on-disk event log, nmcli
radio, asyncio scheduler, ZMQ platform bridge) around an AutomationController
and drives the event loop for the command line.
"""

from __future__ import annotations

import asyncio
import signal
from typing import Iterable, Optional

from .config import AgentConfig, JsonConfigStore
from .controller import AutomationController
from .dispatch import EventDispatcher
from .event_log import EventLog
from .exceptions import GeofenceUnavailableError
from .grace import GraceActivation
from .log import LogComponent, get_logger
from .protocols import GeofenceCallback, LocationCallback
from .radio import NMCLIRadio
from .scheduler import AsyncJobScheduler
from .types import GeofenceRegion, LocationProfile
from .zmqutil import ZMQPlatformBridge

logger = get_logger(LogComponent.RUNTIME)


class StaticPermissions:
    """PermissionQuery over a fixed set of granted capabilities."""

    def __init__(self, granted: Iterable[str] = ()) -> None:
        self._granted = frozenset(granted)

    def is_granted(self, capability: str) -> bool:
        return capability in self._granted


class OfflinePlatform:
    """
    Location and geofence services used when no platform bridge is configured.

    Every request is refused, so enabling geofencing reverts cleanly.
    """

    async def settings_satisfied(self, profile: LocationProfile) -> bool:
        return False

    async def subscribe(self, profile: LocationProfile, callback: LocationCallback) -> None:
        raise GeofenceUnavailableError("No location provider configured", reason="offline")

    async def unsubscribe(self) -> None:
        pass

    async def register(self, region: GeofenceRegion, callback: GeofenceCallback) -> None:
        raise GeofenceUnavailableError("No geofence provider configured", reason="offline")

    async def unregister(self, request_id: str) -> None:
        pass


class Agent:
    """Owns the adapters and the controller for one process."""

    def __init__(self, config: AgentConfig) -> None:
        self.config = config
        self.store = JsonConfigStore(config.config_path)
        self.event_log = EventLog(config.event_log_path)
        self.radio = NMCLIRadio(config.interface)
        self.scheduler = AsyncJobScheduler(self.store)
        self.dispatcher = EventDispatcher()
        self.permissions = StaticPermissions(config.granted)

        self.bridge: Optional[ZMQPlatformBridge] = None
        if config.zmq_pub_addr and config.zmq_sub_addr:
            self.bridge = ZMQPlatformBridge(
                config.zmq_pub_addr, config.zmq_sub_addr, self.dispatcher
            )
            platform = self.bridge
        else:
            platform = OfflinePlatform()

        self.controller = AutomationController(
            self.store,
            self.radio,
            self.scheduler,
            platform,
            platform,
            self.permissions,
            self.event_log,
            keepalive=self.bridge,
            grace_policy=GraceActivation.parse(config.grace_policy),
            grace_period_s=config.grace_period_s,
            monitoring_interval_s=config.monitoring_interval_s,
        )
        self.controller.register_handlers(self.dispatcher)
        self._dispatcher_task: Optional[asyncio.Task] = None
        self._listener_task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Connect the bridge, start consuming events and replay boot."""
        loop = asyncio.get_running_loop()
        if self.bridge is not None:
            self.bridge.connect()
            self._listener_task = loop.create_task(self.bridge.listen())
        self._dispatcher_task = loop.create_task(self.dispatcher.run())
        await self.controller.on_boot_completed()

    async def apply(
        self, monitoring: Optional[bool] = None, geofencing: Optional[bool] = None
    ) -> None:
        if monitoring is not None:
            await self.controller.set_monitoring(monitoring)
        if geofencing is not None:
            effective = await self.controller.set_geofencing(geofencing)
            if geofencing and not effective:
                logger.warning("Geofencing could not be enabled")

    async def serve(self) -> None:
        """Run until SIGINT/SIGTERM."""
        loop = asyncio.get_running_loop()
        stop = asyncio.Event()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop.set)
            except NotImplementedError:
                pass
        logger.info("wifiauto agent running")
        await stop.wait()

    async def close(self) -> None:
        if self._listener_task is not None:
            self._listener_task.cancel()
            await asyncio.gather(self._listener_task, return_exceptions=True)
            self._listener_task = None
        await self.scheduler.shutdown()
        if self._dispatcher_task is not None:
            self.dispatcher.stop()
            await self._dispatcher_task
            self._dispatcher_task = None
        if self.bridge is not None:
            self.bridge.close()
        logger.info("wifiauto agent stopped")
