"""
AutomationController for wifiauto.

Composition root: builds the grace period, geofence pipeline, trigger and
monitor around the collaborators it is given, and turns configuration
toggles and boot events into schedule/cancel calls. It never decides the
radio state itself.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional, Union

from .config import Settings
from .constants import (
    GRACE_PERIOD_S,
    LOCATION_PERMISSION,
    LOCATION_TAG,
    MONITORING_INTERVAL_S,
    MONITORING_TAG,
)
from .dispatch import EventDispatcher, EventKind
from .exceptions import (
    GeofenceUnavailableError,
    PermissionDeniedError,
    StaleConfigurationError,
)
from .geofence import GeofenceSetup
from .grace import DEFAULT_GRACE_POLICY, GraceActivation, GracePeriod
from .location import LocationAcquirer
from .log import LogComponent, get_logger
from .monitor import PeriodicMonitor
from .protocols import (
    ConfigStore,
    DiagnosticLog,
    GeofenceService,
    JobScheduler,
    KeepaliveIndicator,
    LocationService,
    PermissionQuery,
    RadioControl,
)
from .trigger import GeofenceTrigger
from .types import (
    GeofenceEvent,
    GeofenceRegion,
    JobResult,
    LocationFix,
    LocationProfile,
    TriggerOutcome,
)

logger = get_logger(LogComponent.CONTROLLER)


def _enabled_label(enabled: bool) -> str:
    return "enabled" if enabled else "disabled"


def _as_bool(payload: Any) -> bool:
    if isinstance(payload, dict):
        payload = payload.get("enabled")
    if isinstance(payload, str):
        return payload.strip().lower() in ("1", "true", "on", "yes")
    return bool(payload)


class AutomationController:
    """
    Orchestrates the automation components.

    Exposed surface: ``set_monitoring``, ``set_geofencing``, ``on_boot``,
    ``on_geofence_event``, ``on_location_fix``, ``on_periodic_tick``.
    """

    def __init__(
        self,
        store: ConfigStore,
        radio: RadioControl,
        scheduler: JobScheduler,
        location_service: LocationService,
        geofence_service: GeofenceService,
        permissions: PermissionQuery,
        event_log: DiagnosticLog,
        keepalive: Optional[KeepaliveIndicator] = None,
        grace_policy: GraceActivation = DEFAULT_GRACE_POLICY,
        grace_period_s: float = GRACE_PERIOD_S,
        monitoring_interval_s: float = MONITORING_INTERVAL_S,
        location_profile: LocationProfile = LocationProfile(),
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._scheduler = scheduler
        self._permissions = permissions
        self._event_log = event_log
        self._keepalive = keepalive
        self._monitoring_interval_s = monitoring_interval_s

        self.settings = Settings(store)
        self.grace = GracePeriod(store, grace_period_s, grace_policy, clock)
        self.trigger = GeofenceTrigger(self.settings, radio, event_log, self.grace)
        self.geofence = GeofenceSetup(
            geofence_service, self.settings, permissions, event_log, self.trigger.handle
        )
        self.location = LocationAcquirer(
            location_service,
            permissions,
            self.settings,
            self.geofence,
            event_log,
            location_profile,
        )
        self.monitor = PeriodicMonitor(radio, self.grace, event_log, keepalive)

        scheduler.register(MONITORING_TAG, self.monitor.run)
        scheduler.register(LOCATION_TAG, self._acquire_location)

    # --- Toggles ---

    async def on_monitoring_toggled(self, enabled: bool) -> None:
        self._event_log.append(f"Setup Wi-Fi monitoring: {_enabled_label(enabled)}")
        if enabled:
            self.grace.activate_for(GraceActivation.MONITORING_START)
            self._scheduler.schedule_recurring(MONITORING_TAG, self._monitoring_interval_s)
        else:
            logger.info("Canceling Wi-Fi monitoring")
            self._scheduler.cancel(MONITORING_TAG)
            if self._keepalive is not None:
                self._keepalive.hide()

    async def on_geofence_toggled(self, enabled: bool) -> None:
        """
        Start or stop geofencing.

        Raises:
            PermissionDeniedError: location permission is not granted.
            GeofenceUnavailableError: location settings cannot serve the
                location profile.
        """
        self._event_log.append(f"Geofence: {_enabled_label(enabled)}")
        if enabled:
            logger.info("Checking device configuration before acquiring location")
            if not await self.location.settings_satisfied():
                logger.warning(
                    "Cannot start location process: this device cannot meet our location needs"
                )
                raise GeofenceUnavailableError(
                    "Location settings cannot be satisfied", reason="settings_unavailable"
                )
            logger.info("Device configuration is OK: starting location process")
            self._scheduler.schedule_once(LOCATION_TAG)
        else:
            self._scheduler.cancel(LOCATION_TAG)
            await self.location.stop()
            await self.geofence.cancel()

    async def set_monitoring(self, enabled: bool) -> bool:
        enabled = bool(enabled)
        self.settings.monitoring_enabled = enabled
        await self.on_monitoring_toggled(enabled)
        return enabled

    async def set_geofencing(self, enabled: bool) -> bool:
        """
        Persist and apply the geofencing switch.

        Returns the effective state: False when enabling failed, in which case
        the persisted flag has been reverted to off.
        """
        enabled = bool(enabled)
        self.settings.geofence_enabled = enabled
        try:
            await self.on_geofence_toggled(enabled)
        except (PermissionDeniedError, GeofenceUnavailableError) as e:
            await self._revert_geofencing(e)
            return False
        return enabled

    async def _revert_geofencing(self, reason: Exception) -> None:
        logger.warning(f"Geofencing turned off: {reason}")
        self.settings.geofence_enabled = False
        self._scheduler.cancel(LOCATION_TAG)
        await self.location.stop()
        await self.geofence.cancel()

    async def _acquire_location(self) -> JobResult:
        try:
            await self.location.start()
        except (PermissionDeniedError, GeofenceUnavailableError) as e:
            await self._revert_geofencing(e)
            return JobResult.FAILURE
        return JobResult.SUCCESS

    # --- Process lifecycle ---

    async def on_boot_completed(self) -> None:
        """Re-arm persisted schedules and the persisted region after a restart."""
        logger.debug("Received event: boot completed")
        self._scheduler.restore()
        if self.settings.geofence_enabled:
            await self.on_restore_geofence()

    on_boot = on_boot_completed

    async def on_restore_geofence(self) -> Optional[GeofenceRegion]:
        if not self.settings.geofence_enabled:
            return None
        if not self._permissions.is_granted(LOCATION_PERMISSION):
            logger.warning("Cannot restore geofence: location permission not granted")
            return None
        try:
            center = self.settings.require_geofence_center()
        except StaleConfigurationError as e:
            logger.info(f"Clearing stale geofence flag: {e}")
            self.settings.clear_stale_geofence()
            return None
        try:
            return await self.geofence.register(*center)
        except GeofenceUnavailableError as e:
            logger.warning(f"Unable to restore geofence: {e}")
            return None

    # --- Inbound events ---

    async def on_geofence_event(
        self, payload: Union[GeofenceEvent, Dict[str, Any]]
    ) -> TriggerOutcome:
        event = payload if isinstance(payload, GeofenceEvent) else GeofenceEvent.from_dict(payload)
        return await self.trigger.handle(event)

    async def on_location_fix(self, latitude: float, longitude: float) -> None:
        await self.location.on_location_fix(LocationFix(latitude, longitude))

    async def on_periodic_tick(self) -> JobResult:
        return await self.monitor.run()

    async def on_radio_changed_by_user(self, enabled: bool) -> bool:
        """Give an explicit manual enable a grace window. Returns whether one opened."""
        if not enabled:
            return False
        self._event_log.append("Wi-Fi enabled by user")
        return self.grace.activate_for(GraceActivation.USER_ENABLE)

    def register_handlers(self, dispatcher: EventDispatcher) -> None:
        """Route dispatcher messages to this controller."""

        async def _location_fix(payload: Any) -> None:
            fix = payload if isinstance(payload, LocationFix) else LocationFix.from_dict(payload)
            await self.location.on_location_fix(fix)

        async def _boot(_payload: Any) -> None:
            await self.on_boot_completed()

        async def _tick(_payload: Any) -> JobResult:
            return await self.on_periodic_tick()

        dispatcher.register(EventKind.SET_MONITORING, lambda p: self.set_monitoring(_as_bool(p)))
        dispatcher.register(EventKind.SET_GEOFENCING, lambda p: self.set_geofencing(_as_bool(p)))
        dispatcher.register(EventKind.BOOT, _boot)
        dispatcher.register(EventKind.GEOFENCE_EVENT, self.on_geofence_event)
        dispatcher.register(EventKind.LOCATION_FIX, _location_fix)
        dispatcher.register(EventKind.PERIODIC_TICK, _tick)
        dispatcher.register(
            EventKind.RADIO_CHANGED, lambda p: self.on_radio_changed_by_user(_as_bool(p))
        )

    def status(self) -> Dict[str, Any]:
        region = self.geofence.current_region()
        return {
            "monitoring_enabled": self.settings.monitoring_enabled,
            "geofence_enabled": self.settings.geofence_enabled,
            "region": region.to_dict() if region else None,
            "grace_period_expires_at": self.grace.expires_at,
            "grace_period_active": self.grace.is_active(),
            "location_active": self.location.active,
        }
