"""
GeofenceTrigger for wifiauto.

Reacts to region entry/dwell notifications by enabling the radio. Repeated
notifications are normal (every dwell re-trigger), so the handler is
idempotent.
"""

from __future__ import annotations

from typing import Optional

from .config import Settings
from .exceptions import RadioControlError
from .grace import GraceActivation, GracePeriod
from .log import LogComponent, get_logger
from .protocols import DiagnosticLog, RadioControl
from .types import GeofenceErrorCode, GeofenceEvent, Transition, TriggerOutcome

logger = get_logger(LogComponent.TRIGGER)

_ENABLING_TRANSITIONS = frozenset({Transition.ENTER, Transition.DWELL})


class GeofenceTrigger:
    """When the device is known to be within the region, the radio is enabled."""

    def __init__(
        self,
        settings: Settings,
        radio: RadioControl,
        event_log: DiagnosticLog,
        grace: Optional[GracePeriod] = None,
    ) -> None:
        self._settings = settings
        self._radio = radio
        self._event_log = event_log
        self._grace = grace

    async def handle(self, event: GeofenceEvent) -> TriggerOutcome:
        if not self._settings.geofence_enabled:
            logger.warning("Geofence triggered while user disabled this feature")
            return TriggerOutcome.FEATURE_DISABLED

        if event.has_error:
            # Most probable error: location services disabled by user.
            logger.warning(
                f"Geofence not available: code={event.error_code} "
                f"reason={GeofenceErrorCode.describe(event.error_code)}"
            )
            self._event_log.append("Geofence not available")
            return TriggerOutcome.SERVICE_ERROR

        if not event.transitions & _ENABLING_TRANSITIONS:
            logger.debug(
                f"Ignoring geofence transitions: {sorted(t.value for t in event.transitions)}"
            )
            return TriggerOutcome.IGNORED

        try:
            if await self._radio.is_enabled():
                logger.info("Wi-Fi already enabled within geofence")
                return TriggerOutcome.ALREADY_ENABLED

            logger.info("Enabling Wi-Fi inside geofence")
            # Opened first: the radio is on but unassociated while set_enabled runs.
            if self._grace is not None:
                self._grace.activate_for(GraceActivation.GEOFENCE_ENABLE)
            await self._radio.set_enabled(True)
        except RadioControlError as e:
            logger.error(f"Unable to enable Wi-Fi within geofence: {e}")
            return TriggerOutcome.FAILED

        self._event_log.append("Wi-Fi enabled within geofence")
        return TriggerOutcome.ENABLED_RADIO
