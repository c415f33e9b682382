"""
LocationAcquirer for wifiauto.

Subscribes to location updates while geofencing is being set up; every fix
re-registers the trusted region around it (last fix wins).
"""

from __future__ import annotations

from .config import Settings
from .constants import LOCATION_PERMISSION
from .exceptions import GeofenceUnavailableError, PermissionDeniedError
from .geofence import GeofenceSetup
from .log import LogComponent, get_logger
from .protocols import DiagnosticLog, LocationService, PermissionQuery
from .types import LocationFix, LocationProfile

logger = get_logger(LogComponent.LOCATION)


class LocationAcquirer:
    """Best-effort stream of location fixes forwarded to GeofenceSetup."""

    def __init__(
        self,
        service: LocationService,
        permissions: PermissionQuery,
        settings: Settings,
        setup: GeofenceSetup,
        event_log: DiagnosticLog,
        profile: LocationProfile = LocationProfile(),
    ) -> None:
        self._service = service
        self._permissions = permissions
        self._settings = settings
        self._setup = setup
        self._event_log = event_log
        self._profile = profile
        self._active = False

    @property
    def profile(self) -> LocationProfile:
        return self._profile

    @property
    def active(self) -> bool:
        return self._active

    def _require_permission(self) -> None:
        if not self._permissions.is_granted(LOCATION_PERMISSION):
            logger.warning("User has not granted access to device location")
            raise PermissionDeniedError(
                "Location permission not granted", capability=LOCATION_PERMISSION
            )

    async def settings_satisfied(self) -> bool:
        """Whether device location settings can serve our profile."""
        self._require_permission()
        return await self._service.settings_satisfied(self._profile)

    async def start(self) -> None:
        """
        Start acquiring device location.

        Raises:
            PermissionDeniedError: location permission is missing; nothing
                was subscribed.
        """
        self._require_permission()

        logger.info("Acquiring device location")
        self._event_log.append("Acquiring device location")
        # Multiple fixes are expected for one activation.
        self._active = True
        try:
            await self._service.subscribe(self._profile, self.on_location_fix)
        except BaseException:
            self._active = False
            raise

    async def stop(self) -> None:
        """Cancel location acquisition, if it's running."""
        if not self._active:
            return
        self._active = False
        logger.info("Location acquisition cancelled")
        await self._service.unsubscribe()

    async def on_location_fix(self, fix: LocationFix) -> None:
        if not self._active or not self._settings.geofence_enabled:
            logger.debug("Ignoring location update: acquisition not active")
            return

        logger.info(f"Received location update: {fix.latitude:f},{fix.longitude:f}")
        self._event_log.append("Received location update")
        try:
            await self._setup.register(fix.latitude, fix.longitude)
        except GeofenceUnavailableError as e:
            # The next fix retries naturally.
            logger.warning(f"Geofence not registered for this fix: {e}")
