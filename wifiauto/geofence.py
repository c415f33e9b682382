"""
Geofence setup for wifiauto.

Turns a location fix into the single trusted region registered with the
external geofence service, and keeps its center in the settings so it
survives a restart. Containment detection is entirely up to the service.
"""

from __future__ import annotations

import asyncio
import math
from pathlib import Path
from typing import List, Optional, Union

from .constants import GEOFENCE_REQUEST_ID, LOCATION_PERMISSION
from .config import Settings
from .exceptions import GeofenceUnavailableError
from .log import LogComponent, get_logger
from .protocols import DiagnosticLog, GeofenceCallback, GeofenceService, PermissionQuery
from .types import GeofenceRegion

logger = get_logger(LogComponent.GEOFENCE)

EARTH_RADIUS_M = 6378137.0


class GeofenceSetup:
    """
    Registers, restores and cancels the trusted region.

    Registration and persistence of the center happen under one lock so that
    concurrent fixes cannot leave the service and the settings disagreeing.
    """

    def __init__(
        self,
        service: GeofenceService,
        settings: Settings,
        permissions: PermissionQuery,
        event_log: DiagnosticLog,
        callback: GeofenceCallback,
    ) -> None:
        self._service = service
        self._settings = settings
        self._permissions = permissions
        self._event_log = event_log
        self._callback = callback
        self._lock: Optional[asyncio.Lock] = None

    def _region_lock(self) -> asyncio.Lock:
        # Built on first use, inside the loop that awaits it.
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    def current_region(self) -> Optional[GeofenceRegion]:
        center = self._settings.geofence_center()
        if center is None:
            return None
        return GeofenceRegion(*center)

    async def register(
        self, latitude: float, longitude: float
    ) -> Optional[GeofenceRegion]:
        """
        Register a region centered on (latitude, longitude).

        Returns None without registering when geofencing was switched off in
        the meantime.

        Raises:
            GeofenceUnavailableError: the service rejected the registration;
                nothing is persisted.
        """
        region = GeofenceRegion(latitude, longitude)
        async with self._region_lock():
            if not self._settings.geofence_enabled:
                logger.warning("Geofencing disabled: region not registered")
                return None
            try:
                await self._service.register(region, self._callback)
            except GeofenceUnavailableError as e:
                logger.warning(f"Geofence registration rejected: {e}")
                raise
            self._settings.save_geofence_center(latitude, longitude)

        logger.info(f"Geofence set: latitude={latitude:f} longitude={longitude:f}")
        self._event_log.append("Geofence set")
        return region

    async def restore(self) -> Optional[GeofenceRegion]:
        """Re-register the persisted region, if any, without acquiring location."""
        center = self._settings.geofence_center()
        if center is None:
            logger.debug("Geofence not set")
            return None
        return await self.register(*center)

    async def cancel(self) -> None:
        """Unregister the region and forget its center. Safe to call when none exists."""
        async with self._region_lock():
            if self._permissions.is_granted(LOCATION_PERMISSION):
                try:
                    await self._service.unregister(GEOFENCE_REQUEST_ID)
                    logger.info("Geofence cleared")
                except GeofenceUnavailableError as e:
                    logger.warning(f"Unable to unregister geofence: {e}")
            self._settings.clear_geofence_center()


def circle_coordinates(region: GeofenceRegion, segments: int = 36) -> List[tuple]:
    """Approximate the region boundary as a closed ring of (lon, lat) points."""
    lat_rad = math.radians(region.latitude)
    ring = []
    for i in range(segments + 1):
        theta = 2 * math.pi * (i % segments) / segments
        north = region.radius_m * math.cos(theta)
        east = region.radius_m * math.sin(theta)
        d_lat = north / EARTH_RADIUS_M
        d_lon = east / (EARTH_RADIUS_M * math.cos(lat_rad))
        ring.append(
            (region.longitude + math.degrees(d_lon), region.latitude + math.degrees(d_lat))
        )
    return ring


def region_to_kml(region: GeofenceRegion, segments: int = 36) -> bytes:
    """Render the region as a KML document (center point and boundary polygon)."""
    from lxml import etree
    from pykml.factory import KML_ElementMaker as KML

    ring = " ".join(f"{lon:.7f},{lat:.7f},0" for lon, lat in circle_coordinates(region, segments))
    doc = KML.kml(
        KML.Document(
            KML.name("wifiauto"),
            KML.Placemark(
                KML.name(region.request_id),
                KML.description(f"Trusted area, radius {region.radius_m:.0f} m"),
                KML.MultiGeometry(
                    KML.Point(
                        KML.coordinates(f"{region.longitude:.7f},{region.latitude:.7f},0")
                    ),
                    KML.Polygon(
                        KML.outerBoundaryIs(KML.LinearRing(KML.coordinates(ring)))
                    ),
                ),
            ),
        )
    )
    return etree.tostring(doc, pretty_print=True, xml_declaration=True, encoding="UTF-8")


def write_region_kml(region: GeofenceRegion, file_path: Union[str, Path]) -> None:
    with open(file_path, "wb") as f:
        f.write(region_to_kml(region))
