"""
Test helpers for wifiauto.

In-memory fakes of every collaborator the automation core talks to, plus a
manual clock. Usable from tests and for dry runs without a platform.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

from .exceptions import GeofenceUnavailableError, RadioControlError, SchedulerError
from .protocols import GeofenceCallback, LocationCallback
from .types import (
    AssociationState,
    Attachment,
    GeofenceEvent,
    GeofenceRegion,
    JobResult,
    LocationFix,
    LocationProfile,
    NetworkTransport,
)


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRadio:
    """RadioControl backed by two attributes."""

    def __init__(
        self,
        enabled: bool = True,
        attachment: Optional[Attachment] = None,
        fail: bool = False,
    ) -> None:
        self.enabled = enabled
        self.attachment = attachment or Attachment()
        self.fail = fail
        self.set_calls: List[bool] = []

    def associate(self) -> None:
        self.attachment = Attachment(NetworkTransport.WIFI, AssociationState.COMPLETED, "wlan0")

    def disassociate(self) -> None:
        self.attachment = Attachment()

    async def is_enabled(self) -> bool:
        if self.fail:
            raise RadioControlError("radio unavailable", command="is_enabled")
        return self.enabled

    async def set_enabled(self, enabled: bool) -> None:
        if self.fail:
            raise RadioControlError("radio unavailable", command="set_enabled")
        self.set_calls.append(enabled)
        self.enabled = enabled

    async def current_attachment(self) -> Attachment:
        if self.fail:
            raise RadioControlError("radio unavailable", command="current_attachment")
        return self.attachment


class FakeJobScheduler:
    """
    JobScheduler that records schedules and runs jobs only on request.

    ``scheduled`` maps tag to interval (None for one-shot jobs).
    """

    def __init__(self, persisted: Optional[Dict[str, float]] = None) -> None:
        self.jobs: Dict[str, Any] = {}
        self.scheduled: Dict[str, Optional[float]] = {}
        self.persisted: Dict[str, float] = dict(persisted or {})
        self.cancelled: List[str] = []
        self.restored = False

    def register(self, tag: str, job) -> None:
        self.jobs[tag] = job

    def schedule_recurring(self, tag: str, interval_s: float) -> None:
        if tag not in self.jobs:
            raise SchedulerError("No job registered for tag", tag=tag)
        self.scheduled[tag] = interval_s
        self.persisted[tag] = interval_s

    def schedule_once(self, tag: str) -> None:
        if tag not in self.jobs:
            raise SchedulerError("No job registered for tag", tag=tag)
        self.scheduled[tag] = None

    def cancel(self, tag: str) -> None:
        self.cancelled.append(tag)
        self.scheduled.pop(tag, None)
        self.persisted.pop(tag, None)

    def restore(self) -> None:
        self.restored = True
        self.scheduled.update(self.persisted)

    async def run(self, tag: str) -> JobResult:
        """Run the job bound to ``tag`` once, as the scheduler would."""
        if tag not in self.scheduled:
            raise SchedulerError("Job not scheduled", tag=tag)
        if self.scheduled[tag] is None:
            del self.scheduled[tag]
        return await self.jobs[tag]()


class FakeLocationService:
    """LocationService whose fixes are pushed by the test."""

    def __init__(self, settings_ok: bool = True) -> None:
        self.settings_ok = settings_ok
        self.profile: Optional[LocationProfile] = None
        self.callback: Optional[LocationCallback] = None
        self.subscribe_count = 0
        self.unsubscribe_count = 0

    @property
    def subscribed(self) -> bool:
        return self.callback is not None

    async def settings_satisfied(self, profile: LocationProfile) -> bool:
        return self.settings_ok

    async def subscribe(self, profile: LocationProfile, callback: LocationCallback) -> None:
        self.profile = profile
        self.callback = callback
        self.subscribe_count += 1

    async def unsubscribe(self) -> None:
        self.callback = None
        self.unsubscribe_count += 1

    async def deliver(self, latitude: float, longitude: float) -> None:
        if self.callback is not None:
            await self.callback(LocationFix(latitude, longitude))


class FakeGeofenceService:
    """GeofenceService keeping regions by request id."""

    def __init__(self, reject: bool = False) -> None:
        self.reject = reject
        self.regions: Dict[str, Tuple[GeofenceRegion, GeofenceCallback]] = {}
        self.register_count = 0
        self.unregistered: List[str] = []

    def region(self, request_id: Optional[str] = None) -> Optional[GeofenceRegion]:
        if request_id is None:
            request_id = next(iter(self.regions), None)
        entry = self.regions.get(request_id) if request_id else None
        return entry[0] if entry else None

    async def register(self, region: GeofenceRegion, callback: GeofenceCallback) -> None:
        if self.reject:
            raise GeofenceUnavailableError(
                "Geofence service unavailable", reason="rejected", status_code=1000
            )
        self.regions[region.request_id] = (region, callback)
        self.register_count += 1

    async def unregister(self, request_id: str) -> None:
        self.unregistered.append(request_id)
        self.regions.pop(request_id, None)

    async def fire(self, event: GeofenceEvent) -> Any:
        """Deliver ``event`` to every registered callback; returns the last result."""
        result = None
        for _region, callback in list(self.regions.values()):
            result = await callback(event)
        return result


class FakePermissions:
    def __init__(self, granted: Iterable[str] = ("location",)) -> None:
        self.granted = set(granted)

    def is_granted(self, capability: str) -> bool:
        return capability in self.granted

    def revoke(self, capability: str) -> None:
        self.granted.discard(capability)


class MemoryEventLog:
    """DiagnosticLog keeping messages in a list."""

    def __init__(self) -> None:
        self.entries: List[str] = []

    def append(self, message: str) -> None:
        self.entries.append(message)

    def read_all(self) -> List[str]:
        return list(self.entries)

    def reset(self) -> None:
        self.entries.clear()


class FakeKeepalive:
    def __init__(self) -> None:
        self.visible = False
        self.show_count = 0

    def show(self) -> None:
        self.visible = True
        self.show_count += 1

    def hide(self) -> None:
        self.visible = False
