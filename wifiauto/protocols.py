"""
Protocols for wifiauto.

Contracts of the external collaborators the automation core talks to. Used
for testing, mocking, and swapping platform adapters.
"""

from __future__ import annotations

from typing import (
    Any,
    Awaitable,
    Callable,
    ContextManager,
    Protocol,
    runtime_checkable,
)

from .types import (
    Attachment,
    GeofenceEvent,
    GeofenceRegion,
    JobResult,
    LocationFix,
    LocationProfile,
)

LocationCallback = Callable[[LocationFix], Awaitable[None]]
GeofenceCallback = Callable[[GeofenceEvent], Awaitable[Any]]


@runtime_checkable
class RadioControl(Protocol):
    """Wireless radio switch and network attachment query."""

    async def is_enabled(self) -> bool:
        ...

    async def set_enabled(self, enabled: bool) -> None:
        """Switch the radio. Setting the current value again is a no-op."""
        ...

    async def current_attachment(self) -> Attachment:
        ...


@runtime_checkable
class JobScheduler(Protocol):
    """Recurring and one-shot jobs keyed by a stable tag."""

    def register(self, tag: str, job: Callable[[], Awaitable[JobResult]]) -> None:
        """Bind the job run for every schedule carrying this tag."""
        ...

    def schedule_recurring(self, tag: str, interval_s: float) -> None:
        ...

    def schedule_once(self, tag: str) -> None:
        ...

    def cancel(self, tag: str) -> None:
        ...

    def restore(self) -> None:
        """Re-arm recurring schedules persisted before a restart."""
        ...


@runtime_checkable
class LocationService(Protocol):
    """Source of location fixes."""

    async def settings_satisfied(self, profile: LocationProfile) -> bool:
        """Whether device location settings can serve this profile."""
        ...

    async def subscribe(
        self, profile: LocationProfile, callback: LocationCallback
    ) -> None:
        ...

    async def unsubscribe(self) -> None:
        ...


@runtime_checkable
class GeofenceService(Protocol):
    """External region-containment detection."""

    async def register(
        self, region: GeofenceRegion, callback: GeofenceCallback
    ) -> None:
        """Register region; replaces any region with the same request id."""
        ...

    async def unregister(self, request_id: str) -> None:
        ...


class ConfigEditorProtocol(Protocol):
    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


@runtime_checkable
class ConfigStore(Protocol):
    """Synchronous, local, durable key/value settings."""

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def remove(self, key: str) -> None:
        ...

    def edit(self) -> ContextManager[ConfigEditorProtocol]:
        """Atomic read-modify-write over several keys."""
        ...


@runtime_checkable
class DiagnosticLog(Protocol):
    """Fire-and-forget user-facing event history."""

    def append(self, message: str) -> None:
        ...


@runtime_checkable
class PermissionQuery(Protocol):
    def is_granted(self, capability: str) -> bool:
        ...


@runtime_checkable
class KeepaliveIndicator(Protocol):
    """Long-running indicator shown while monitoring is active."""

    def show(self) -> None:
        ...

    def hide(self) -> None:
        ...


Clock = Callable[[], float]
