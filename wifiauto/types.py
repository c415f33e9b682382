"""
Types for wifiauto.

Dataclasses and enums exchanged between the automation components and their
collaborators.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum, IntEnum, auto
from typing import Any, Dict, FrozenSet, Optional

from .constants import (
    GEOFENCE_DWELL_DELAY_MS,
    GEOFENCE_RADIUS_M,
    GEOFENCE_REQUEST_ID,
    LOCATION_EXPIRATION_S,
    LOCATION_FASTEST_INTERVAL_S,
    LOCATION_INTERVAL_S,
)


@dataclass(frozen=True)
class LocationFix:
    """
    Single location update delivered by the location service.
    """

    latitude: float
    longitude: float
    accuracy_m: Optional[float] = None
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LocationFix":
        kwargs: Dict[str, Any] = {
            "latitude": float(data["latitude"]),
            "longitude": float(data["longitude"]),
        }
        if data.get("accuracy_m") is not None:
            kwargs["accuracy_m"] = float(data["accuracy_m"])
        if data.get("timestamp") is not None:
            kwargs["timestamp"] = float(data["timestamp"])
        return cls(**kwargs)


class Transition(Enum):
    """Geofence transition types."""

    ENTER = "enter"
    DWELL = "dwell"
    EXIT = "exit"


@dataclass(frozen=True)
class GeofenceRegion:
    """
    Circular trusted area registered with the geofence service.

    Only one region exists at a time; it is always registered under the same
    request id so that a new registration replaces the previous one.
    """

    latitude: float
    longitude: float
    radius_m: float = GEOFENCE_RADIUS_M
    dwell_delay_ms: int = GEOFENCE_DWELL_DELAY_MS
    transitions: FrozenSet[Transition] = frozenset(
        {Transition.ENTER, Transition.DWELL}
    )
    initial_trigger: Transition = Transition.DWELL
    expiration_ms: Optional[int] = None  # None: never expires
    request_id: str = GEOFENCE_REQUEST_ID

    def to_dict(self) -> Dict[str, Any]:
        return {
            "request_id": self.request_id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "radius_m": self.radius_m,
            "dwell_delay_ms": self.dwell_delay_ms,
            "transitions": sorted(t.value for t in self.transitions),
            "initial_trigger": self.initial_trigger.value,
            "expiration_ms": self.expiration_ms,
        }


class GeofenceErrorCode(IntEnum):
    """Status codes a geofence event may carry instead of a transition."""

    GEOFENCE_NOT_AVAILABLE = 1000
    GEOFENCE_TOO_MANY_GEOFENCES = 1001
    GEOFENCE_TOO_MANY_PENDING_INTENTS = 1002

    @classmethod
    def describe(cls, code: int) -> str:
        try:
            return cls(code).name
        except ValueError:
            return f"UNKNOWN_{code}"


@dataclass(frozen=True)
class GeofenceEvent:
    """
    Notification from the geofence service.

    Carries either the transitions that fired or an error code.
    """

    transitions: FrozenSet[Transition] = frozenset()
    error_code: Optional[int] = None
    request_ids: FrozenSet[str] = frozenset()
    triggering_fix: Optional[LocationFix] = None

    @property
    def has_error(self) -> bool:
        return self.error_code is not None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeofenceEvent":
        fix = data.get("triggering_fix")
        error_code = data.get("error_code")
        return cls(
            transitions=frozenset(
                Transition(t) for t in data.get("transitions", [])
            ),
            error_code=int(error_code) if error_code is not None else None,
            request_ids=frozenset(data.get("request_ids", [])),
            triggering_fix=LocationFix.from_dict(fix) if fix else None,
        )


class NetworkTransport(Enum):
    """Transport carrying the active network connection."""

    WIFI = "wifi"
    ETHERNET = "ethernet"
    CELLULAR = "cellular"
    OTHER = "other"
    NONE = "none"


class AssociationState(Enum):
    """Association state of the active connection."""

    COMPLETED = "completed"
    ASSOCIATING = "associating"
    DISCONNECTED = "disconnected"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Attachment:
    """Current network attachment of the device."""

    transport: NetworkTransport = NetworkTransport.NONE
    state: AssociationState = AssociationState.DISCONNECTED
    interface: Optional[str] = None

    @property
    def associated_via_radio(self) -> bool:
        """True when the radio itself carries a fully associated connection."""
        return (
            self.transport is NetworkTransport.WIFI
            and self.state is AssociationState.COMPLETED
        )


class LocationPriority(Enum):
    """Power/accuracy trade-off requested from the location service."""

    HIGH_ACCURACY = "high_accuracy"
    BALANCED_POWER_ACCURACY = "balanced_power_accuracy"
    LOW_POWER = "low_power"
    NO_POWER = "no_power"


@dataclass(frozen=True)
class LocationProfile:
    """Location subscription policy (hints, not guarantees)."""

    priority: LocationPriority = LocationPriority.BALANCED_POWER_ACCURACY
    interval_s: float = LOCATION_INTERVAL_S
    fastest_interval_s: float = LOCATION_FASTEST_INTERVAL_S
    expiration_s: Optional[float] = LOCATION_EXPIRATION_S

    def to_dict(self) -> Dict[str, Any]:
        return {
            "priority": self.priority.value,
            "interval_s": self.interval_s,
            "fastest_interval_s": self.fastest_interval_s,
            "expiration_s": self.expiration_s,
        }


class JobResult(Enum):
    """Completion report of a scheduled job."""

    SUCCESS = auto()
    FAILURE = auto()


class MonitorOutcome(Enum):
    """Decision taken by one PeriodicMonitor invocation."""

    ALREADY_DISABLED = auto()
    GRACE_PERIOD = auto()
    IN_USE = auto()
    DISABLED_RADIO = auto()
    FAILED = auto()

    @property
    def changed_radio(self) -> bool:
        return self is MonitorOutcome.DISABLED_RADIO


class TriggerOutcome(Enum):
    """Decision taken by one GeofenceTrigger invocation."""

    FEATURE_DISABLED = auto()
    SERVICE_ERROR = auto()
    IGNORED = auto()
    ALREADY_ENABLED = auto()
    ENABLED_RADIO = auto()
    FAILED = auto()

    @property
    def changed_radio(self) -> bool:
        return self is TriggerOutcome.ENABLED_RADIO
