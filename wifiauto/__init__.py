"""
wifiauto - automatic Wi-Fi radio management

Turns the Wi-Fi radio off when it is on but not associated with any network,
and back on when the device enters a trusted area learned from its own
location.

Features include:
- Periodic monitoring that only ever disables the radio
- A single geofence region (100 m) placed around the last location fix
- Geofence entry/dwell re-enabling the radio, idempotently
- A grace window protecting a freshly enabled radio from the monitor
- Persisted settings and schedules restored after a restart

Quick Start:
    from wifiauto import AutomationController, MemoryConfigStore
    from wifiauto.testing import (
        FakeGeofenceService, FakeJobScheduler, FakeLocationService,
        FakePermissions, FakeRadio, MemoryEventLog,
    )

    controller = AutomationController(
        MemoryConfigStore(), FakeRadio(), FakeJobScheduler(),
        FakeLocationService(), FakeGeofenceService(),
        FakePermissions(), MemoryEventLog(),
    )
    await controller.set_monitoring(True)
    await controller.set_geofencing(True)

Command line:
    python -m wifiauto --grant location --zmq-pub tcp://127.0.0.1:5570 \\
            --zmq-sub tcp://127.0.0.1:5571 --monitoring on --run
"""

from .types import (
    LocationFix,
    Transition,
    GeofenceRegion,
    GeofenceErrorCode,
    GeofenceEvent,
    NetworkTransport,
    AssociationState,
    Attachment,
    LocationPriority,
    LocationProfile,
    JobResult,
    MonitorOutcome,
    TriggerOutcome,
)

from .protocols import (
    RadioControl,
    JobScheduler,
    LocationService,
    GeofenceService,
    ConfigStore,
    DiagnosticLog,
    PermissionQuery,
    KeepaliveIndicator,
)

from .exceptions import (
    ErrorSeverity,
    WifiAutoError,
    PermissionDeniedError,
    GeofenceUnavailableError,
    StaleConfigurationError,
    RadioControlError,
    SchedulerError,
    ConfigError,
    EventChannelError,
)

from .config import (
    MemoryConfigStore,
    JsonConfigStore,
    Settings,
    AgentConfig,
)

from .grace import GraceActivation, GracePeriod, DEFAULT_GRACE_POLICY
from .event_log import EventLog
from .monitor import PeriodicMonitor
from .geofence import GeofenceSetup, region_to_kml, write_region_kml
from .trigger import GeofenceTrigger
from .location import LocationAcquirer
from .scheduler import AsyncJobScheduler
from .dispatch import Event, EventKind, EventDispatcher
from .controller import AutomationController

from .log import (
    LogLevel,
    LogComponent,
    configure_logging,
    get_logger,
    set_level,
)

__all__ = [
    # Types
    "LocationFix",
    "Transition",
    "GeofenceRegion",
    "GeofenceErrorCode",
    "GeofenceEvent",
    "NetworkTransport",
    "AssociationState",
    "Attachment",
    "LocationPriority",
    "LocationProfile",
    "JobResult",
    "MonitorOutcome",
    "TriggerOutcome",
    # Protocols
    "RadioControl",
    "JobScheduler",
    "LocationService",
    "GeofenceService",
    "ConfigStore",
    "DiagnosticLog",
    "PermissionQuery",
    "KeepaliveIndicator",
    # Exceptions
    "ErrorSeverity",
    "WifiAutoError",
    "PermissionDeniedError",
    "GeofenceUnavailableError",
    "StaleConfigurationError",
    "RadioControlError",
    "SchedulerError",
    "ConfigError",
    "EventChannelError",
    # Configuration
    "MemoryConfigStore",
    "JsonConfigStore",
    "Settings",
    "AgentConfig",
    # Components
    "GraceActivation",
    "GracePeriod",
    "DEFAULT_GRACE_POLICY",
    "EventLog",
    "PeriodicMonitor",
    "GeofenceSetup",
    "region_to_kml",
    "write_region_kml",
    "GeofenceTrigger",
    "LocationAcquirer",
    "AsyncJobScheduler",
    "Event",
    "EventKind",
    "EventDispatcher",
    "AutomationController",
    # Logging
    "LogLevel",
    "LogComponent",
    "configure_logging",
    "get_logger",
    "set_level",
]
