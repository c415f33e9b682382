"""
Exception hierarchy for wifiauto.

All exceptions inherit from WifiAutoError. Components catch collaborator
failures at their own boundary and turn them into a log record plus a no-op;
only PermissionDeniedError and GeofenceUnavailableError are surfaced to the
caller of a geofencing toggle.

Example:
    from wifiauto import PermissionDeniedError, GeofenceUnavailableError

    try:
        await controller.on_geofence_toggled(True)
    except PermissionDeniedError as e:
        print(f"Location permission missing: {e}")
    except GeofenceUnavailableError as e:
        print(f"Geofencing not available: {e}")
"""
from __future__ import annotations

from typing import Optional, Any, Dict
from enum import Enum, auto


class ErrorSeverity(Enum):
    """Severity level of an error."""
    WARNING = auto()      # Expected condition, automation carries on
    ERROR = auto()        # Operation failed, next cycle retries
    CRITICAL = auto()     # Automation cannot work until the user acts


class WifiAutoError(Exception):
    """
    Base exception for all wifiauto errors.

    Attributes:
        message: Human-readable error description
        severity: Error severity level
        details: Optional dictionary with additional context
        recoverable: Whether the error can be recovered from
    """

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.severity = severity
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"[{self.severity.name}] {self.message}"
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            base += f" ({detail_str})"
        return base


class PermissionDeniedError(WifiAutoError):
    """Raised when a required capability has not been granted."""

    def __init__(
        self,
        message: str = "Permission denied",
        capability: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if capability:
            details["capability"] = capability

        super().__init__(
            message,
            severity=ErrorSeverity.CRITICAL,
            details=details,
            recoverable=False,
            **kwargs
        )
        self.capability = capability


class GeofenceUnavailableError(WifiAutoError):
    """Raised when the geofence or location service rejects a request."""

    def __init__(
        self,
        message: str = "Geofencing is not available",
        reason: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if reason:
            details["reason"] = reason
        if status_code is not None:
            details["status_code"] = status_code

        super().__init__(message, details=details, **kwargs)
        self.reason = reason
        self.status_code = status_code


class StaleConfigurationError(WifiAutoError):
    """Raised when geofencing is enabled but no region was ever persisted."""

    def __init__(
        self,
        message: str = "Geofencing enabled without a persisted region",
        key: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if key:
            details["key"] = key

        super().__init__(message, severity=ErrorSeverity.WARNING, details=details, **kwargs)
        self.key = key


class RadioControlError(WifiAutoError):
    """Raised when the radio cannot be queried or switched."""

    def __init__(
        self,
        message: str = "Radio control failed",
        command: Optional[str] = None,
        reason: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if command:
            details["command"] = command
        if reason:
            details["reason"] = reason

        super().__init__(message, details=details, **kwargs)
        self.command = command
        self.reason = reason


class SchedulerError(WifiAutoError):
    """Raised when a job cannot be scheduled."""

    def __init__(
        self,
        message: str = "Job scheduling failed",
        tag: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if tag:
            details["tag"] = tag

        super().__init__(message, details=details, **kwargs)
        self.tag = tag


class ConfigError(WifiAutoError):
    """Raised when persisted configuration cannot be read or written."""

    def __init__(
        self,
        message: str = "Configuration error",
        path: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if path:
            details["path"] = path

        super().__init__(message, details=details, **kwargs)
        self.path = path


class EventChannelError(WifiAutoError):
    """Raised when an inbound event message cannot be decoded or routed."""

    def __init__(
        self,
        message: str = "Invalid event message",
        kind: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if kind:
            details["kind"] = kind

        super().__init__(message, severity=ErrorSeverity.WARNING, details=details, **kwargs)
        self.kind = kind


__all__ = [
    "ErrorSeverity",
    "WifiAutoError",
    "PermissionDeniedError",
    "GeofenceUnavailableError",
    "StaleConfigurationError",
    "RadioControlError",
    "SchedulerError",
    "ConfigError",
    "EventChannelError",
]
